#
# Arbitrary-precision binary floating point arithmetic
#

import decimal
import re
import sys
from collections import namedtuple
from decimal import Decimal
from enum import IntFlag
from fractions import Fraction
from functools import partial
from math import gcd, isqrt
from struct import Struct

from . import _fixed
from .context import (
    Context, UNLIMITED, BINARY32, BINARY64, get_context,
    ROUND_CEILING, ROUND_FLOOR, ROUND_DOWN, ROUND_UP, ROUND_HALF_EVEN, ROUND_HALF_DOWN,
    ROUND_ODD, ROUND_NONE,
    SignalingNaNOperand, InvalidAdd, InvalidMultiply, InvalidDivide, InvalidRemainder,
    InvalidSqrt, InvalidLog, InvalidPower, InvalidQuantize, InvalidRounding, InvalidContext,
    InvalidComparison, DivisionByZero, Overflow, Underflow, Subnormal, Inexact, Rounded,
    Clamped, NotExactError,
)
from .decimals import compare_to_binary, exact_context


__all__ = ('BigFloat', 'NumberFlags',
           'OP_ABS', 'OP_ADD', 'OP_SUBTRACT', 'OP_MULTIPLY', 'OP_DIVIDE',
           'OP_MULTIPLY_AND_ADD', 'OP_MULTIPLY_AND_SUBTRACT', 'OP_REMAINDER',
           'OP_REMAINDER_NEAR', 'OP_DIVIDE_TO_INTEGER', 'OP_DIVIDE_TO_EXPONENT', 'OP_SQRT',
           'OP_EXP', 'OP_LOG', 'OP_LOG10', 'OP_POW', 'OP_PI', 'OP_QUANTIZE',
           'OP_ROUND_TO_EXPONENT', 'OP_ROUND_TO_PRECISION', 'OP_REDUCE', 'OP_NEXT_PLUS',
           'OP_NEXT_MINUS', 'OP_NEXT_TOWARD', 'OP_COMPARE', 'OP_COMPARE_SIGNAL',
           'OP_MAX', 'OP_MIN', 'OP_MAX_MAG', 'OP_MIN_MAG', 'OP_SCALE', 'OP_NEGATE',
           'OP_FROM_DECIMAL', 'OP_FROM_FRACTION', 'OP_FROM_STRING')


# Operation names
OP_ABS = 'abs'
OP_ADD = 'add'
OP_SUBTRACT = 'subtract'
OP_MULTIPLY = 'multiply'
OP_DIVIDE = 'divide'
OP_MULTIPLY_AND_ADD = 'multiply_and_add'
OP_MULTIPLY_AND_SUBTRACT = 'multiply_and_subtract'
OP_REMAINDER = 'remainder'
OP_REMAINDER_NEAR = 'remainder_near'
OP_DIVIDE_TO_INTEGER = 'divide_to_integer'
OP_DIVIDE_TO_EXPONENT = 'divide_to_exponent'
OP_SQRT = 'sqrt'
OP_EXP = 'exp'
OP_LOG = 'log'
OP_LOG10 = 'log10'
OP_POW = 'pow'
OP_PI = 'pi'
OP_QUANTIZE = 'quantize'
OP_ROUND_TO_EXPONENT = 'round_to_exponent'
OP_ROUND_TO_PRECISION = 'round_to_precision'
OP_REDUCE = 'reduce'
OP_NEXT_PLUS = 'next_plus'
OP_NEXT_MINUS = 'next_minus'
OP_NEXT_TOWARD = 'next_toward'
OP_COMPARE = 'compare'
OP_COMPARE_SIGNAL = 'compare_signal'
OP_MAX = 'max'
OP_MIN = 'min'
OP_MAX_MAG = 'max_magnitude'
OP_MIN_MAG = 'min_magnitude'
OP_SCALE = 'scale_by_power_of_two'
OP_NEGATE = 'negate'
OP_FROM_DECIMAL = 'from_decimal'
OP_FROM_FRACTION = 'from_fraction'
OP_FROM_STRING = 'from_string'


class NumberFlags(IntFlag):
    '''Sign and special-value flags of BigFloat and BigRational values.'''
    NEGATIVE      = 0x01
    INFINITY      = 0x02
    QUIET_NAN     = 0x04
    SIGNALING_NAN = 0x08


_SPECIAL = NumberFlags.INFINITY | NumberFlags.QUIET_NAN | NumberFlags.SIGNALING_NAN
_NAN = NumberFlags.QUIET_NAN | NumberFlags.SIGNALING_NAN
_POSITIVE = NumberFlags(0)


# Fractions of the least significant bit lost when discarding bits
LF_EXACTLY_ZERO = 0
LF_LESS_THAN_HALF = 1
LF_EXACTLY_HALF = 2
LF_MORE_THAN_HALF = 3

# Comparison of a NaN with anything
UNORDERED = 2

# Tries of the working precision for a correctly rounded transcendental result
_ZIV_ATTEMPTS = 10


class BigFloat(namedtuple('BigFloat', 'significand exponent flags')):
    '''An immutable arbitrary-precision binary floating point number.

    A finite value is (-1)^negative * significand * 2^exponent, where significand is an
    unsigned integer and exponent a signed integer, both of any size.  Representations are
    not normalized: 4 * 2^0 and 1 * 2^2 are different representations of the same value
    and exact operations keep exponents the way decimal arithmetic does.  Infinities
    have significand and exponent zero.  NaNs carry their diagnostic payload in the
    significand and have exponent zero.

    Operations take an optional context, which bounds the precision in bits and the
    exponent range and chooses the rounding mode, and an optional Status into which the
    conditions the operation signals are accumulated.  Without a context results are
    exact.
    '''

    def __new__(cls, significand, exponent=0, flags=_POSITIVE):
        if not isinstance(significand, int) or not isinstance(exponent, int):
            raise TypeError('significand and exponent must be integers')
        if significand < 0:
            raise ValueError(f'significand cannot be negative: {significand}')
        flags = NumberFlags(flags)
        special = flags & _SPECIAL
        if special & (special - 1):
            raise ValueError(f'inconsistent flags: {flags!r}')
        if special:
            if exponent:
                raise ValueError('an infinity or NaN has exponent zero')
            if special == NumberFlags.INFINITY and significand:
                raise ValueError('an infinity has significand zero')
        return super().__new__(cls, significand, exponent, flags)

    #
    # Constructors
    #

    @classmethod
    def create(cls, mantissa, exponent=0):
        '''Return mantissa * 2^exponent; mantissa is a signed integer.'''
        if mantissa is None or exponent is None:
            raise TypeError('mantissa and exponent cannot be None')
        return cls(abs(mantissa), exponent, NumberFlags.NEGATIVE if mantissa < 0 else _POSITIVE)

    @classmethod
    def create_with_flags(cls, significand, exponent, flags):
        return cls(significand, exponent, flags)

    @classmethod
    def create_nan(cls, payload=0, signaling=False, negative=False, context=None):
        '''Return a NaN with the given diagnostic payload.  If context has a precision the
        payload keeps only that many low bits.'''
        if not isinstance(payload, int):
            raise TypeError('payload must be an integer')
        if payload < 0:
            raise ValueError(f'NaN payload cannot be negative: {payload}')
        if context is not None and context.precision:
            payload &= (1 << context.precision) - 1
        flags = NumberFlags.SIGNALING_NAN if signaling else NumberFlags.QUIET_NAN
        if negative:
            flags |= NumberFlags.NEGATIVE
        return cls(payload, 0, flags)

    @classmethod
    def from_int(cls, value):
        '''Return the integer value exactly, with exponent zero.'''
        if not isinstance(value, int):
            raise TypeError(f'expected an integer, not {type(value).__name__}')
        return cls.create(value)

    @classmethod
    def from_float(cls, value):
        '''Return a Python float (an IEEE double) exactly.  NaN payloads are kept.'''
        if not isinstance(value, float):
            raise TypeError(f'expected a float, not {type(value).__name__}')
        return cls.from_double_bits(unpack_uint64(pack_double(value))[0])

    @classmethod
    def from_single(cls, value):
        '''Return the value of a Python float rounded to IEEE single precision.'''
        if not isinstance(value, float):
            raise TypeError(f'expected a float, not {type(value).__name__}')
        return cls.from_single_bits(unpack_uint32(pack_single(value))[0])

    @classmethod
    def from_double_bits(cls, bits):
        return cls._from_ieee_bits(bits, 53, 11)

    @classmethod
    def from_single_bits(cls, bits):
        return cls._from_ieee_bits(bits, 24, 8)

    @classmethod
    def _from_ieee_bits(cls, bits, precision, e_width):
        fraction_bits = precision - 1
        e_all = (1 << e_width) - 1
        flags = NumberFlags.NEGATIVE if bits >> (fraction_bits + e_width) & 1 else _POSITIVE
        e_field = (bits >> fraction_bits) & e_all
        fraction = bits & ((1 << fraction_bits) - 1)

        if e_field == e_all:
            if fraction == 0:
                return cls(0, 0, flags | NumberFlags.INFINITY)
            quiet_bit = 1 << (fraction_bits - 1)
            if fraction & quiet_bit:
                return cls(fraction & (quiet_bit - 1), 0, flags | NumberFlags.QUIET_NAN)
            return cls(fraction, 0, flags | NumberFlags.SIGNALING_NAN)

        if e_field == 0:
            if fraction == 0:
                return cls(0, 0, flags)
            e_field = 1
        else:
            fraction |= 1 << fraction_bits
        exponent = e_field - ((1 << (e_width - 1)) - 1) - fraction_bits
        zeroes = _trailing_zeroes(fraction)
        return cls(fraction >> zeroes, exponent + zeroes, flags)

    @classmethod
    def from_decimal(cls, value, context=None, status=None):
        '''Convert a Decimal.  Finite values are correctly rounded by the context.

        Without a precision a value with a terminating binary expansion converts exactly;
        any other value is rounded to nearest with at least 53 bits, and two bits more
        than the value's decimal significand needs.
        '''
        if not isinstance(value, Decimal):
            raise TypeError(f'expected a Decimal, not {type(value).__name__}')
        negative = value.is_signed()
        if value.is_nan():
            digits = value.as_tuple().digits
            payload = int(Decimal((0, digits, 0))) if digits else 0
            return cls.create_nan(payload, value.is_snan(), negative, context)
        if value.is_infinite():
            return _infinity(negative)
        numerator, denominator = value.as_integer_ratio()
        return _from_ratio(negative, abs(numerator), denominator, (OP_FROM_DECIMAL, value),
                           context, status)

    @classmethod
    def from_fraction(cls, value, context=None, status=None):
        '''Convert a Fraction, rounding as from_decimal does.'''
        if not isinstance(value, Fraction):
            raise TypeError(f'expected a Fraction, not {type(value).__name__}')
        return _from_ratio(value < 0, abs(value.numerator), value.denominator,
                           (OP_FROM_FRACTION, value), context, status)

    @classmethod
    def from_string(cls, string, context=None, status=None):
        '''Convert a decimal string such as "-1.25e3", "Infinity", "nan" or "sNaN12".  A
        malformed string raises SyntaxError.'''
        if not isinstance(string, str):
            raise TypeError(f'expected a string, not {type(string).__name__}')
        if DEC_FLOAT_REGEX.match(string) is None:
            raise SyntaxError(f'invalid floating point number: {string}')
        return cls.from_decimal(Decimal(string), context, status)

    @classmethod
    def pi(cls, context, status=None):
        '''Return pi correctly rounded to the precision of context.'''
        op_tuple = (OP_PI, )
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)
        return _ziv(_fixed.pi, op_tuple, context, status)

    #
    # Classification
    #

    def is_negative(self):
        return bool(self.flags & NumberFlags.NEGATIVE)

    def is_finite(self):
        return not self.flags & _SPECIAL

    def is_infinity(self):
        return bool(self.flags & NumberFlags.INFINITY)

    def is_positive_infinity(self):
        return self.flags & (NumberFlags.INFINITY | NumberFlags.NEGATIVE) == NumberFlags.INFINITY

    def is_negative_infinity(self):
        return self.flags & (NumberFlags.INFINITY | NumberFlags.NEGATIVE) == (
            NumberFlags.INFINITY | NumberFlags.NEGATIVE)

    def is_nan(self):
        return bool(self.flags & _NAN)

    def is_quiet_nan(self):
        return bool(self.flags & NumberFlags.QUIET_NAN)

    def is_signaling_nan(self):
        return bool(self.flags & NumberFlags.SIGNALING_NAN)

    def is_zero(self):
        return self.significand == 0 and not self.flags & _SPECIAL

    def is_integer(self):
        '''Return True if finite with no fractional part.'''
        if not self.is_finite():
            return False
        return (self.exponent >= 0 or not self.significand
                or _trailing_zeroes(self.significand) >= -self.exponent)

    @property
    def mantissa(self):
        '''The significand with the sign of the number.'''
        return -self.significand if self.is_negative() else self.significand

    @property
    def sign(self):
        '''-1, 0 or 1.  A NaN has the sign given by its sign flag.'''
        if self.is_zero():
            return 0
        return -1 if self.is_negative() else 1

    def nan_payload(self):
        if not self.is_nan():
            raise ValueError('not a NaN')
        return self.significand

    def precision(self):
        '''The number of bits in the significand; 1 for zero and 0 for an infinity or NaN.'''
        if not self.is_finite():
            return 0
        return max(self.significand.bit_length(), 1)

    def ulp(self):
        '''The value of one unit in the last place of this representation.'''
        if self.is_nan():
            return self._quieted()
        if self.is_infinity():
            return POSITIVE_INFINITY
        return BigFloat(1, self.exponent)

    def adjusted_exponent(self):
        '''The exponent of the most significant bit.  Zero for zeroes and special values.'''
        if not self.significand or not self.is_finite():
            return 0
        return self.exponent + self.significand.bit_length() - 1

    #
    # Sign operations
    #

    def copy_abs(self):
        return BigFloat(self.significand, self.exponent, self.flags & ~NumberFlags.NEGATIVE)

    def copy_negate(self):
        return BigFloat(self.significand, self.exponent, self.flags ^ NumberFlags.NEGATIVE)

    def copy_sign(self, other):
        '''Return this value with the sign of other.'''
        other = _operand(other)
        flags = (self.flags & ~NumberFlags.NEGATIVE) | (other.flags & NumberFlags.NEGATIVE)
        return BigFloat(self.significand, self.exponent, flags)

    def negate(self, context=None, status=None):
        '''Flip the sign.  With a context the result is also rounded to it.'''
        result = self.copy_negate()
        if context is None:
            return result
        return result._round_to(OP_NEGATE, context, status)

    def abs(self, context=None, status=None):
        '''Clear the sign.  With a context the result is also rounded to it.'''
        result = self.copy_abs()
        if context is None:
            return result
        return result._round_to(OP_ABS, context, status)

    #
    # Rounding
    #

    def round_to_precision(self, context=None, status=None):
        '''Return this value rounded to the precision and exponent range of the context.'''
        return self._round_to(OP_ROUND_TO_PRECISION, context, status)

    plus = round_to_precision

    def _round_to(self, op_name, context, status):
        op_tuple = (op_name, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return self
        return _round(self.is_negative(), self.significand, self.exponent, op_tuple, context,
                      status)

    def reduce(self, context=None, status=None):
        '''Round to the context and strip trailing zero bits from the significand.  Zeroes get
        exponent zero.'''
        op_tuple = (OP_REDUCE, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return self
        result = self._round_to(OP_REDUCE, context, status)
        if not result.is_finite():
            return result
        if result.is_zero():
            return BigFloat(0, 0, result.flags)
        zeroes = _trailing_zeroes(result.significand)
        return BigFloat(result.significand >> zeroes, result.exponent + zeroes, result.flags)

    def quantize(self, exponent, context=None, status=None):
        '''Return a value equal to this one rounded or padded to have the given exponent.

        exponent is an integer, or a BigFloat whose exponent is used.  If the result
        cannot be held within the context's precision or exponent range a NaN is returned
        and invalid signalled.'''
        if isinstance(exponent, BigFloat):
            op_tuple = (OP_QUANTIZE, self, exponent)
            if self.is_nan() or exponent.is_nan():
                return _propagate_nan(op_tuple, context, status)
            if self.is_infinity() or exponent.is_infinity():
                if self.is_infinity() and exponent.is_infinity():
                    return self
                return InvalidQuantize(op_tuple, NAN).signal(context, status)
            exponent = exponent.exponent
        op_tuple = (OP_QUANTIZE, self, exponent)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return InvalidQuantize(op_tuple, NAN).signal(context, status)
        if context is not None and context.has_exponent_range:
            if not context.etiny <= exponent <= context.e_max:
                return InvalidQuantize(op_tuple, NAN).signal(context, status)

        rounding = context.rounding if context is not None else ROUND_HALF_EVEN
        negative = self.is_negative()
        significand, lost_fraction = shift_right(self.significand, exponent - self.exponent)
        if lost_fraction != LF_EXACTLY_ZERO:
            if rounding == ROUND_NONE:
                return InvalidRounding(op_tuple, NAN).signal(context, status)
            if round_up(rounding, lost_fraction, negative, significand & 1):
                significand += 1

        if context is not None and significand:
            if context.precision and significand.bit_length() > context.precision:
                return InvalidQuantize(op_tuple, NAN).signal(context, status)
            if (context.has_exponent_range
                    and exponent + significand.bit_length() - 1 > context.e_max):
                return InvalidQuantize(op_tuple, NAN).signal(context, status)

        result = BigFloat(significand, exponent, self.flags)
        if (context is not None and context.has_exponent_range and significand
                and exponent + significand.bit_length() - 1 < context.e_min):
            result = Subnormal(op_tuple, result).signal(context, status)
        if lost_fraction != LF_EXACTLY_ZERO:
            result = Inexact(op_tuple, result).signal(context, status)
        elif exponent > self.exponent:
            result = Rounded(op_tuple, result).signal(context, status)
        return result

    def round_to_exponent(self, exponent, context=None, status=None):
        '''Round to the given exponent if this value's exponent is smaller, then to the
        context's precision.  Discarding bits does not signal inexact or rounded.'''
        return self._round_to_exponent(exponent, False, context, status)

    def round_to_exponent_exact(self, exponent, context=None, status=None):
        '''As round_to_exponent but signalling inexact and rounded when bits are discarded.'''
        return self._round_to_exponent(exponent, True, context, status)

    def round_to_integer_exact(self, context=None, status=None):
        return self._round_to_exponent(0, True, context, status)

    def round_to_integer_no_rounded_flag(self, context=None, status=None):
        return self._round_to_exponent(0, False, context, status)

    def _round_to_exponent(self, exponent, signal_exact, context, status):
        op_tuple = (OP_ROUND_TO_EXPONENT, self, exponent)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return self

        result = self
        if self.exponent < exponent:
            rounding = context.rounding if context is not None else ROUND_HALF_EVEN
            negative = self.is_negative()
            significand, lost_fraction = shift_right(self.significand, exponent - self.exponent)
            if lost_fraction != LF_EXACTLY_ZERO:
                if rounding == ROUND_NONE:
                    return InvalidRounding(op_tuple, NAN).signal(context, status)
                if round_up(rounding, lost_fraction, negative, significand & 1):
                    significand += 1
            result = BigFloat(significand, exponent, self.flags)
            if signal_exact:
                if lost_fraction != LF_EXACTLY_ZERO:
                    result = Inexact(op_tuple, result).signal(context, status)
                else:
                    result = Rounded(op_tuple, result).signal(context, status)
        if context is None:
            return result
        return _round(result.is_negative(), result.significand, result.exponent, op_tuple,
                      context, status)

    #
    # Arithmetic
    #

    def add(self, other, context=None, status=None):
        '''Return self + other rounded by the context.'''
        return self._add_sub(OP_ADD, _operand(other), False, context, status)

    def subtract(self, other, context=None, status=None):
        '''Return self - other rounded by the context.'''
        return self._add_sub(OP_SUBTRACT, _operand(other), True, context, status)

    def _add_sub(self, op_name, other, is_subtract, context, status):
        op_tuple = (op_name, self, other)
        lhs_negative = self.is_negative()
        rhs_negative = other.is_negative() ^ is_subtract

        if (self.flags | other.flags) & _SPECIAL:
            if self.is_nan() or other.is_nan():
                return _propagate_nan(op_tuple, context, status)
            if self.is_infinity():
                if other.is_infinity() and lhs_negative != rhs_negative:
                    return InvalidAdd(op_tuple, NAN).signal(context, status)
                return self
            return _infinity(rhs_negative)

        lhs_sig, lhs_exp = self.significand, self.exponent
        rhs_sig, rhs_exp = other.significand, other.exponent

        # With a precision, an operand far below the other's LSB only contributes a sticky
        # bit.  Replace it with something smaller than half an LSB so the exponents need
        # not be aligned.
        if context is not None and context.precision and lhs_sig and rhs_sig:
            lhs_top = lhs_exp + lhs_sig.bit_length()
            rhs_top = rhs_exp + rhs_sig.bit_length()
            if lhs_top > rhs_top:
                cutoff = min(lhs_exp, lhs_top - context.precision - 3)
                if rhs_top < cutoff:
                    rhs_sig, rhs_exp = 1, cutoff - 2
            elif rhs_top > lhs_top:
                cutoff = min(rhs_exp, rhs_top - context.precision - 3)
                if lhs_top < cutoff:
                    lhs_sig, lhs_exp = 1, cutoff - 2

        if lhs_exp >= rhs_exp:
            lhs_sig <<= lhs_exp - rhs_exp
            exponent = rhs_exp
        else:
            rhs_sig <<= rhs_exp - lhs_exp
            exponent = lhs_exp

        if lhs_negative == rhs_negative:
            significand = lhs_sig + rhs_sig
            negative = lhs_negative
        else:
            significand = lhs_sig - rhs_sig
            negative = lhs_negative
            if significand < 0:
                significand = -significand
                negative = rhs_negative
            elif significand == 0:
                # An exact zero sum of opposite signs is positive except when rounding down
                negative = context is not None and context.rounding == ROUND_FLOOR

        return _round(negative, significand, exponent, op_tuple, context, status)

    def multiply(self, other, context=None, status=None):
        '''Return self * other rounded by the context.'''
        other = _operand(other)
        op_tuple = (OP_MULTIPLY, self, other)
        negative = self.is_negative() ^ other.is_negative()
        if (self.flags | other.flags) & _SPECIAL:
            if self.is_nan() or other.is_nan():
                return _propagate_nan(op_tuple, context, status)
            if self.is_zero() or other.is_zero():
                return InvalidMultiply(op_tuple, NAN).signal(context, status)
            return _infinity(negative)
        return _round(negative, self.significand * other.significand,
                      self.exponent + other.exponent, op_tuple, context, status)

    def multiply_and_add(self, multiplicand, augend, context=None, status=None):
        '''Return self * multiplicand + augend with a single rounding.'''
        return self._fused(OP_MULTIPLY_AND_ADD, multiplicand, augend, False, context, status)

    def multiply_and_subtract(self, multiplicand, subtrahend, context=None, status=None):
        '''Return self * multiplicand - subtrahend with a single rounding.'''
        return self._fused(OP_MULTIPLY_AND_SUBTRACT, multiplicand, subtrahend, True,
                           context, status)

    def _fused(self, op_name, multiplicand, addend, is_subtract, context, status):
        multiplicand = _operand(multiplicand)
        addend = _operand(addend)
        op_tuple = (op_name, self, multiplicand, addend)
        if self.is_nan() or multiplicand.is_nan() or addend.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if ((self.is_infinity() and multiplicand.is_zero())
                or (self.is_zero() and multiplicand.is_infinity())):
            return InvalidMultiply(op_tuple, NAN).signal(context, status)
        # The product is exact
        product = self.multiply(multiplicand)
        return product._add_sub(op_name, addend, is_subtract, context, status)

    def divide(self, other, context=None, status=None):
        '''Return self / other rounded by the context.

        Without a precision the quotient must have a terminating binary expansion;
        otherwise the result is a NaN and invalid is signalled.'''
        other = _operand(other)
        op_tuple = (OP_DIVIDE, self, other)
        negative = self.is_negative() ^ other.is_negative()
        if (self.flags | other.flags) & _SPECIAL:
            if self.is_nan() or other.is_nan():
                return _propagate_nan(op_tuple, context, status)
            if self.is_infinity():
                if other.is_infinity():
                    return InvalidDivide(op_tuple, NAN).signal(context, status)
                return _infinity(negative)
            return _round(negative, 0, 0, op_tuple, context, status)
        if other.is_zero():
            if self.is_zero():
                return InvalidDivide(op_tuple, NAN).signal(context, status)
            return DivisionByZero(op_tuple, _infinity(negative)).signal(context, status)
        if self.is_zero():
            return _round(negative, 0, self.exponent - other.exponent, op_tuple, context,
                          status)
        return _divide_integers(negative, self.significand, other.significand,
                                self.exponent - other.exponent, op_tuple, context, status)

    def remainder(self, other, context=None, status=None):
        '''Return the remainder of self / other with the quotient truncated towards zero.
        The result has the sign of self.'''
        return self._remainder(OP_REMAINDER, other, False, context, status)

    def remainder_near(self, other, context=None, status=None):
        '''IEEE remainder: self - n * other where n is self / other rounded to the nearest
        integer, ties to even.'''
        return self._remainder(OP_REMAINDER_NEAR, other, True, context, status)

    def _remainder(self, op_name, other, nearest, context, status):
        other = _operand(other)
        op_tuple = (op_name, self, other)
        if self.is_nan() or other.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity() or other.is_zero():
            return InvalidRemainder(op_tuple, NAN).signal(context, status)
        if other.is_infinity() or self.is_zero():
            return self._round_to(op_name, context, status)

        exponent = min(self.exponent, other.exponent)
        divisor = other.significand << (other.exponent - exponent)
        # Work modulo twice the divisor to learn the parity of the quotient
        modulus = divisor * 2 if nearest else divisor
        remainder = self.significand * pow(2, self.exponent - exponent, modulus) % modulus
        negative = self.is_negative()
        if nearest:
            is_odd = remainder >= divisor
            if is_odd:
                remainder -= divisor
            if remainder * 2 > divisor or (remainder * 2 == divisor and is_odd):
                remainder = divisor - remainder
                negative = not negative
        return _round(negative, remainder, exponent, op_tuple, context, status)

    def _integer_quotient(self, other, op_tuple, context, status):
        '''Return (negative, quotient) where quotient is the magnitude of self / other
        truncated to an integer, or a BigFloat result for special cases.'''
        negative = self.is_negative() ^ other.is_negative()
        if self.is_nan() or other.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            if other.is_infinity():
                return InvalidDivide(op_tuple, NAN).signal(context, status)
            return _infinity(negative)
        if other.is_infinity():
            return BigFloat(0, 0, NumberFlags.NEGATIVE if negative else _POSITIVE)
        if other.is_zero():
            if self.is_zero():
                return InvalidDivide(op_tuple, NAN).signal(context, status)
            return DivisionByZero(op_tuple, _infinity(negative)).signal(context, status)
        exponent = min(self.exponent, other.exponent)
        quotient = ((self.significand << (self.exponent - exponent))
                    // (other.significand << (other.exponent - exponent)))
        if context is not None and context.precision and quotient.bit_length() > context.precision:
            # The integer part cannot be held
            return InvalidDivide(op_tuple, NAN).signal(context, status)
        return negative, quotient

    def divide_to_integer_zero_scale(self, other, context=None, status=None):
        '''Return the integer part of self / other, with exponent zero.'''
        other = _operand(other)
        op_tuple = (OP_DIVIDE_TO_INTEGER, self, other)
        result = self._integer_quotient(other, op_tuple, context, status)
        if isinstance(result, BigFloat):
            return result
        negative, quotient = result
        return _round(negative, quotient, 0, op_tuple, context, status)

    def divide_to_integer_natural_scale(self, other, context=None, status=None):
        '''Return the integer part of self / other with the exponent closest to the
        difference of the operands' exponents.'''
        other = _operand(other)
        op_tuple = (OP_DIVIDE_TO_INTEGER, self, other)
        result = self._integer_quotient(other, op_tuple, context, status)
        if isinstance(result, BigFloat):
            return result
        negative, quotient = result
        exponent = 0
        ideal_exponent = self.exponent - other.exponent
        if ideal_exponent > 0:
            if quotient:
                exponent = min(_trailing_zeroes(quotient), ideal_exponent)
            else:
                exponent = ideal_exponent
            quotient >>= exponent
        return _round(negative, quotient, exponent, op_tuple, context, status)

    def div_rem(self, other, context=None, status=None):
        '''Return (divide_to_integer_zero_scale, remainder).'''
        return (self.divide_to_integer_zero_scale(other, context, status),
                self.remainder(other, context, status))

    def divide_to_exponent(self, other, exponent, context=None, status=None):
        '''Return self / other rounded to the given exponent with the context's rounding
        mode.  Invalid if the result does not fit the context's precision.'''
        other = _operand(other)
        op_tuple = (OP_DIVIDE_TO_EXPONENT, self, other, exponent)
        negative = self.is_negative() ^ other.is_negative()
        if (self.flags | other.flags) & _SPECIAL:
            if self.is_nan() or other.is_nan():
                return _propagate_nan(op_tuple, context, status)
            if self.is_infinity():
                if other.is_infinity():
                    return InvalidDivide(op_tuple, NAN).signal(context, status)
                return _infinity(negative)
            return BigFloat(0, exponent, NumberFlags.NEGATIVE if negative else _POSITIVE)
        if other.is_zero():
            if self.is_zero():
                return InvalidDivide(op_tuple, NAN).signal(context, status)
            return DivisionByZero(op_tuple, _infinity(negative)).signal(context, status)

        shift = self.exponent - other.exponent - exponent
        numerator, denominator = self.significand, other.significand
        if shift >= 0:
            numerator <<= shift
        else:
            denominator <<= -shift
        quotient, remainder = divmod(numerator, denominator)
        lost_fraction = _lost_fraction_of_division(remainder, denominator)

        rounding = context.rounding if context is not None else ROUND_HALF_EVEN
        if lost_fraction != LF_EXACTLY_ZERO:
            if rounding == ROUND_NONE:
                return InvalidRounding(op_tuple, NAN).signal(context, status)
            if round_up(rounding, lost_fraction, negative, quotient & 1):
                quotient += 1
        if context is not None and quotient:
            if context.precision and quotient.bit_length() > context.precision:
                return InvalidDivide(op_tuple, NAN).signal(context, status)
            if (context.has_exponent_range
                    and not context.etiny <= exponent <= context.e_max - quotient.bit_length() + 1):
                return InvalidDivide(op_tuple, NAN).signal(context, status)

        result = BigFloat(quotient, exponent, NumberFlags.NEGATIVE if negative else _POSITIVE)
        if lost_fraction != LF_EXACTLY_ZERO:
            result = Inexact(op_tuple, result).signal(context, status)
        return result

    def increment(self, context=None, status=None):
        return self.add(ONE, context, status)

    def decrement(self, context=None, status=None):
        return self.subtract(ONE, context, status)

    def scale_by_power_of_two(self, places, context=None, status=None):
        '''Return self * 2^places.'''
        op_tuple = (OP_SCALE, self, places)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return self
        return _round(self.is_negative(), self.significand, self.exponent + places, op_tuple,
                      context, status)

    def move_point_right(self, places, context=None, status=None):
        '''Return self * 2^places.  A positive resulting exponent is folded into the
        significand so the exponent is never above zero.'''
        op_tuple = (OP_SCALE, self, places)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if self.is_infinity():
            return self
        significand, exponent = self.significand, self.exponent + places
        if exponent > 0:
            significand <<= exponent
            exponent = 0
        return _round(self.is_negative(), significand, exponent, op_tuple, context, status)

    def move_point_left(self, places, context=None, status=None):
        '''Return self * 2^-places, as move_point_right does.'''
        return self.move_point_right(-places, context, status)

    #
    # Transcendental functions.  These need a context with a precision and are
    # correctly rounded.
    #

    def sqrt(self, context=None, status=None):
        '''Return the square root of self.  The square root of -0 is -0.'''
        op_tuple = (OP_SQRT, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)
        if self.is_zero():
            return _round(self.is_negative(), 0, self.exponent >> 1, op_tuple, context, status)
        if self.is_negative():
            return InvalidSqrt(op_tuple, NAN).signal(context, status)
        if self.is_infinity():
            return self

        precision = context.precision
        shift = max(0, 2 * (precision + 2) - self.significand.bit_length())
        if (self.exponent - shift) & 1:
            shift += 1
        value = self.significand << shift
        exponent = (self.exponent - shift) // 2
        root = isqrt(value)
        if root * root == value:
            # Exact: strip zero bits back towards the ideal exponent
            ideal_exponent = self.exponent >> 1
            if exponent < ideal_exponent:
                zeroes = min(_trailing_zeroes(root), ideal_exponent - exponent)
                root >>= zeroes
                exponent += zeroes
            return _round(False, root, exponent, op_tuple, context, status)
        # Is the true root above or below root + 1/2?
        if 4 * value > (2 * root + 1) ** 2:
            lost_fraction = LF_MORE_THAN_HALF
        else:
            lost_fraction = LF_LESS_THAN_HALF
        return _round(False, root, exponent, op_tuple, context, status, lost_fraction)

    def exp(self, context=None, status=None):
        '''Return e raised to the power self.'''
        op_tuple = (OP_EXP, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)
        if self.is_infinity():
            return ZERO if self.is_negative() else self
        if self.is_zero():
            return _round(False, 1, 0, op_tuple, context, status)

        precision = context.precision
        if self.exponent + self.significand.bit_length() < -(precision + 4):
            # |self| is so small that e^self rounds as 1 +/- a quarter of half an ULP
            places = precision + 5
            significand = (1 << places) + (-1 if self.is_negative() else 1)
            return _round(False, significand, -places, op_tuple, context, status)
        return _ziv(partial(_fixed.exp, self.mantissa, self.exponent), op_tuple, context,
                    status)

    def log(self, context=None, status=None):
        '''Return the natural logarithm of self.'''
        return self._logarithm(OP_LOG, _fixed.log, context, status)

    def log10(self, context=None, status=None):
        '''Return the base-10 logarithm of self.  Exact for integral powers of ten.'''
        return self._logarithm(OP_LOG10, _fixed.log10, context, status)

    def _logarithm(self, op_name, kernel, context, status):
        op_tuple = (op_name, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)
        if self.is_zero():
            return NEGATIVE_INFINITY
        if self.is_negative():
            return InvalidLog(op_tuple, NAN).signal(context, status)
        if self.is_infinity():
            return self

        zeroes = _trailing_zeroes(self.significand)
        odd_part, twos = self.significand >> zeroes, self.exponent + zeroes
        if odd_part == 1 and twos == 0:
            return _round(False, 0, 0, op_tuple, context, status)
        # 10^k = 5^k * 2^k
        if (op_name == OP_LOG10 and twos > 0 and twos <= odd_part.bit_length()
                and odd_part == 5 ** twos):
            return _round(False, twos, 0, op_tuple, context, status)
        return _ziv(partial(kernel, self.significand, self.exponent), op_tuple, context,
                    status)

    def pow(self, exponent, context=None, status=None):
        '''Return self raised to the power exponent.

        An integral exponent gives an exact power and needs no precision unless its
        magnitude is enormous.  Other exponents need a context with a precision.'''
        other = _operand(exponent)
        op_tuple = (OP_POW, self, other)
        if self.is_nan() or other.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if other.is_zero():
            if self.is_zero():
                return InvalidPower(op_tuple, NAN).signal(context, status)
            return _round(False, 1, 0, op_tuple, context, status)

        integral = other.is_integer()
        power = other.to_integer() if integral else None
        negative = self.is_negative() and integral and power & 1 == 1

        if other.is_infinity():
            if self.is_negative() and not self.is_zero():
                return InvalidPower(op_tuple, NAN).signal(context, status)
            magnitude = self.copy_abs().compare_to(ONE)
            if magnitude == 0:
                return _round(False, 1, 0, op_tuple, context, status)
            if (magnitude > 0) != other.is_negative():
                return POSITIVE_INFINITY
            return ZERO
        if self.is_zero():
            if other.is_negative():
                return _infinity(negative)
            return BigFloat(0, 0, NumberFlags.NEGATIVE if negative else _POSITIVE)
        if self.is_negative() and not integral:
            return InvalidPower(op_tuple, NAN).signal(context, status)
        if self.is_infinity():
            if other.is_negative():
                return BigFloat(0, 0, NumberFlags.NEGATIVE if negative else _POSITIVE)
            return _infinity(negative)

        if integral:
            return self._integer_power(negative, power, op_tuple, context, status)
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)

        # other = numerator / 2^places with numerator odd
        zeroes = _trailing_zeroes(other.significand)
        numerator, places = other.mantissa >> zeroes, -(other.exponent + zeroes)
        root = _dyadic_root(self.significand, self.exponent, places)
        if root is not None:
            return root._integer_power(False, numerator, op_tuple, context, status)
        return _ziv(partial(_fixed.pow, self.significand, self.exponent, other.mantissa,
                            other.exponent), op_tuple, context, status)

    def _integer_power(self, negative, power, op_tuple, context, status):
        zeroes = _trailing_zeroes(self.significand)
        significand, exponent = self.significand >> zeroes, self.exponent + zeroes
        if significand == 1:
            return _round(negative, 1, exponent * power, op_tuple, context, status)
        # Avoid huge exact powers when only a few bits are wanted
        if (context is not None and context.precision
                and significand.bit_length() * abs(power) > 64 * (context.precision + 64)):
            return _ziv(partial(_fixed.pow, significand, exponent, power, 0), op_tuple,
                        context, status, negative)
        if power > 0:
            return _round(negative, significand ** power, exponent * power, op_tuple,
                          context, status)
        power = -power
        return _divide_integers(negative, 1, significand ** power, -exponent * power,
                                op_tuple, context, status)

    #
    # Comparisons
    #

    def compare_to(self, other):
        '''Compare numerically, returning -1, 0 or 1.  A NaN is greater than any number and
        equal to any NaN; -0 equals 0.  None is less than any value.'''
        if other is None:
            return 1
        other = _operand(other)
        if self.is_nan() or other.is_nan():
            return self.is_nan() - other.is_nan()
        return _compare(self, other)

    def compare_to_total(self, other):
        '''The IEEE total order: -NaN < -sNaN < -inf < finite < inf < sNaN < NaN, with
        representations of equal values ordered by exponent.'''
        other = _operand(other)
        if self.is_negative() != other.is_negative():
            return -1 if self.is_negative() else 1
        result = _compare_total_magnitude(self, other)
        return -result if self.is_negative() else result

    def compare_to_total_magnitude(self, other):
        '''As compare_to_total on the absolute values.'''
        return _compare_total_magnitude(self, _operand(other))

    def compare_to_with_context(self, other, context=None, status=None):
        '''Compare numerically returning -1, 0 or 1 as a BigFloat.  A NaN operand gives a
        NaN; a signaling NaN operand also signals invalid.'''
        other = _operand(other)
        op_tuple = (OP_COMPARE, self, other)
        if self.is_nan() or other.is_nan():
            return _propagate_nan(op_tuple, context, status)
        return BigFloat.create(_compare(self, other))

    def compare_to_signal(self, other, context=None, status=None):
        '''As compare_to_with_context but any NaN operand signals invalid.'''
        other = _operand(other)
        op_tuple = (OP_COMPARE_SIGNAL, self, other)
        if self.is_nan() or other.is_nan():
            return InvalidComparison(op_tuple, NAN).signal(context, status)
        return BigFloat.create(_compare(self, other))

    def max(self, other, context=None, status=None):
        '''The larger of the two values.  A quiet NaN loses to a number.'''
        return self._min_max(OP_MAX, other, True, False, context, status)

    def min(self, other, context=None, status=None):
        return self._min_max(OP_MIN, other, False, False, context, status)

    def max_magnitude(self, other, context=None, status=None):
        return self._min_max(OP_MAX_MAG, other, True, True, context, status)

    def min_magnitude(self, other, context=None, status=None):
        return self._min_max(OP_MIN_MAG, other, False, True, context, status)

    def _min_max(self, op_name, other, is_max, magnitude, context, status):
        other = _operand(other)
        op_tuple = (op_name, self, other)
        if self.is_nan() or other.is_nan():
            if self.is_signaling_nan() or other.is_signaling_nan() or (
                    self.is_nan() and other.is_nan()):
                return _propagate_nan(op_tuple, context, status)
            result = other if self.is_nan() else self
            return result._round_to(op_name, context, status)

        result = 0
        if magnitude:
            result = _compare(self.copy_abs(), other.copy_abs())
        if result == 0:
            result = _compare(self, other)
        if result == 0:
            result = self.compare_to_total(other)
        if (result > 0) == is_max:
            chosen = self
        else:
            chosen = other
        return chosen._round_to(op_name, context, status)

    def next_plus(self, context, status=None):
        '''The smallest representable value in the context greater than self.'''
        return self._next(OP_NEXT_PLUS, False, context, status)

    def next_minus(self, context, status=None):
        '''The largest representable value in the context less than self.'''
        return self._next(OP_NEXT_MINUS, True, context, status)

    def next_toward(self, other, context, status=None):
        '''The representable value next to self in the direction of other.'''
        other = _operand(other)
        op_tuple = (OP_NEXT_TOWARD, self, other)
        if self.is_nan() or other.is_nan():
            return _propagate_nan(op_tuple, context, status)
        comparison = _compare(self, other)
        if comparison == 0:
            return self.copy_sign(other)
        result = self._next(OP_NEXT_TOWARD, comparison > 0, context, status)
        if result.is_nan():
            return result
        if result.is_infinity():
            return Overflow(op_tuple, result).signal(context, status)
        if context.has_exponent_range and (result.is_zero()
                                           or result.adjusted_exponent() < context.e_min):
            result = Subnormal(op_tuple, result).signal(context, status)
            result = Underflow(op_tuple, result).signal(context, status)
            if result.is_zero():
                result = Clamped(op_tuple, result).signal(context, status)
        return result

    def _next(self, op_name, downward, context, status):
        op_tuple = (op_name, self)
        if self.is_nan():
            return _propagate_nan(op_tuple, context, status)
        if context is None or not context.precision:
            return InvalidContext(op_tuple, NAN).signal(context, status)
        if self.is_infinity():
            if self.is_negative() == downward or not context.has_exponent_range:
                return self
            largest = BigFloat((1 << context.precision) - 1, context.e_max - context.precision + 1,
                               self.flags & NumberFlags.NEGATIVE)
            return largest

        if context.has_exponent_range:
            exponent = context.etiny - 1
        elif self.is_zero():
            # No smallest positive value without an exponent range
            return InvalidContext(op_tuple, NAN).signal(context, status)
        else:
            top = self.exponent + self.significand.bit_length()
            exponent = min(self.exponent, top - context.precision) - 2
        tiny = BigFloat(1, exponent, NumberFlags.NEGATIVE if downward else _POSITIVE)
        rounding = ROUND_FLOOR if downward else ROUND_CEILING
        return self.add(tiny, context.with_rounding(rounding).with_traps(0))

    #
    # Conversions
    #

    def to_integer(self):
        '''Return the value truncated to a Python int.'''
        self._check_integral_convertible()
        if self.exponent >= 0:
            value = self.significand << self.exponent
        else:
            value = self.significand >> -self.exponent
        return -value if self.is_negative() else value

    def to_integer_if_exact(self):
        '''Return the value as a Python int, raising NotExactError if it has a fractional
        part.'''
        self._check_integral_convertible()
        if self.exponent < 0:
            if self.significand & 1 or not self.is_integer():
                raise NotExactError(f'{self} is not an integer')
        return self.to_integer()

    def _check_integral_convertible(self):
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer')
        if self.is_infinity():
            raise OverflowError('cannot convert infinity to integer')

    def _to_fixed_width(self, bits, checked, exact):
        self._check_integral_convertible()
        if exact:
            self.to_integer_if_exact()
        if self.significand and self.exponent + self.significand.bit_length() > bits:
            if checked:
                raise OverflowError(f'{self} does not fit in {bits} bits')
            if self.exponent >= bits:
                return 0
        value = self.to_integer()
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        if low <= value <= high:
            return value
        if checked:
            raise OverflowError(f'{self} does not fit in {bits} bits')
        value &= (1 << bits) - 1
        return value - (1 << bits) if value > high else value

    def to_int64_checked(self):
        return self._to_fixed_width(64, True, False)

    def to_int64_unchecked(self):
        '''The low 64 bits of the truncated value as a two's complement integer.'''
        return self._to_fixed_width(64, False, False)

    def to_int64_if_exact(self):
        return self._to_fixed_width(64, True, True)

    def to_int32_checked(self):
        return self._to_fixed_width(32, True, False)

    def to_int32_unchecked(self):
        return self._to_fixed_width(32, False, False)

    def to_int32_if_exact(self):
        return self._to_fixed_width(32, True, True)

    def as_integer_ratio(self):
        '''Return a pair of integers in lowest terms whose ratio is the value.'''
        self._check_integral_convertible()
        if self.exponent >= 0:
            return self.mantissa << self.exponent, 1
        zeroes = min(_trailing_zeroes(self.significand), -self.exponent)
        return self.mantissa >> zeroes, 1 << (-self.exponent - zeroes)

    def to_fraction(self):
        return Fraction(*self.as_integer_ratio())

    def to_decimal(self):
        '''Return the exact Decimal value.  NaN payloads and signs are kept.'''
        sign = int(self.is_negative())
        if self.is_nan():
            digits = Decimal(self.significand).as_tuple().digits if self.significand else ()
            return Decimal((sign, digits, 'N' if self.is_signaling_nan() else 'n'))
        if self.is_infinity():
            return Decimal((sign, (0, ), 'F'))
        if self.exponent >= 0:
            result = Decimal(self.significand << self.exponent)
        else:
            # m * 2^-k = m * 5^k * 10^-k
            result = exact_context().scaleb(Decimal(self.significand * 5 ** -self.exponent),
                                            self.exponent)
        return result.copy_negate() if sign else result

    def to_double_bits(self):
        '''The IEEE double encoding of the value rounded half-even, as an unsigned integer.'''
        return self._to_ieee_bits(BINARY64, 11)

    def to_single_bits(self):
        '''The IEEE single encoding of the value rounded half-even, as an unsigned integer.'''
        return self._to_ieee_bits(BINARY32, 8)

    def to_float(self):
        return unpack_double(pack_uint64(self.to_double_bits()))[0]

    def to_single(self):
        '''The value rounded to single precision, as a Python float.  A signaling NaN may
        come back quiet.'''
        return unpack_single(pack_uint32(self.to_single_bits()))[0]

    def _to_ieee_bits(self, context, e_width):
        precision = context.precision
        fraction_bits = precision - 1
        e_all = (1 << e_width) - 1
        if self.is_nan():
            quiet_bit = 1 << (fraction_bits - 1)
            payload = self.significand & (quiet_bit - 1)
            if self.is_quiet_nan():
                payload |= quiet_bit
            elif payload == 0:
                # Keep the encoding from being an infinity
                payload = quiet_bit >> 1
            bits = (e_all << fraction_bits) | payload
        else:
            value = self.round_to_precision(context)
            if value.is_infinity():
                bits = e_all << fraction_bits
            elif value.is_zero():
                bits = 0
            else:
                significand, exponent = value.significand, value.exponent
                shift = min(precision - significand.bit_length(), exponent - context.etiny)
                significand <<= shift
                exponent -= shift
                if significand >> fraction_bits:
                    e_field = exponent - context.etiny + 1
                    significand &= (1 << fraction_bits) - 1
                else:
                    e_field = 0
                bits = (e_field << fraction_bits) | significand
        if self.is_negative():
            bits |= 1 << (fraction_bits + e_width)
        return bits

    #
    # Strings
    #

    def to_string(self):
        '''Decimal scientific notation of the exact value, e.g. "1.25", "1.5E+3",
        "-Infinity", "NaN12".'''
        return str(self.to_decimal())

    def to_plain_string(self):
        '''The exact value without an exponent.'''
        if not self.is_finite():
            return self.to_string()
        return format(self.to_decimal(), 'f')

    def to_engineering_string(self):
        return self.to_decimal().to_eng_string()

    def to_shortest_string(self, context=None):
        '''Return the shortest decimal string that converts back to this value rounded by the
        context.  Without a precision this is to_string().'''
        if context is None or not context.precision:
            return self.to_string()
        if self.is_nan():
            return BigFloat.create_nan(self.significand, self.is_signaling_nan(),
                                       self.is_negative(), context).to_string()
        quiet = context.with_traps(0)
        rounded = self.round_to_precision(quiet)
        if not rounded.is_finite() or rounded.is_zero():
            return rounded.to_string()

        # Every decimal that rounds to `rounded` lies in one interval around it, so
        # at each length the two nearest neighbours are the only candidates
        value = rounded.to_decimal()
        exact = exact_context()
        digits = 0
        while True:
            digits += 1
            below = _decimal_context(digits, decimal.ROUND_FLOOR).plus(value)
            above = _decimal_context(digits, decimal.ROUND_CEILING).plus(value)
            if exact.subtract(value, below) > exact.subtract(above, value):
                below, above = above, below
            for candidate in (below, above):
                if BigFloat.from_decimal(candidate, quiet).compare_to(rounded) == 0:
                    if candidate.as_tuple().exponent > 0 and abs(candidate) < 10000000:
                        return format(candidate, 'f')
                    return str(candidate)

    #
    # Python protocols
    #

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return f"BigFloat('{self.to_string()}')"

    def __neg__(self):
        return self.copy_negate()

    def __pos__(self):
        return self

    def __abs__(self):
        return self.copy_abs()

    def __eq__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == 0

    def __ne__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare != 0

    def __lt__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == -1

    def __le__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare in (-1, 0)

    def __ge__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare in (0, 1)

    def __gt__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == 1

    def __hash__(self):
        '''Python hash.  Equal to the hash of other numeric types with the same value.'''
        if self.is_infinity():
            return -314159 if self.is_negative() else 314159
        if self.is_nan():
            return 0
        return _hash_dyadic(self.is_negative(), self.significand, self.exponent)

    def __bool__(self):
        return not self.is_zero()

    def __int__(self):
        return self.to_integer()

    def __trunc__(self):
        return self.to_integer()

    def __floor__(self):
        return self.round_to_integer_no_rounded_flag(Context(rounding=ROUND_FLOOR)).to_integer()

    def __ceil__(self):
        return self.round_to_integer_no_rounded_flag(Context(rounding=ROUND_CEILING)).to_integer()

    def __float__(self):
        return self.to_float()

    def __add__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.add(other, get_context())

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.subtract(other, get_context())

    def __rsub__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return other.subtract(self, get_context())

    def __mul__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.multiply(other, get_context())

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.divide(other, get_context())

    def __rtruediv__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return other.divide(self, get_context())

    def __mod__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.remainder(other, get_context())

    def __rmod__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return other.remainder(self, get_context())

    def __pow__(self, other):
        other = _convert_for_arith(other)
        if other is None:
            return NotImplemented
        return self.pow(other, get_context())

    def _quieted(self):
        return BigFloat(self.significand, 0, (self.flags & NumberFlags.NEGATIVE)
                        | NumberFlags.QUIET_NAN)


#
# Internal helper routines
#

def _trailing_zeroes(value):
    '''The number of trailing zero bits of a positive integer; 0 for zero.'''
    return (value & -value).bit_length() - 1 if value else 0


def lost_bits_from_rshift(significand, bits):
    '''Return what the lost bits would be were the significand shifted right the given number
    of bits (negative is a left shift).
    '''
    if bits <= 0:
        return LF_EXACTLY_ZERO
    # Prevent over-large shifts consuming memory
    bits = min(bits, significand.bit_length() + 2)
    bit_mask = 1 << (bits - 1)
    first_bit = bool(significand & bit_mask)
    second_bit = bool(significand & (bit_mask - 1))
    return first_bit * 2 + second_bit


def shift_right(significand, bits):
    '''Return the significand shifted right a given number of bits (left if bits is negative),
    and the fraction that is lost doing so.
    '''
    if bits <= 0:
        result = significand << -bits
    else:
        result = significand >> bits
    return result, lost_bits_from_rshift(significand, bits)


def combine_lost_fractions(more_significant, less_significant):
    '''Combine the fraction lost by a right shift with a fraction already lost below it.'''
    if less_significant != LF_EXACTLY_ZERO:
        if more_significant == LF_EXACTLY_ZERO:
            return LF_LESS_THAN_HALF
        if more_significant == LF_EXACTLY_HALF:
            return LF_MORE_THAN_HALF
    return more_significant


def round_up(rounding, lost_fraction, negative, is_odd):
    '''Return True if, when an operation is inexact, the result should be rounded up (i.e.,
    away from zero by incrementing the significand).

    is_odd indicates if the LSB of the new significand is set, which ties-to-even and
    round-to-odd need.
    '''
    if lost_fraction == LF_EXACTLY_ZERO:
        return False

    if rounding == ROUND_HALF_EVEN:
        if lost_fraction == LF_EXACTLY_HALF:
            return bool(is_odd)
        return lost_fraction == LF_MORE_THAN_HALF
    elif rounding == ROUND_CEILING:
        return not negative
    elif rounding == ROUND_FLOOR:
        return negative
    elif rounding in (ROUND_DOWN, ROUND_NONE):
        return False
    elif rounding == ROUND_UP:
        return True
    elif rounding == ROUND_HALF_DOWN:
        return lost_fraction == LF_MORE_THAN_HALF
    elif rounding == ROUND_ODD:
        return not is_odd
    else:
        return lost_fraction != LF_LESS_THAN_HALF


def _lost_fraction_of_division(remainder, divisor):
    if remainder == 0:
        return LF_EXACTLY_ZERO
    twice = remainder * 2
    if twice < divisor:
        return LF_LESS_THAN_HALF
    if twice == divisor:
        return LF_EXACTLY_HALF
    return LF_MORE_THAN_HALF


def _infinity(negative):
    return NEGATIVE_INFINITY if negative else POSITIVE_INFINITY


def _round(negative, significand, exponent, op_tuple, context, status,
           lost_fraction=LF_EXACTLY_ZERO):
    '''Return (-1)^negative * significand * 2^exponent rounded by the context, signalling
    as appropriate.  lost_fraction describes the part of the infinitely precise result
    below the significand's LSB.'''
    flags = NumberFlags.NEGATIVE if negative else _POSITIVE
    if context is None:
        return BigFloat(significand, exponent, flags)

    precision = context.precision
    has_range = context.has_exponent_range

    if significand == 0 and lost_fraction == LF_EXACTLY_ZERO:
        if has_range:
            top = context.etop if context.clamp else context.e_max
            clamped = min(max(exponent, context.etiny), top)
            if clamped != exponent:
                return Clamped(op_tuple, BigFloat(0, clamped, flags)).signal(context, status)
        return BigFloat(0, exponent, flags)

    size = significand.bit_length()
    is_tiny = has_range and (significand == 0 or exponent + size - 1 < context.e_min)

    # The exponent of the result's LSB before any carry
    target = exponent
    if precision and size > precision:
        target = exponent + size - precision
    if has_range and target < context.etiny:
        target = context.etiny

    is_rounded = target > exponent or lost_fraction != LF_EXACTLY_ZERO
    if is_rounded:
        significand, shifted_out = shift_right(significand, target - exponent)
        lost_fraction = combine_lost_fractions(shifted_out, lost_fraction)
        if lost_fraction != LF_EXACTLY_ZERO:
            if context.rounding == ROUND_NONE:
                return InvalidRounding(op_tuple, NAN).signal(context, status)
            if round_up(context.rounding, lost_fraction, negative, significand & 1):
                significand += 1
                if precision and significand.bit_length() > precision:
                    significand >>= 1
                    target += 1
        exponent = target
    is_inexact = lost_fraction != LF_EXACTLY_ZERO

    if has_range and significand and exponent + significand.bit_length() - 1 > context.e_max:
        if context.rounding == ROUND_NONE:
            return InvalidRounding(op_tuple, NAN).signal(context, status)
        # Round-to-odd treats the largest finite value, which is odd, as already rounded
        if precision and not round_up(context.rounding, LF_MORE_THAN_HALF, negative, True):
            result = BigFloat((1 << precision) - 1, context.e_max - precision + 1, flags)
        else:
            result = BigFloat(0, 0, flags | NumberFlags.INFINITY)
        return Overflow(op_tuple, result).signal(context, status)

    is_clamped = False
    if has_range and context.clamp and exponent > context.etop:
        if significand:
            significand <<= exponent - context.etop
        exponent = context.etop
        is_clamped = True

    result = BigFloat(significand, exponent, flags)
    if is_tiny:
        result = Subnormal(op_tuple, result).signal(context, status)
        if is_inexact:
            result = Underflow(op_tuple, result).signal(context, status)
            if not significand:
                is_clamped = True
        elif is_rounded:
            result = Rounded(op_tuple, result).signal(context, status)
    elif is_inexact:
        result = Inexact(op_tuple, result).signal(context, status)
    elif is_rounded:
        result = Rounded(op_tuple, result).signal(context, status)
    if is_clamped:
        result = Clamped(op_tuple, result).signal(context, status)
    return result


def _propagate_nan(op_tuple, context, status):
    '''Return the NaN result of an operation with a NaN operand.  The first signaling NaN
    takes precedence, and is quieted and signals invalid.'''
    nans = [operand for operand in op_tuple[1:]
            if isinstance(operand, BigFloat) and operand.is_nan()]
    snans = [nan for nan in nans if nan.is_signaling_nan()]
    nan = (snans or nans)[0]
    payload = nan.significand
    if context is not None and context.precision:
        payload &= (1 << context.precision) - 1
    result = BigFloat(payload, 0, (nan.flags & NumberFlags.NEGATIVE) | NumberFlags.QUIET_NAN)
    if snans:
        result = SignalingNaNOperand(op_tuple, result).signal(context, status)
    return result


def _divide_integers(negative, numerator, denominator, exponent, op_tuple, context, status):
    '''Return (-1)^negative * numerator / denominator * 2^exponent for positive integers,
    rounded by the context.  Exact quotients keep the given exponent where they can.
    Without a precision the quotient must have a terminating binary expansion, otherwise
    the result is a NaN and invalid is signalled.'''
    if context is not None and context.precision:
        shift = max(0, context.precision + 2 - (numerator.bit_length()
                                                 - denominator.bit_length()))
        quotient, remainder = divmod(numerator << shift, denominator)
        exponent -= shift
        if remainder == 0:
            zeroes = min(_trailing_zeroes(quotient), shift)
            return _round(negative, quotient >> zeroes, exponent + zeroes, op_tuple, context,
                          status)
        lost_fraction = _lost_fraction_of_division(remainder, denominator)
        return _round(negative, quotient, exponent, op_tuple, context, status, lost_fraction)

    divisor = gcd(numerator, denominator)
    numerator //= divisor
    denominator //= divisor
    if denominator & (denominator - 1):
        return InvalidDivide(op_tuple, NAN).signal(context, status)
    return _round(negative, numerator, exponent - denominator.bit_length() + 1, op_tuple,
                  context, status)


def _from_ratio(negative, numerator, denominator, op_tuple, context, status):
    '''Convert a ratio of integers in lowest terms.  Without a precision, a ratio with no
    terminating binary expansion is rounded half-even to a precision its size suggests.'''
    if denominator & (denominator - 1) and (context is None or not context.precision):
        precision = max(53, numerator.bit_length() + 2, denominator.bit_length() + 2)
        context = (context or UNLIMITED).with_precision(precision).with_rounding(
            ROUND_HALF_EVEN)
    if numerator == 0:
        return _round(negative, 0, 0, op_tuple, context, status)
    return _divide_integers(negative, numerator, denominator, 0, op_tuple, context, status)


def _dyadic_root(significand, exponent, places):
    '''Return the exact 2^places-th root of significand * 2^exponent, or None if it is not
    a BigFloat.'''
    for _ in range(places):
        if exponent & 1:
            significand <<= 1
            exponent -= 1
        root = isqrt(significand)
        if root * root != significand:
            return None
        significand, exponent = root, exponent // 2
    return BigFloat(significand, exponent)


def _ziv(approximate, op_tuple, context, status, negative=None):
    '''Correctly round a transcendental result.

    approximate(bits) returns (approx, exponent, error) as the _fixed kernels do.  The
    working precision grows until both ends of the error interval round to the same value.
    '''
    if context.rounding == ROUND_NONE:
        # These results are never exact
        return InvalidRounding(op_tuple, NAN).signal(context, status)
    quiet = context.with_traps(0)
    bits = context.precision + 24
    for _attempt in range(_ZIV_ATTEMPTS):
        approx, exponent, error = approximate(bits)
        result_negative = approx < 0 if negative is None else negative
        approx = abs(approx)
        if error >= approx:
            bits = context.precision + (bits - context.precision) * 2
            continue
        # Odd significands one bit further down lie strictly inside the interval, so they
        # carry its sticky bit
        low = _round(result_negative, 2 * (approx - error) + 1, exponent - 1, op_tuple, quiet,
                     None)
        high = _round(result_negative, 2 * (approx + error) - 1, exponent - 1, op_tuple, quiet,
                      None)
        if tuple(low) == tuple(high):
            break
        bits = context.precision + (bits - context.precision) * 2
    return _round(result_negative, 2 * approx + 1, exponent - 1, op_tuple, context, status)


def _compare_magnitudes(lhs, rhs):
    '''Compare the absolute values of two finite BigFloats.'''
    if not lhs.significand or not rhs.significand:
        return bool(lhs.significand) - bool(rhs.significand)
    lhs_top = lhs.exponent + lhs.significand.bit_length()
    rhs_top = rhs.exponent + rhs.significand.bit_length()
    if lhs_top != rhs_top:
        return 1 if lhs_top > rhs_top else -1
    # Equal tops bound the shifts by the significand sizes
    if lhs.exponent >= rhs.exponent:
        lhs_sig, rhs_sig = lhs.significand << (lhs.exponent - rhs.exponent), rhs.significand
    else:
        lhs_sig, rhs_sig = lhs.significand, rhs.significand << (rhs.exponent - lhs.exponent)
    return (lhs_sig > rhs_sig) - (lhs_sig < rhs_sig)


def _compare(lhs, rhs):
    '''Numeric comparison of two BigFloats neither of which is a NaN.'''
    if lhs.is_infinity() or rhs.is_infinity():
        lhs_rank = 0 if lhs.is_finite() else lhs.sign
        rhs_rank = 0 if rhs.is_finite() else rhs.sign
        return (lhs_rank > rhs_rank) - (lhs_rank < rhs_rank)
    lhs_sign, rhs_sign = lhs.sign, rhs.sign
    if lhs_sign != rhs_sign:
        return 1 if lhs_sign > rhs_sign else -1
    if lhs_sign == 0:
        return 0
    result = _compare_magnitudes(lhs, rhs)
    return result if lhs_sign > 0 else -result


def _total_rank(value):
    if value.is_quiet_nan():
        return 3
    if value.is_signaling_nan():
        return 2
    if value.is_infinity():
        return 1
    return 0


def _compare_total_magnitude(lhs, rhs):
    lhs_rank, rhs_rank = _total_rank(lhs), _total_rank(rhs)
    if lhs_rank != rhs_rank:
        return 1 if lhs_rank > rhs_rank else -1
    if lhs.is_nan():
        return (lhs.significand > rhs.significand) - (lhs.significand < rhs.significand)
    if lhs.is_infinity():
        return 0
    result = _compare_magnitudes(lhs, rhs)
    if result:
        return result
    return (lhs.exponent > rhs.exponent) - (lhs.exponent < rhs.exponent)


def _operand(value):
    '''Convert an operand of a BigFloat method.'''
    if isinstance(value, BigFloat):
        return value
    if value is None:
        raise TypeError('operand cannot be None')
    converted = _convert_for_arith(value)
    if converted is None:
        raise TypeError(f'cannot use a {type(value).__name__} as a BigFloat operand')
    return converted


def _convert_for_arith(value):
    if isinstance(value, BigFloat):
        return value
    if isinstance(value, int):
        return BigFloat.from_int(value)
    if isinstance(value, float):
        return BigFloat.from_float(value)
    return None


def _compare_any(value, other):
    '''LHS is a BigFloat.  RHS is any type.  Return -1, 0, 1, UNORDERED or None if other
    is not a number.'''
    if isinstance(other, float):
        other = BigFloat.from_float(other)
    elif isinstance(other, Decimal):
        if value.is_nan() or other.is_nan():
            return UNORDERED
        return -compare_to_binary(other, value)
    if isinstance(other, BigFloat):
        if value.is_nan() or other.is_nan():
            return UNORDERED
        return _compare(value, other)
    if isinstance(other, (Fraction, int)):
        if value.is_nan():
            return UNORDERED
        if value.is_infinity():
            return value.sign
        # Compare both sides as fractions to keep the comparison exact
        a, b = value.as_integer_ratio()
        if isinstance(other, int):
            c, d = other, 1
        else:
            c, d = other.numerator, other.denominator
        diff = a * d - b * c
        return (diff > 0) - (diff < 0)
    return None

def _hash_dyadic(negative, significand, exponent):
    '''Python's numeric hash of significand * 2**exponent, reduced modulo the hash prime
    without forming the value.'''
    modulus = sys.hash_info.modulus
    result = significand % modulus * pow(2, exponent, modulus) % modulus
    if negative:
        result = -result
    return -2 if result == -1 else result


def _decimal_context(digits, rounding):
    return decimal.Context(prec=digits, rounding=rounding, Emax=decimal.MAX_EMAX,
                           Emin=decimal.MIN_EMIN, traps=[])


pack_double, unpack_double = Struct('<d').pack, Struct('<d').unpack
pack_single, unpack_single = Struct('<f').pack, Struct('<f').unpack
pack_uint64, unpack_uint64 = Struct('<Q').pack, Struct('<Q').unpack
pack_uint32, unpack_uint32 = Struct('<I').pack, Struct('<I').unpack

DEC_FLOAT_REGEX = re.compile(
    # sign[opt]
    '[-+]?('
    # (dec-integer[opt].fraction or dec-integer.[opt])
    '(([0-9]*)\\.([0-9]+)|([0-9]+)\\.?)'
    # e sign[opt]dec-exponent   [opt]
    '(e([-+]?[0-9]+))?|'
    # inf or infinity
    '(inf(inity)?)|'
    # nan-or-snan dec-payload[opt]
    '((s?)nan([0-9]+)?))$',
    re.ASCII | re.IGNORECASE
)

NAN = BigFloat(0, 0, NumberFlags.QUIET_NAN)
SIGNALING_NAN = BigFloat(0, 0, NumberFlags.SIGNALING_NAN)
POSITIVE_INFINITY = BigFloat(0, 0, NumberFlags.INFINITY)
NEGATIVE_INFINITY = BigFloat(0, 0, NumberFlags.INFINITY | NumberFlags.NEGATIVE)
ZERO = BigFloat(0)
NEGATIVE_ZERO = BigFloat(0, 0, NumberFlags.NEGATIVE)
ONE = BigFloat(1)

BigFloat.NAN = NAN
BigFloat.SIGNALING_NAN = SIGNALING_NAN
BigFloat.POSITIVE_INFINITY = POSITIVE_INFINITY
BigFloat.NEGATIVE_INFINITY = NEGATIVE_INFINITY
BigFloat.ZERO = ZERO
BigFloat.NEGATIVE_ZERO = NEGATIVE_ZERO
BigFloat.ONE = ONE
