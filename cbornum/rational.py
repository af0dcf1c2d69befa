#
# Arbitrary-precision rational numbers
#

from decimal import Decimal
from fractions import Fraction
from math import gcd

import attr

from .bigfloat import BigFloat, NumberFlags
from . import decimals

__all__ = ('BigRational', )


_SPECIAL = NumberFlags.INFINITY | NumberFlags.QUIET_NAN | NumberFlags.SIGNALING_NAN
_NAN = NumberFlags.QUIET_NAN | NumberFlags.SIGNALING_NAN


@attr.s(slots=True, frozen=True, order=False)
class BigRational:
    '''An immutable rational number with a separate sign, infinities and NaNs.

    Finite values are always in lowest terms with a positive denominator; zero is 0/1 and
    keeps its sign.  Infinities are 0/1 and NaNs carry their payload in the numerator over
    a denominator of 1.
    '''
    numerator = attr.ib()
    denominator = attr.ib(default=1)
    flags = attr.ib(default=NumberFlags(0), converter=NumberFlags)

    @numerator.validator
    def _check_numerator(self, _attribute, value):
        if not isinstance(value, int):
            raise TypeError('numerator must be an integer')
        if value < 0:
            raise ValueError(f'numerator cannot be negative: {value}')

    @denominator.validator
    def _check_denominator(self, _attribute, value):
        if not isinstance(value, int):
            raise TypeError('denominator must be an integer')
        if value <= 0:
            raise ValueError(f'denominator must be positive: {value}')
        if gcd(self.numerator, value) != 1 and not (self.numerator == 0 and value == 1):
            raise ValueError(f'{self.numerator}/{value} is not in lowest terms')

    @flags.validator
    def _check_flags(self, _attribute, value):
        special = value & _SPECIAL
        if special & (special - 1):
            raise ValueError(f'inconsistent flags: {value!r}')
        if special and self.denominator != 1:
            raise ValueError('an infinity or NaN has denominator 1')
        if special == NumberFlags.INFINITY and self.numerator:
            raise ValueError('an infinity has numerator 0')

    #
    # Constructors
    #

    @classmethod
    def create(cls, numerator, denominator=1):
        '''Return numerator / denominator reduced to lowest terms.  Both are signed
        integers.'''
        if numerator is None or denominator is None:
            raise TypeError('numerator and denominator cannot be None')
        if denominator == 0:
            raise ValueError('denominator cannot be zero')
        negative = (numerator < 0) != (denominator < 0)
        numerator, denominator = abs(numerator), abs(denominator)
        divisor = gcd(numerator, denominator)
        return cls(numerator // divisor, denominator // divisor,
                   NumberFlags.NEGATIVE if negative and numerator else NumberFlags(0))

    @classmethod
    def create_nan(cls, payload=0, signaling=False, negative=False):
        if payload < 0:
            raise ValueError(f'NaN payload cannot be negative: {payload}')
        flags = NumberFlags.SIGNALING_NAN if signaling else NumberFlags.QUIET_NAN
        if negative:
            flags |= NumberFlags.NEGATIVE
        return cls(payload, 1, flags)

    @classmethod
    def infinity(cls, negative=False):
        flags = NumberFlags.INFINITY
        if negative:
            flags |= NumberFlags.NEGATIVE
        return cls(0, 1, flags)

    @classmethod
    def from_int(cls, value):
        if not isinstance(value, int):
            raise TypeError(f'expected an integer, not {type(value).__name__}')
        return cls.create(value)

    @classmethod
    def from_fraction(cls, value, negative_zero=False):
        if not isinstance(value, Fraction):
            raise TypeError(f'expected a Fraction, not {type(value).__name__}')
        negative = value < 0 or (negative_zero and not value)
        return cls(abs(value.numerator), value.denominator,
                   NumberFlags.NEGATIVE if negative else NumberFlags(0))

    @classmethod
    def from_decimal(cls, value):
        '''Convert a Decimal exactly.'''
        if not isinstance(value, Decimal):
            raise TypeError(f'expected a Decimal, not {type(value).__name__}')
        negative = value.is_signed()
        if value.is_nan():
            digits = value.as_tuple().digits
            payload = int(Decimal((0, digits, 0))) if digits else 0
            return cls.create_nan(payload, value.is_snan(), negative)
        if value.is_infinite():
            return cls.infinity(negative)
        return cls.from_fraction(Fraction(value), negative)

    @classmethod
    def from_bigfloat(cls, value):
        '''Convert a BigFloat exactly.'''
        if not isinstance(value, BigFloat):
            raise TypeError(f'expected a BigFloat, not {type(value).__name__}')
        negative = value.is_negative()
        if value.is_nan():
            return cls.create_nan(value.significand, value.is_signaling_nan(), negative)
        if value.is_infinity():
            return cls.infinity(negative)
        return cls.from_fraction(value.to_fraction(), negative)

    @classmethod
    def from_float(cls, value):
        return cls.from_bigfloat(BigFloat.from_float(value))

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
        return self.is_infinity() and not self.is_negative()

    def is_negative_infinity(self):
        return self.is_infinity() and self.is_negative()

    def is_nan(self):
        return bool(self.flags & _NAN)

    def is_quiet_nan(self):
        return bool(self.flags & NumberFlags.QUIET_NAN)

    def is_signaling_nan(self):
        return bool(self.flags & NumberFlags.SIGNALING_NAN)

    def is_zero(self):
        return self.numerator == 0 and self.is_finite()

    def is_integer(self):
        return self.is_finite() and self.denominator == 1

    @property
    def sign(self):
        '''-1, 0 or 1.  A NaN has the sign given by its sign flag.'''
        if self.is_zero():
            return 0
        return -1 if self.is_negative() else 1

    #
    # Arithmetic.  Results are exact; special values follow the rules of binary and
    # decimal floating point.
    #

    def negate(self):
        return attr.evolve(self, flags=self.flags ^ NumberFlags.NEGATIVE)

    def abs(self):
        return attr.evolve(self, flags=self.flags & ~NumberFlags.NEGATIVE)

    def add(self, other):
        return self._add_sub(_operand(other), False)

    def subtract(self, other):
        return self._add_sub(_operand(other), True)

    def _add_sub(self, other, is_subtract):
        lhs_negative = self.is_negative()
        rhs_negative = other.is_negative() ^ is_subtract
        if not (self.is_finite() and other.is_finite()):
            if self.is_nan() or other.is_nan():
                return _propagate_nan(self, other)
            if self.is_infinity():
                if other.is_infinity() and lhs_negative != rhs_negative:
                    return NAN
                return self
            return BigRational.infinity(rhs_negative)
        result = self.to_fraction() + (-other.to_fraction() if is_subtract else other.to_fraction())
        if not result:
            # Zeroes of like sign keep it
            return BigRational.from_fraction(result, lhs_negative and rhs_negative)
        return BigRational.from_fraction(result)

    def multiply(self, other):
        other = _operand(other)
        negative = self.is_negative() ^ other.is_negative()
        if not (self.is_finite() and other.is_finite()):
            if self.is_nan() or other.is_nan():
                return _propagate_nan(self, other)
            if self.is_zero() or other.is_zero():
                return NAN
            return BigRational.infinity(negative)
        return BigRational.from_fraction(self.to_fraction() * other.to_fraction(), negative)

    def divide(self, other):
        '''Exact quotient.  x/0 is a signed infinity for x != 0, and 0/0 a NaN.'''
        other = _operand(other)
        negative = self.is_negative() ^ other.is_negative()
        if not (self.is_finite() and other.is_finite()):
            if self.is_nan() or other.is_nan():
                return _propagate_nan(self, other)
            if self.is_infinity():
                if other.is_infinity():
                    return NAN
                return BigRational.infinity(negative)
            return BigRational.from_fraction(Fraction(0), negative)
        if other.is_zero():
            if self.is_zero():
                return NAN
            return BigRational.infinity(negative)
        return BigRational.from_fraction(self.to_fraction() / other.to_fraction(), negative)

    def remainder(self, other):
        '''Remainder with the quotient truncated towards zero; it has the sign of self.'''
        other = _operand(other)
        if self.is_nan() or other.is_nan():
            return _propagate_nan(self, other)
        if self.is_infinity() or other.is_zero():
            return NAN
        if other.is_infinity():
            return self
        lhs, rhs = abs(self.to_fraction()), abs(other.to_fraction())
        return BigRational.from_fraction(-(lhs % rhs) if self.is_negative() else lhs % rhs,
                                         self.is_negative())

    #
    # Comparisons
    #

    def compare_to(self, other):
        '''Compare numerically returning -1, 0 or 1.  A NaN is greater than any number and
        equal to any NaN.  None is less than any value.'''
        if other is None:
            return 1
        other = _operand(other)
        if self.is_nan() or other.is_nan():
            return self.is_nan() - other.is_nan()
        lhs_rank, rhs_rank = _infinite_rank(self), _infinite_rank(other)
        if lhs_rank or rhs_rank:
            return (lhs_rank > rhs_rank) - (lhs_rank < rhs_rank)
        lhs, rhs = self.to_fraction(), other.to_fraction()
        return (lhs > rhs) - (lhs < rhs)

    def compare_to_decimal(self, value):
        return self.compare_to(BigRational.from_decimal(value))

    def compare_to_binary(self, value):
        return self.compare_to(BigRational.from_bigfloat(value))

    #
    # Conversions
    #

    def to_fraction(self):
        '''The value as a Fraction.  A zero loses its sign.'''
        if not self.is_finite():
            raise ValueError(f'cannot convert {self} to a Fraction')
        return Fraction(-self.numerator if self.is_negative() else self.numerator,
                        self.denominator)

    def to_integer(self):
        '''The value truncated to an int.'''
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer')
        if self.is_infinity():
            raise OverflowError('cannot convert infinity to integer')
        value = self.numerator // self.denominator
        return -value if self.is_negative() else value

    def _special_decimal(self):
        sign = int(self.is_negative())
        if self.is_infinity():
            return Decimal((sign, (0, ), 'F'))
        digits = Decimal(self.numerator).as_tuple().digits if self.numerator else ()
        return Decimal((sign, digits, 'N' if self.is_signaling_nan() else 'n'))

    def to_decimal(self, context=None):
        '''Convert to a Decimal.  Without a decimal context the result is exact, or a NaN
        if the value has no terminating decimal expansion.'''
        if not self.is_finite():
            return self._special_decimal()
        numerator = Decimal(-self.numerator if self.is_negative() else self.numerator)
        if self.is_negative() and not self.numerator:
            numerator = numerator.copy_negate()
        if context is None:
            return decimals.divide(numerator, Decimal(self.denominator))
        return context.divide(numerator, Decimal(self.denominator))

    def to_decimal_exact_if_possible(self, context=None):
        '''The exact decimal value if there is one, otherwise the value rounded by context,
        by default decimal128.'''
        result = self.to_decimal()
        if result.is_nan() and self.is_finite():
            return self.to_decimal(context or decimals.DECIMAL128_CONTEXT.copy())
        return result

    def to_bigfloat(self, context=None, status=None):
        '''Convert to a BigFloat rounded by the context.'''
        if self.is_nan():
            return BigFloat.create_nan(self.numerator, self.is_signaling_nan(),
                                       self.is_negative(), context)
        if self.is_infinity():
            return BigFloat.NEGATIVE_INFINITY if self.is_negative() else BigFloat.POSITIVE_INFINITY
        if self.is_zero():
            return BigFloat.NEGATIVE_ZERO if self.is_negative() else BigFloat.ZERO
        return BigFloat.from_fraction(self.to_fraction(), context, status)

    def to_string(self):
        '''"n/d" for finite values, else "Infinity", "-Infinity", "NaN", "sNaN" with any
        payload.'''
        if not self.is_finite():
            return str(self._special_decimal())
        sign = '-' if self.is_negative() else ''
        return f'{sign}{self.numerator}/{self.denominator}'

    def __str__(self):
        return self.to_string()


def _operand(value):
    if isinstance(value, BigRational):
        return value
    if value is None:
        raise TypeError('operand cannot be None')
    if isinstance(value, int):
        return BigRational.from_int(value)
    if isinstance(value, Fraction):
        return BigRational.from_fraction(value)
    raise TypeError(f'cannot use a {type(value).__name__} as a BigRational operand')


def _propagate_nan(lhs, rhs):
    nan = lhs if lhs.is_nan() else rhs
    if nan.is_signaling_nan():
        return BigRational.create_nan(nan.numerator, False, nan.is_negative())
    return nan


def _infinite_rank(value):
    if not value.is_infinity():
        return 0
    return -1 if value.is_negative() else 1


NAN = BigRational(0, 1, NumberFlags.QUIET_NAN)
