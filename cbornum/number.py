#
# A number of any of the kinds CBOR can carry, with exact mixed-kind arithmetic
#

import decimal
import math
import operator
from decimal import Decimal
from fractions import Fraction
from functools import partial

import attr

from . import decimals
from .adapters import Kind, adapter_for, fits_int64, INT32_MIN, INT32_MAX, INT64_MIN, INT64_MAX
from .bigfloat import BigFloat
from .context import BINARY64, NotExactError
from .rational import BigRational

__all__ = ('CBORNumber', )


_KIND_TYPES = {
    Kind.INTEGER: int,
    Kind.DOUBLE: float,
    Kind.EINTEGER: int,
    Kind.EDECIMAL: Decimal,
    Kind.EFLOAT: BigFloat,
    Kind.ERATIONAL: BigRational,
}

_BINARY_KINDS = frozenset((Kind.DOUBLE, Kind.EFLOAT))
_INTEGER_KINDS = frozenset((Kind.INTEGER, Kind.EINTEGER))

# Rationals without a terminating expansion print with decimal128 precision
_JSON_CONTEXT = decimal.Context(prec=34, rounding=decimal.ROUND_HALF_EVEN,
                                Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN, traps=[])

# Beyond this a bigfloat is printed through its nearest double
_JSON_MAX_BINARY_EXPONENT = 2500


@attr.s(slots=True, frozen=True, eq=False, repr=False)
class CBORNumber:
    '''An immutable number of one of six kinds: a 64-bit integer, a double, an integer of
    any size, an arbitrary-precision decimal, an arbitrary-precision binary float or a
    rational.

    Arithmetic is exact.  Operands of different kinds are promoted, in order of
    preference, to a rational, a decimal, a binary float or an integer, and a result may
    be of a different kind than either operand.  Infinities and NaNs are ordinary values:
    no numeric condition raises.
    '''
    kind = attr.ib(converter=Kind)
    value = attr.ib()

    @value.validator
    def _check_value(self, _attribute, value):
        expected = _KIND_TYPES[self.kind]
        if isinstance(value, bool) or not isinstance(value, expected):
            raise TypeError(f'a {self.kind.name} number cannot hold a {type(value).__name__}')
        if self.kind == Kind.INTEGER and not fits_int64(value):
            raise ValueError(f'{value} does not fit in 64 bits')

    #
    # Constructors
    #

    @classmethod
    def from_value(cls, value):
        '''Wrap an int, float, Decimal, Fraction, BigFloat or BigRational.  Integers that fit
        in 64 bits become INTEGER numbers.'''
        if isinstance(value, CBORNumber):
            return value
        if value is None:
            raise TypeError('value cannot be None')
        if isinstance(value, bool):
            raise TypeError('a bool is not a number')
        if isinstance(value, int):
            return _integer(value)
        if isinstance(value, float):
            return cls(Kind.DOUBLE, value)
        if isinstance(value, Decimal):
            return cls(Kind.EDECIMAL, value)
        if isinstance(value, BigFloat):
            return cls(Kind.EFLOAT, value)
        if isinstance(value, BigRational):
            return cls(Kind.ERATIONAL, value)
        if isinstance(value, Fraction):
            return cls(Kind.ERATIONAL, BigRational.from_fraction(value))
        raise TypeError(f'cannot make a number from a {type(value).__name__}')

    @classmethod
    def from_item(cls, item):
        '''Decode a CBOR data item.  Return None if the item does not represent a number.'''
        from .tags import from_item
        return from_item(item)

    #
    # Inspection
    #

    @property
    def adapter(self):
        return adapter_for(self.kind)

    @property
    def sign(self):
        '''-1, 0 or 1, or 2 for a NaN.'''
        return self.adapter.sign(self.value)

    def is_nan(self):
        return self.adapter.is_nan(self.value)

    def is_infinity(self):
        return self.adapter.is_infinity(self.value)

    def is_positive_infinity(self):
        return self.adapter.is_positive_infinity(self.value)

    def is_negative_infinity(self):
        return self.adapter.is_negative_infinity(self.value)

    def is_finite(self):
        return not (self.is_nan() or self.is_infinity())

    def is_zero(self):
        return self.sign == 0

    def is_negative(self):
        '''True if the sign bit is set.  This includes negative zeroes and NaNs.'''
        value = self.value
        if self.kind in _INTEGER_KINDS:
            return value < 0
        if self.kind == Kind.DOUBLE:
            return math.copysign(1.0, value) < 0
        if self.kind == Kind.EDECIMAL:
            return value.is_signed()
        return value.is_negative()

    def is_integral(self):
        '''True if the value is finite with no fractional part.'''
        value = self.value
        if self.kind in _INTEGER_KINDS:
            return True
        if not self.is_finite():
            return False
        if self.kind == Kind.DOUBLE:
            return value.is_integer()
        if self.kind == Kind.EDECIMAL:
            return value == value.to_integral_value()
        return value.is_integer()

    def can_fit_in_int64(self):
        '''True if the value is an integer in the signed 64-bit range.'''
        return self.adapter.can_fit_in_int64(self.value)

    def can_fit_in_int32(self):
        '''True if the value is an integer in the signed 32-bit range.'''
        if not self.can_fit_in_int64():
            return False
        return INT32_MIN <= self.adapter.as_int64(self.value) <= INT32_MAX

    def can_truncated_int_fit_in_int64(self):
        '''True if the value truncated to an integer is in the signed 64-bit range.'''
        if not self.is_finite():
            return False
        return _TRUNCATED_INT64_LOW.compare_to(self) < 0 < _TRUNCATED_INT64_HIGH.compare_to(self)

    #
    # Conversions
    #

    def to_integer(self):
        '''The value truncated to an int.  Raises OverflowError for an infinity and
        ValueError for a NaN.'''
        return self.adapter.as_integer(self.value)

    def to_integer_if_exact(self):
        '''The value as an int, raising NotExactError if it has a fractional part.'''
        if self.is_finite() and not self.is_integral():
            raise NotExactError(f'{self} is not an integer')
        return self.to_integer()

    def to_int64(self):
        '''The value truncated to an int, raising OverflowError outside the signed 64-bit
        range.'''
        if not self.can_truncated_int_fit_in_int64():
            return self._fixed_width_overflow(64)
        return self.to_integer()

    def to_int64_if_exact(self):
        return self.adapter.as_int64(self.value)

    def to_int32(self):
        '''The value truncated to an int, raising OverflowError outside the signed 32-bit
        range.'''
        result = self.to_int64()
        if not INT32_MIN <= result <= INT32_MAX:
            return self._fixed_width_overflow(32)
        return result

    def _fixed_width_overflow(self, bits):
        if self.is_nan():
            raise ValueError('cannot convert NaN to integer')
        raise OverflowError(f'{self} does not fit in {bits} bits')

    def to_decimal(self):
        '''The value as a Decimal.  Exact except for rationals without a terminating
        decimal expansion, which are rounded to 34 digits.'''
        return self.adapter.as_decimal(self.value)

    def to_bigfloat(self):
        '''The value as a BigFloat.  Exact for all kinds but decimals and rationals with no
        terminating binary expansion.'''
        return self.adapter.as_bigfloat(self.value)

    def to_rational(self):
        '''The value exactly as a BigRational.'''
        return self.adapter.as_rational(self.value)

    def to_float(self):
        '''The value correctly rounded to a double.'''
        if self.kind == Kind.DOUBLE:
            return self.value
        if self.kind == Kind.EDECIMAL:
            return BigFloat.from_decimal(self.value, BINARY64).to_float()
        if self.kind == Kind.ERATIONAL:
            return self.value.to_bigfloat(BINARY64).to_float()
        return self.to_bigfloat().to_float()

    def _as(self, kind):
        '''The value converted to the representation of a promoted kind.'''
        if kind == Kind.ERATIONAL:
            return self.to_rational()
        if kind == Kind.EDECIMAL:
            return self.to_decimal()
        if kind == Kind.EFLOAT:
            return self.to_bigfloat()
        return self.to_integer()

    def to_item(self):
        '''Encode as a CBOR data item.'''
        from .tags import to_item
        return to_item(self)

    #
    # Sign operations
    #

    def negate(self):
        '''Return the value with its sign flipped.  An integer zero becomes a decimal
        negative zero and the most negative 64-bit integer an arbitrary integer.'''
        if self.kind in _INTEGER_KINDS:
            if self.value == 0:
                return _NEGATIVE_ZERO
            if self.kind == Kind.INTEGER:
                return _integer(-self.value)
            return CBORNumber(Kind.EINTEGER, -self.value)
        return CBORNumber(self.kind, self.adapter.negate(self.value))

    def abs(self):
        '''Return the value with its sign cleared.'''
        if self.kind == Kind.INTEGER:
            return _integer(abs(self.value))
        return CBORNumber(self.kind, self.adapter.abs(self.value))

    #
    # Arithmetic
    #

    def add(self, other):
        other = _operand(other)
        if self.kind == other.kind == Kind.INTEGER:
            return _integer(self.value + other.value)
        return self._promoted(other, _ADD)

    def subtract(self, other):
        other = _operand(other)
        if self.kind == other.kind == Kind.INTEGER:
            return _integer(self.value - other.value)
        return self._promoted(other, _SUBTRACT)

    def multiply(self, other):
        other = _operand(other)
        if self.kind == other.kind == Kind.INTEGER:
            return _integer(self.value * other.value)
        return self._promoted(other, _MULTIPLY)

    def divide(self, other):
        '''Return self / other.

        A quotient the promoted kind cannot hold exactly is returned as a rational.  A
        zero divisor of an integer dividend gives a decimal infinity, and 0 / 0 a decimal
        NaN.
        '''
        other = _operand(other)
        if self.kind == other.kind == Kind.INTEGER:
            return _divide_integers(self.value, other.value, _integer)
        kind = _common_kind(self.kind, other.kind)
        lhs, rhs = self._as(kind), other._as(kind)
        if kind == Kind.ERATIONAL:
            return CBORNumber(kind, lhs.divide(rhs))
        if kind == Kind.EINTEGER:
            return _divide_integers(lhs, rhs, partial(CBORNumber, Kind.EINTEGER))

        if self.is_zero() and other.is_zero():
            return _DECIMAL_NAN
        if kind == Kind.EDECIMAL:
            quotient = decimals.divide(lhs, rhs)
        else:
            quotient = lhs.divide(rhs)
        if quotient.is_finite() or not (self.is_finite() and other.is_finite()):
            return CBORNumber(kind, quotient)
        return CBORNumber(Kind.ERATIONAL, self.to_rational().divide(other.to_rational()))

    def remainder(self, other):
        '''Return the remainder of self / other with the quotient truncated towards zero.
        It has the sign of self.  An integer remainder by zero is a decimal NaN.'''
        other = _operand(other)
        if self.kind == other.kind == Kind.INTEGER:
            return _remainder_integers(self.value, other.value, _integer)
        kind = _common_kind(self.kind, other.kind)
        lhs, rhs = self._as(kind), other._as(kind)
        if kind == Kind.EINTEGER:
            return _remainder_integers(lhs, rhs, partial(CBORNumber, Kind.EINTEGER))
        return CBORNumber(kind, _REMAINDER[kind](lhs, rhs))

    def _promoted(self, other, operations):
        kind = _common_kind(self.kind, other.kind)
        return CBORNumber(kind, operations[kind](self._as(kind), other._as(kind)))

    #
    # Comparisons
    #

    def compare_to(self, other):
        '''Compare numerically returning -1, 0 or 1.  A NaN is greater than any number and
        equal to any NaN.  None is less than any value.'''
        if other is None:
            return 1
        other = _operand(other)
        if self.kind == other.kind:
            return _compare_same_kind(self.kind, self.value, other.value)

        lhs_sign, rhs_sign = self.sign, other.sign
        if lhs_sign == 2 or rhs_sign == 2:
            return (lhs_sign == 2) - (rhs_sign == 2)
        if lhs_sign != rhs_sign:
            return -1 if lhs_sign < rhs_sign else 1

        kind = _common_kind(self.kind, other.kind)
        if kind == Kind.EDECIMAL:
            if self.kind in _BINARY_KINDS:
                return -decimals.compare_to_binary(other.value, self.to_bigfloat())
            if other.kind in _BINARY_KINDS:
                return decimals.compare_to_binary(self.value, other.to_bigfloat())
            return decimals.compare(self.to_decimal(), other.to_decimal())
        if kind == Kind.EINTEGER:
            lhs, rhs = self.value, other.value
            return (lhs > rhs) - (lhs < rhs)
        return self._as(kind).compare_to(other._as(kind))

    #
    # Strings
    #

    def to_string(self):
        '''Integers as digits, doubles in their shortest form, decimals and binary floats in
        decimal scientific notation and rationals as "n/d".'''
        if self.kind in _INTEGER_KINDS:
            return str(self.value)
        if self.kind == Kind.DOUBLE:
            return _double_string(self.value)
        if self.kind == Kind.EDECIMAL:
            return str(self.value)
        return self.value.to_string()

    def to_json_string(self):
        '''The value as a JSON number; infinities and NaNs are null.'''
        if not self.is_finite():
            return 'null'
        value = self.value
        if self.kind == Kind.EFLOAT and abs(value.exponent) > _JSON_MAX_BINARY_EXPONENT:
            # Printing the exact decimal expansion would take thousands of digits
            return CBORNumber(Kind.DOUBLE, value.to_float()).to_json_string()
        if self.kind == Kind.ERATIONAL:
            return str(value.to_decimal_exact_if_possible(_JSON_CONTEXT.copy()))
        return self.to_string()

    def to_diagnostic_string(self):
        '''The value encoded as a CBOR item, in CBOR diagnostic notation.'''
        from .tags import diagnostic
        return diagnostic(self.to_item())

    #
    # Python protocols
    #

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return f'CBORNumber(Kind.{self.kind.name}, {self.value!r})'

    def __neg__(self):
        return self.negate()

    def __pos__(self):
        return self

    def __abs__(self):
        return self.abs()

    def __bool__(self):
        return not self.is_zero()

    def __int__(self):
        return self.to_integer()

    def __float__(self):
        return self.to_float()

    def __eq__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) == 0

    def __ne__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) != 0

    def __lt__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) < 0

    def __le__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) <= 0

    def __gt__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) > 0

    def __ge__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.compare_to(other) >= 0

    def __hash__(self):
        '''Equal values hash equally whatever their kinds, and like equal Python numbers.'''
        if self.is_nan():
            return 0
        if self.is_infinity():
            return -314159 if self.is_negative() else 314159
        if self.kind == Kind.ERATIONAL:
            return hash(self.value.to_fraction())
        return hash(self.value)

    def __add__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.add(other)

    def __radd__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other.add(self)

    def __sub__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.subtract(other)

    def __rsub__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other.subtract(self)

    def __mul__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.multiply(other)

    def __rmul__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other.multiply(self)

    def __truediv__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.divide(other)

    def __rtruediv__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other.divide(self)

    def __mod__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.remainder(other)

    def __rmod__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other.remainder(self)


#
# Internal helper routines
#

def _integer(value):
    '''An int as an INTEGER number if it fits in 64 bits, otherwise as an EINTEGER.'''
    return CBORNumber(Kind.INTEGER if fits_int64(value) else Kind.EINTEGER, value)


def _common_kind(lhs, rhs):
    '''The kind both operands are promoted to for a mixed operation.'''
    kinds = {lhs, rhs}
    if Kind.ERATIONAL in kinds:
        return Kind.ERATIONAL
    if Kind.EDECIMAL in kinds:
        return Kind.EDECIMAL
    if kinds & _BINARY_KINDS:
        return Kind.EFLOAT
    return Kind.EINTEGER


def _operand(value):
    if isinstance(value, CBORNumber):
        return value
    if value is None:
        raise TypeError('operand cannot be None')
    return CBORNumber.from_value(value)


def _coerce(value):
    '''Convert the other operand of a Python operator, or return None if it is not a
    number.'''
    if isinstance(value, CBORNumber):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal, Fraction, BigFloat, BigRational)):
        return CBORNumber.from_value(value)
    return None


def _division_by_zero(dividend):
    if dividend == 0:
        return _DECIMAL_NAN
    return CBORNumber(Kind.EDECIMAL, Decimal('-Infinity' if dividend < 0 else 'Infinity'))


def _divide_integers(dividend, divisor, make):
    if divisor == 0:
        return _division_by_zero(dividend)
    if dividend % divisor:
        return CBORNumber(Kind.ERATIONAL, BigRational.create(dividend, divisor))
    return make(dividend // divisor)


def _remainder_integers(dividend, divisor, make):
    if divisor == 0:
        return _DECIMAL_NAN
    remainder = abs(dividend) % abs(divisor)
    return make(-remainder if dividend < 0 else remainder)


def _compare_same_kind(kind, lhs, rhs):
    if kind in _INTEGER_KINDS:
        return (lhs > rhs) - (lhs < rhs)
    if kind == Kind.DOUBLE:
        if lhs != lhs or rhs != rhs:
            return (lhs != lhs) - (rhs != rhs)
        return (lhs > rhs) - (lhs < rhs)
    if kind == Kind.EDECIMAL:
        return decimals.compare(lhs, rhs)
    return lhs.compare_to(rhs)


def _double_string(value):
    if value != value:
        return 'NaN'
    if math.isinf(value):
        return '-Infinity' if value < 0 else 'Infinity'
    return BigFloat.from_float(value).to_shortest_string(BINARY64)


_ADD = {
    Kind.ERATIONAL: BigRational.add,
    Kind.EDECIMAL: decimals.add,
    Kind.EFLOAT: BigFloat.add,
    Kind.EINTEGER: operator.add,
}

_SUBTRACT = {
    Kind.ERATIONAL: BigRational.subtract,
    Kind.EDECIMAL: decimals.subtract,
    Kind.EFLOAT: BigFloat.subtract,
    Kind.EINTEGER: operator.sub,
}

_MULTIPLY = {
    Kind.ERATIONAL: BigRational.multiply,
    Kind.EDECIMAL: decimals.multiply,
    Kind.EFLOAT: BigFloat.multiply,
    Kind.EINTEGER: operator.mul,
}

_REMAINDER = {
    Kind.ERATIONAL: BigRational.remainder,
    Kind.EDECIMAL: decimals.remainder,
    Kind.EFLOAT: BigFloat.remainder,
}

_DECIMAL_NAN = CBORNumber(Kind.EDECIMAL, Decimal('NaN'))
_NEGATIVE_ZERO = CBORNumber(Kind.EDECIMAL, Decimal('-0'))

# A value truncates into the signed 64-bit range if strictly between these
_TRUNCATED_INT64_LOW = CBORNumber(Kind.EINTEGER, INT64_MIN - 1)
_TRUNCATED_INT64_HIGH = CBORNumber(Kind.EINTEGER, INT64_MAX + 1)
