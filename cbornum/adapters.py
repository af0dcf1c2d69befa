#
# Per-kind capabilities over the payload of a CBORNumber
#

from decimal import Decimal
from enum import IntEnum

from .bigfloat import BigFloat
from .context import NotExactError
from .rational import BigRational

__all__ = ('Kind', 'NumberAdapter', 'IntegerAdapter', 'DoubleAdapter', 'EIntegerAdapter',
           'EDecimalAdapter', 'EFloatAdapter', 'ERationalAdapter', 'adapter_for',
           'INT64_MIN', 'INT64_MAX', 'INT32_MIN', 'INT32_MAX', 'fits_int64')


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


def fits_int64(value):
    return INT64_MIN <= value <= INT64_MAX


class Kind(IntEnum):
    '''The internal representations a CBORNumber can have.'''
    INTEGER = 0        # int in the signed 64-bit range
    DOUBLE = 1         # float
    EINTEGER = 2       # int of any size
    EDECIMAL = 3       # decimal.Decimal
    EFLOAT = 4         # BigFloat
    ERATIONAL = 5      # BigRational


class NumberAdapter:
    '''Adapters are implemented as derived classes, one per Kind.  They answer questions
    about and convert a raw payload of their kind.

    sign() returns -1, 0 or 1, or 2 for a NaN.  The as_* conversions are exact; as_int64
    raises NotExactError for a fractional value and OverflowError if the value is out of
    range.'''

    kind = None

    @classmethod
    def sign(cls, value):
        raise NotImplementedError

    @classmethod
    def is_infinity(cls, value):
        return False

    @classmethod
    def is_positive_infinity(cls, value):
        return cls.is_infinity(value) and cls.sign(value) > 0

    @classmethod
    def is_negative_infinity(cls, value):
        return cls.is_infinity(value) and cls.sign(value) < 0

    @classmethod
    def is_nan(cls, value):
        return False

    @classmethod
    def can_fit_in_int64(cls, value):
        '''True if the value is an integer in the signed 64-bit range.'''
        raise NotImplementedError

    @classmethod
    def as_int64(cls, value):
        raise NotImplementedError

    @classmethod
    def as_integer(cls, value):
        '''The value truncated to an int.'''
        raise NotImplementedError

    @classmethod
    def as_decimal(cls, value):
        raise NotImplementedError

    @classmethod
    def as_bigfloat(cls, value):
        raise NotImplementedError

    @classmethod
    def as_rational(cls, value):
        raise NotImplementedError

    @classmethod
    def abs(cls, value):
        raise NotImplementedError

    @classmethod
    def negate(cls, value):
        raise NotImplementedError


class IntegerAdapter(NumberAdapter):

    kind = Kind.INTEGER

    @classmethod
    def sign(cls, value):
        return (value > 0) - (value < 0)

    @classmethod
    def can_fit_in_int64(cls, value):
        return fits_int64(value)

    @classmethod
    def as_int64(cls, value):
        if not fits_int64(value):
            raise OverflowError(f'{value} does not fit in 64 bits')
        return value

    @classmethod
    def as_integer(cls, value):
        return value

    @classmethod
    def as_decimal(cls, value):
        return Decimal(value)

    @classmethod
    def as_bigfloat(cls, value):
        return BigFloat.from_int(value)

    @classmethod
    def as_rational(cls, value):
        return BigRational.from_int(value)

    @classmethod
    def abs(cls, value):
        return abs(value)

    @classmethod
    def negate(cls, value):
        return -value


class EIntegerAdapter(IntegerAdapter):

    kind = Kind.EINTEGER


class DoubleAdapter(NumberAdapter):
    '''Conversions go through BigFloat so that NaN payloads survive.'''

    kind = Kind.DOUBLE

    @classmethod
    def sign(cls, value):
        if value != value:
            return 2
        return (value > 0) - (value < 0)

    @classmethod
    def is_infinity(cls, value):
        return value in (float('inf'), float('-inf'))

    @classmethod
    def is_nan(cls, value):
        return value != value

    @classmethod
    def can_fit_in_int64(cls, value):
        if cls.is_nan(value) or cls.is_infinity(value) or not value.is_integer():
            return False
        return fits_int64(int(value))

    @classmethod
    def as_int64(cls, value):
        return EFloatAdapter.as_int64(BigFloat.from_float(value))

    @classmethod
    def as_integer(cls, value):
        return BigFloat.from_float(value).to_integer()

    @classmethod
    def as_decimal(cls, value):
        return BigFloat.from_float(value).to_decimal()

    @classmethod
    def as_bigfloat(cls, value):
        return BigFloat.from_float(value)

    @classmethod
    def as_rational(cls, value):
        return BigRational.from_float(value)

    @classmethod
    def abs(cls, value):
        return abs(value)

    @classmethod
    def negate(cls, value):
        return -value


class EDecimalAdapter(NumberAdapter):

    kind = Kind.EDECIMAL

    @classmethod
    def sign(cls, value):
        if value.is_nan():
            return 2
        if not value:
            return 0
        return -1 if value.is_signed() else 1

    @classmethod
    def is_infinity(cls, value):
        return value.is_infinite()

    @classmethod
    def is_nan(cls, value):
        return value.is_nan()

    @classmethod
    def can_fit_in_int64(cls, value):
        if not value.is_finite() or value != value.to_integral_value():
            return False
        # Cheap rejection before building a large int
        return value.adjusted() < 19 and fits_int64(int(value))

    @classmethod
    def as_int64(cls, value):
        return ERationalAdapter.as_int64(BigRational.from_decimal(value))

    @classmethod
    def as_integer(cls, value):
        if value.is_nan():
            raise ValueError('cannot convert NaN to integer')
        if value.is_infinite():
            raise OverflowError('cannot convert infinity to integer')
        return int(value)

    @classmethod
    def as_decimal(cls, value):
        return value

    @classmethod
    def as_bigfloat(cls, value):
        return BigFloat.from_decimal(value)

    @classmethod
    def as_rational(cls, value):
        return BigRational.from_decimal(value)

    @classmethod
    def abs(cls, value):
        return value.copy_abs()

    @classmethod
    def negate(cls, value):
        return value.copy_negate()


class EFloatAdapter(NumberAdapter):

    kind = Kind.EFLOAT

    @classmethod
    def sign(cls, value):
        if value.is_nan():
            return 2
        return value.sign

    @classmethod
    def is_infinity(cls, value):
        return value.is_infinity()

    @classmethod
    def is_nan(cls, value):
        return value.is_nan()

    @classmethod
    def can_fit_in_int64(cls, value):
        if not value.is_integer():
            return False
        if value.significand and value.adjusted_exponent() > 63:
            return False
        return fits_int64(value.to_integer())

    @classmethod
    def as_int64(cls, value):
        return value.to_int64_if_exact()

    @classmethod
    def as_integer(cls, value):
        return value.to_integer()

    @classmethod
    def as_decimal(cls, value):
        return value.to_decimal()

    @classmethod
    def as_bigfloat(cls, value):
        return value

    @classmethod
    def as_rational(cls, value):
        return BigRational.from_bigfloat(value)

    @classmethod
    def abs(cls, value):
        return value.copy_abs()

    @classmethod
    def negate(cls, value):
        return value.copy_negate()


class ERationalAdapter(NumberAdapter):

    kind = Kind.ERATIONAL

    @classmethod
    def sign(cls, value):
        if value.is_nan():
            return 2
        return value.sign

    @classmethod
    def is_infinity(cls, value):
        return value.is_infinity()

    @classmethod
    def is_nan(cls, value):
        return value.is_nan()

    @classmethod
    def can_fit_in_int64(cls, value):
        return value.is_integer() and fits_int64(value.to_integer())

    @classmethod
    def as_int64(cls, value):
        if value.is_finite() and not value.is_integer():
            raise NotExactError(f'{value} is not an integer')
        result = value.to_integer()
        if not fits_int64(result):
            raise OverflowError(f'{value} does not fit in 64 bits')
        return result

    @classmethod
    def as_integer(cls, value):
        return value.to_integer()

    @classmethod
    def as_decimal(cls, value):
        return value.to_decimal_exact_if_possible()

    @classmethod
    def as_bigfloat(cls, value):
        return value.to_bigfloat()

    @classmethod
    def as_rational(cls, value):
        return value

    @classmethod
    def abs(cls, value):
        return value.abs()

    @classmethod
    def negate(cls, value):
        return value.negate()


_ADAPTERS = {adapter.kind: adapter for adapter in (
    IntegerAdapter, DoubleAdapter, EIntegerAdapter, EDecimalAdapter, EFloatAdapter,
    ERationalAdapter)}


def adapter_for(kind):
    '''Return the adapter class of a Kind.'''
    return _ADAPTERS[Kind(kind)]
