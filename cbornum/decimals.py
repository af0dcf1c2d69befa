#
# Exact arithmetic over decimal.Decimal
#

import decimal
import threading
from decimal import Decimal
from fractions import Fraction

from .context import (
    ROUND_CEILING, ROUND_FLOOR, ROUND_DOWN, ROUND_UP, ROUND_HALF_EVEN, ROUND_HALF_UP,
    ROUND_HALF_DOWN, ROUND_ODD, ROUND_NONE,
)

__all__ = ('EXACT_CONTEXT', 'DECIMAL128_CONTEXT', 'exact_context', 'add', 'subtract',
           'multiply', 'divide', 'remainder', 'compare', 'compare_to_binary', 'sign',
           'from_parts', 'exponent_fits', 'digit_count', 'decimal_rounding')


# Never rounds in practice; nothing traps so special results come back as values.  Do not
# divide with it: a non-terminating quotient would try to produce MAX_PREC digits.
# Decimal contexts collect flags, so operations run on a per-thread copy from
# exact_context() and this one is never used directly.
EXACT_CONTEXT = decimal.Context(prec=decimal.MAX_PREC, rounding=decimal.ROUND_HALF_EVEN,
                                Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN, traps=[])

# IEEE-754 decimal128.  Copy it before use.
DECIMAL128_CONTEXT = decimal.Context(prec=34, rounding=decimal.ROUND_HALF_EVEN,
                                     Emax=6144, Emin=-6143, clamp=1, traps=[])

tls = threading.local()


def exact_context():
    '''Return the current thread's copy of EXACT_CONTEXT.'''
    try:
        return tls.exact_context
    except AttributeError:
        tls.exact_context = EXACT_CONTEXT.copy()
        return tls.exact_context


_DECIMAL_ROUNDING = {
    ROUND_CEILING: decimal.ROUND_CEILING,
    ROUND_FLOOR: decimal.ROUND_FLOOR,
    ROUND_DOWN: decimal.ROUND_DOWN,
    ROUND_UP: decimal.ROUND_UP,
    ROUND_HALF_EVEN: decimal.ROUND_HALF_EVEN,
    ROUND_HALF_UP: decimal.ROUND_HALF_UP,
    ROUND_HALF_DOWN: decimal.ROUND_HALF_DOWN,
    # Decimal has no rounding to odd.  ROUND_05UP is its sticky-digit relative: it rounds
    # away from zero only when the kept last digit would be 0 or 5.
    ROUND_ODD: decimal.ROUND_05UP,
    ROUND_NONE: decimal.ROUND_HALF_EVEN,
}

_MIN_ETINY = decimal.MIN_EMIN - (decimal.MAX_PREC - 1)

# log2(10) lies strictly between these over _LOG2_10_SCALE
_LOG2_10_LOW, _LOG2_10_HIGH, _LOG2_10_SCALE = 3321928094887, 3321928094888, 10 ** 12


def decimal_rounding(rounding):
    '''Return the decimal module rounding mode corresponding to rounding.'''
    return _DECIMAL_ROUNDING[rounding]


def digit_count(value):
    '''Return the number of decimal digits of the absolute value of the integer value.'''
    if not value:
        return 1
    return Decimal(abs(value)).adjusted() + 1


def exponent_fits(mantissa, exponent):
    '''Return True if mantissa * 10^exponent can be held by a Decimal.'''
    return _MIN_ETINY <= exponent and exponent + digit_count(mantissa) - 1 <= decimal.MAX_EMAX


def from_parts(mantissa, exponent):
    '''Return the Decimal mantissa * 10^exponent, keeping the exponent.'''
    if not exponent_fits(mantissa, exponent):
        raise OverflowError(f'decimal exponent {exponent} out of range')
    return exact_context().scaleb(Decimal(mantissa), exponent)


def add(lhs, rhs):
    return exact_context().add(lhs, rhs)


def subtract(lhs, rhs):
    return exact_context().subtract(lhs, rhs)


def multiply(lhs, rhs):
    return exact_context().multiply(lhs, rhs)


def remainder(lhs, rhs):
    '''Remainder with the quotient truncated towards zero; it has the sign of lhs.'''
    return exact_context().remainder(lhs, rhs)


def divide(dividend, divisor):
    '''Return the exact quotient dividend / divisor.

    If the quotient has no terminating decimal expansion a quiet NaN is returned.  Exact
    quotients have the exponent closest to the ideal exponent (the difference of the
    operands' exponents).
    '''
    if not dividend.is_finite() or not divisor.is_finite() or not divisor:
        if dividend.is_finite() and divisor.is_infinite():
            return Decimal(0).copy_sign(_sign_of(dividend.is_signed() != divisor.is_signed()))
        return exact_context().divide(dividend, divisor)

    negative = dividend.is_signed() != divisor.is_signed()
    ideal_exponent = dividend.as_tuple().exponent - divisor.as_tuple().exponent
    quotient = Fraction(dividend) / Fraction(divisor)
    numerator, denominator = abs(quotient.numerator), quotient.denominator

    twos = (denominator & -denominator).bit_length() - 1
    rest = denominator >> twos
    fives = 0
    while rest % 5 == 0:
        rest //= 5
        fives += 1
    if rest != 1:
        return Decimal('NaN')

    scale = max(twos, fives)
    coefficient = numerator * 2 ** (scale - twos) * 5 ** (scale - fives)
    exponent = -scale
    if coefficient:
        while exponent < ideal_exponent and coefficient % 10 == 0:
            coefficient //= 10
            exponent += 1
    if exponent > ideal_exponent:
        coefficient *= 10 ** (exponent - ideal_exponent)
        exponent = ideal_exponent
    return from_parts(coefficient, exponent).copy_sign(_sign_of(negative))


def _sign_of(negative):
    return Decimal(-1) if negative else Decimal(1)


def sign(value):
    '''Return -1, 0 or 1, or 2 for a NaN.'''
    if value.is_nan():
        return 2
    if not value:
        return 0
    return -1 if value.is_signed() else 1


def compare(lhs, rhs):
    '''Compare two decimals numerically.  A NaN is greater than any number and equal to any
    other NaN.  Return -1, 0 or 1.'''
    if lhs.is_nan() or rhs.is_nan():
        return lhs.is_nan() - rhs.is_nan()
    return int(exact_context().compare(lhs, rhs))


def compare_to_binary(value, other):
    '''Compare a decimal with a BigFloat exactly, ordering NaNs as compare() does.'''
    if value.is_nan() or other.is_nan():
        return value.is_nan() - other.is_nan()
    lhs = _infinite_rank(value.is_infinite(), value.is_signed())
    rhs = _infinite_rank(other.is_infinity(), other.is_negative())
    if lhs or rhs:
        return (lhs > rhs) - (lhs < rhs)

    lhs, rhs = sign(value), other.sign
    if lhs != rhs:
        return (lhs > rhs) - (lhs < rhs)
    if not lhs:
        return 0
    # Magnitudes far apart are ordered by their exponents alone
    top = other.exponent + other.significand.bit_length()
    if top <= _log2_floor(value.adjusted()):
        return lhs
    if top - 1 >= _log2_ceil(value.adjusted() + 1):
        return -lhs

    a, b = value.as_integer_ratio()
    c, d = other.as_integer_ratio()
    diff = a * d - b * c
    return (diff > 0) - (diff < 0)


def _log2_floor(power):
    '''An integer no greater than power * log2(10).'''
    scaled = power * (_LOG2_10_LOW if power >= 0 else _LOG2_10_HIGH)
    return scaled // _LOG2_10_SCALE - 1


def _log2_ceil(power):
    '''An integer no less than power * log2(10).'''
    scaled = power * (_LOG2_10_HIGH if power >= 0 else _LOG2_10_LOW)
    return -(-scaled // _LOG2_10_SCALE) + 1


def _infinite_rank(is_infinite, negative):
    if not is_infinite:
        return 0
    return -1 if negative else 1
