#
# CBOR tags carrying big numbers: validation, decoding and encoding
#
# Data items are modelled with plain Python values: an int (never a bool) is an untagged
# integer, a float an untagged floating point value, bytes a byte string, a list or tuple
# an array and Tagged(tag, item) a tagged item.
#

import math
from collections import namedtuple
from decimal import Decimal

import attr

from . import decimals
from .adapters import Kind, INT32_MIN, INT32_MAX
from .bigfloat import BigFloat
from .number import CBORNumber
from .rational import BigRational

__all__ = ('Tagged', 'is_number', 'from_item', 'to_item', 'diagnostic',
           'TAG_POSITIVE_BIGNUM', 'TAG_NEGATIVE_BIGNUM', 'TAG_DECIMAL_FRACTION',
           'TAG_BIGFLOAT', 'TAG_RATIONAL', 'TAG_DECIMAL_FRACTION_BIG_EXPONENT',
           'TAG_BIGFLOAT_BIG_EXPONENT', 'TAG_EXTENDED_DECIMAL_FRACTION',
           'TAG_EXTENDED_BIGFLOAT', 'TAG_EXTENDED_RATIONAL')


TAG_POSITIVE_BIGNUM = 2
TAG_NEGATIVE_BIGNUM = 3
TAG_DECIMAL_FRACTION = 4                    # [exponent, mantissa]
TAG_BIGFLOAT = 5                            # [exponent, mantissa]
TAG_RATIONAL = 30                           # [numerator, denominator]
TAG_DECIMAL_FRACTION_BIG_EXPONENT = 264     # exponent may be a bignum
TAG_BIGFLOAT_BIG_EXPONENT = 265
TAG_EXTENDED_DECIMAL_FRACTION = 268         # [exponent, mantissa, options]
TAG_EXTENDED_BIGFLOAT = 269
TAG_EXTENDED_RATIONAL = 270                 # [numerator, denominator, options]

_BIGNUM_TAGS = frozenset((TAG_POSITIVE_BIGNUM, TAG_NEGATIVE_BIGNUM))
_DECIMAL_TAGS = frozenset((TAG_DECIMAL_FRACTION, TAG_DECIMAL_FRACTION_BIG_EXPONENT,
                           TAG_EXTENDED_DECIMAL_FRACTION))
_FRACTION_TAGS = _DECIMAL_TAGS | frozenset((TAG_BIGFLOAT, TAG_BIGFLOAT_BIG_EXPONENT,
                                            TAG_EXTENDED_BIGFLOAT))
_RATIONAL_TAGS = frozenset((TAG_RATIONAL, TAG_EXTENDED_RATIONAL))
_EXTENDED_TAGS = frozenset((TAG_EXTENDED_DECIMAL_FRACTION, TAG_EXTENDED_BIGFLOAT,
                            TAG_EXTENDED_RATIONAL))

# Options of the extended forms.  Odd options are negative: one more than each of the
# last three is the same value with the sign bit set.
OPTION_POSITIVE = 0
OPTION_NEGATIVE = 1
OPTION_INFINITY = 2
OPTION_QUIET_NAN = 4
OPTION_SIGNALING_NAN = 6
OPTION_MAX = 7

# The range of CBOR major types 0 and 1
CBOR_INT_MIN = -(1 << 64)
CBOR_INT_MAX = (1 << 64) - 1


@attr.s(slots=True, frozen=True)
class Tagged:
    '''A tagged CBOR data item.'''
    tag = attr.ib()
    item = attr.ib()

    @tag.validator
    def _check_tag(self, _attribute, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError('tag must be an integer')
        if not 0 <= value <= CBOR_INT_MAX:
            raise ValueError(f'tag out of range: {value}')


# The validated content of a number item.  tag is None for untagged numbers and
# bignums, whose value is in first.
_Fields = namedtuple('_Fields', 'tag first second options')


def is_number(item):
    '''Return True if item is a CBOR data item representing a number.'''
    return _validate(item) is not None


def from_item(item):
    '''Decode item as a CBORNumber.  Return None if it does not represent a number.'''
    fields = _validate(item)
    if fields is None:
        return None
    tag, first, second, options = fields
    if tag is None:
        return CBORNumber.from_value(first)
    if tag in _RATIONAL_TAGS:
        return CBORNumber(Kind.ERATIONAL, _rational(first, second, options))
    if tag in _DECIMAL_TAGS:
        return CBORNumber(Kind.EDECIMAL, _decimal(first, second, options))
    return CBORNumber(Kind.EFLOAT, _bigfloat(first, second, options))


def _validate(item):
    '''Check the structure of item, returning its _Fields or None if it is not a
    number.'''
    if isinstance(item, bool):
        return None
    if isinstance(item, int):
        return _Fields(None, item, None, 0) if _is_untagged_integer(item) else None
    if isinstance(item, float):
        return _Fields(None, item, None, 0)
    if not isinstance(item, Tagged):
        return None
    if item.tag in _BIGNUM_TAGS:
        if not _is_bignum(item):
            return None
        return _Fields(None, _bignum_value(item), None, 0)
    if item.tag in _FRACTION_TAGS:
        return _validate_fraction(item.tag, item.item)
    if item.tag in _RATIONAL_TAGS:
        return _validate_rational(item.tag, item.item)
    return None


def _validate_fraction(tag, content):
    elements = _elements(tag, content)
    if elements is None:
        return None
    if tag in (TAG_DECIMAL_FRACTION, TAG_BIGFLOAT):
        exponent = elements[0] if _is_untagged_integer(elements[0]) else None
    else:
        exponent = _integer_or_bignum(elements[0])
    mantissa = _integer_or_bignum(elements[1])
    if exponent is None or mantissa is None:
        return None

    options = _options(tag, elements, mantissa)
    if options is None:
        return None
    if options >= OPTION_QUIET_NAN:
        if exponent:
            return None
    elif options >= OPTION_INFINITY:
        if exponent or mantissa:
            return None
    elif tag in _DECIMAL_TAGS and not decimals.exponent_fits(mantissa, exponent):
        return None
    return _Fields(tag, exponent, mantissa, options)


def _validate_rational(tag, content):
    elements = _elements(tag, content)
    if elements is None:
        return None
    numerator = _integer_or_bignum(elements[0])
    denominator = _integer_or_bignum(elements[1])
    if numerator is None or denominator is None or denominator <= 0:
        return None

    options = _options(tag, elements, numerator)
    if options is None:
        return None
    if options >= OPTION_QUIET_NAN:
        if denominator != 1:
            return None
    elif options >= OPTION_INFINITY:
        if numerator or denominator != 1:
            return None
    return _Fields(tag, numerator, denominator, options)


def _elements(tag, content):
    '''The array elements of a fraction or rational, or None if the array is malformed.'''
    if not isinstance(content, (list, tuple)):
        return None
    if len(content) != (3 if tag in _EXTENDED_TAGS else 2):
        return None
    return content


def _options(tag, elements, leading):
    '''The options of an extended form, OPTION_POSITIVE for the other forms, or None if
    they are invalid.  leading is the mantissa or numerator, unsigned in extended forms.'''
    if tag not in _EXTENDED_TAGS:
        return OPTION_POSITIVE
    options = elements[2]
    if leading < 0 or not _is_untagged_integer(options):
        return None
    if not INT32_MIN <= options <= INT32_MAX or not 0 <= options <= OPTION_MAX:
        return None
    return options


def _is_untagged_integer(item):
    return (isinstance(item, int) and not isinstance(item, bool)
            and CBOR_INT_MIN <= item <= CBOR_INT_MAX)


def _is_bignum(item):
    return (isinstance(item, Tagged) and item.tag in _BIGNUM_TAGS
            and isinstance(item.item, (bytes, bytearray)))


def _bignum_value(item):
    '''Bignum bytes are big-endian.  A negative bignum n encodes -1 - n.'''
    value = int.from_bytes(item.item, 'big')
    return -1 - value if item.tag == TAG_NEGATIVE_BIGNUM else value


def _integer_or_bignum(item):
    if _is_untagged_integer(item):
        return item
    if _is_bignum(item):
        return _bignum_value(item)
    return None


def _is_negative_option(options):
    return bool(options & 1)


def _decimal(exponent, mantissa, options):
    negative = _is_negative_option(options)
    if options >= OPTION_QUIET_NAN:
        digits = Decimal(mantissa).as_tuple().digits if mantissa else ()
        return Decimal((int(negative), digits, 'N' if options >= OPTION_SIGNALING_NAN else 'n'))
    if options >= OPTION_INFINITY:
        return Decimal('-Infinity' if negative else 'Infinity')
    value = decimals.from_parts(mantissa, exponent)
    return value.copy_negate() if negative else value


def _bigfloat(exponent, mantissa, options):
    negative = _is_negative_option(options)
    if options >= OPTION_QUIET_NAN:
        return BigFloat.create_nan(mantissa, options >= OPTION_SIGNALING_NAN, negative)
    if options >= OPTION_INFINITY:
        return BigFloat.NEGATIVE_INFINITY if negative else BigFloat.POSITIVE_INFINITY
    value = BigFloat.create(mantissa, exponent)
    return value.copy_negate() if negative else value


def _rational(numerator, denominator, options):
    negative = _is_negative_option(options)
    if options >= OPTION_QUIET_NAN:
        return BigRational.create_nan(numerator, options >= OPTION_SIGNALING_NAN, negative)
    if options >= OPTION_INFINITY:
        return BigRational.infinity(negative)
    value = BigRational.create(numerator, denominator)
    return value.negate() if negative else value


#
# Encoding
#

def to_item(number):
    '''Encode a CBORNumber, or a value CBORNumber.from_value accepts, as a data item.

    Ordinary values use the plain integer, bignum, float and tag 4, 5 and 30 forms.
    Negative zeroes, infinities and NaNs of the arbitrary-precision kinds use the
    extended tags 268, 269 and 270.
    '''
    if number is None:
        raise TypeError('number cannot be None')
    number = CBORNumber.from_value(number)
    kind, value = number.kind, number.value
    if kind in (Kind.INTEGER, Kind.EINTEGER):
        return _integer_item(value)
    if kind == Kind.DOUBLE:
        return value
    if kind == Kind.EDECIMAL:
        return _decimal_item(value)
    if kind == Kind.EFLOAT:
        return _bigfloat_item(value)
    return _rational_item(value)


def _integer_item(value):
    '''A plain integer, or a bignum outside the range of CBOR integers.'''
    if CBOR_INT_MIN <= value <= CBOR_INT_MAX:
        return value
    tag = TAG_POSITIVE_BIGNUM
    if value < 0:
        tag = TAG_NEGATIVE_BIGNUM
        value = -1 - value
    return Tagged(tag, value.to_bytes((value.bit_length() + 7) // 8, 'big'))


def _special_options(is_nan, is_signaling, negative):
    if is_nan:
        options = OPTION_SIGNALING_NAN if is_signaling else OPTION_QUIET_NAN
    else:
        options = OPTION_INFINITY
    return options + negative


def _decimal_item(value):
    sign, digits, exponent = value.as_tuple()
    coefficient = int(''.join(map(str, digits))) if digits else 0
    if not value.is_finite():
        options = _special_options(value.is_nan(), value.is_snan(), sign)
        mantissa = coefficient if value.is_nan() else 0
        return Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, _integer_item(mantissa), options])
    if sign and not coefficient:
        return Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [exponent, 0, OPTION_NEGATIVE])
    mantissa = -coefficient if sign else coefficient
    return Tagged(TAG_DECIMAL_FRACTION, [exponent, _integer_item(mantissa)])


def _bigfloat_item(value):
    negative = int(value.is_negative())
    if not value.is_finite():
        options = _special_options(value.is_nan(), value.is_signaling_nan(), negative)
        return Tagged(TAG_EXTENDED_BIGFLOAT, [0, _integer_item(value.significand), options])
    if value.is_zero() and negative:
        return Tagged(TAG_EXTENDED_BIGFLOAT,
                      [_integer_item(value.exponent), 0, OPTION_NEGATIVE])
    mantissa = _integer_item(value.mantissa)
    if CBOR_INT_MIN <= value.exponent <= CBOR_INT_MAX:
        return Tagged(TAG_BIGFLOAT, [value.exponent, mantissa])
    return Tagged(TAG_BIGFLOAT_BIG_EXPONENT, [_integer_item(value.exponent), mantissa])


def _rational_item(value):
    negative = int(value.is_negative())
    if not value.is_finite():
        options = _special_options(value.is_nan(), value.is_signaling_nan(), negative)
        return Tagged(TAG_EXTENDED_RATIONAL, [_integer_item(value.numerator), 1, options])
    if value.is_zero() and negative:
        return Tagged(TAG_EXTENDED_RATIONAL, [0, 1, OPTION_NEGATIVE])
    numerator = -value.numerator if negative else value.numerator
    return Tagged(TAG_RATIONAL, [_integer_item(numerator), _integer_item(value.denominator)])


def diagnostic(item):
    '''Render a data item in CBOR diagnostic notation.'''
    if item is None:
        return 'null'
    if isinstance(item, bool):
        return 'true' if item else 'false'
    if isinstance(item, int):
        return str(item)
    if isinstance(item, float):
        if item != item:
            return 'NaN'
        if math.isinf(item):
            return '-Infinity' if item < 0 else 'Infinity'
        return repr(item)
    if isinstance(item, (bytes, bytearray)):
        return f"h'{bytes(item).hex()}'"
    if isinstance(item, str):
        escaped = item.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(item, (list, tuple)):
        return '[' + ', '.join(diagnostic(element) for element in item) + ']'
    if isinstance(item, Tagged):
        return f'{item.tag}({diagnostic(item.item)})'
    raise TypeError(f'cannot render a {type(item).__name__} as a data item')
