import decimal
import sys
from decimal import Decimal
from fractions import Fraction

import pytest

from cbornum import *


def bignum(value):
    if value >= 0:
        return Tagged(TAG_POSITIVE_BIGNUM, value.to_bytes((value.bit_length() + 7) // 8, 'big'))
    value = -1 - value
    return Tagged(TAG_NEGATIVE_BIGNUM, value.to_bytes((value.bit_length() + 7) // 8, 'big'))


class TestTagged:

    def test_fields(self):
        item = Tagged(30, [1, 2])
        assert item.tag == 30 and item.item == [1, 2]
        assert item == Tagged(30, [1, 2])
        assert item != Tagged(30, [1, 3])

    @pytest.mark.parametrize('tag', (-1, 2 ** 64))
    def test_tag_range(self, tag):
        with pytest.raises(ValueError):
            Tagged(tag, 0)

    @pytest.mark.parametrize('tag', (True, 4.0, '4', None))
    def test_tag_type(self, tag):
        with pytest.raises(TypeError):
            Tagged(tag, 0)


class TestDecode:

    @pytest.mark.parametrize('item, kind, value', (
        (5, Kind.INTEGER, 5),
        (-(2 ** 63), Kind.INTEGER, -(2 ** 63)),
        (2 ** 64 - 1, Kind.EINTEGER, 2 ** 64 - 1),
        (-(2 ** 64), Kind.EINTEGER, -(2 ** 64)),
        (1.5, Kind.DOUBLE, 1.5),
        (Tagged(TAG_NEGATIVE_BIGNUM, b'\x01\x00'), Kind.INTEGER, -257),
        (Tagged(TAG_POSITIVE_BIGNUM, b''), Kind.INTEGER, 0),
        (Tagged(TAG_POSITIVE_BIGNUM, bytearray(b'\xff' * 9)), Kind.EINTEGER, 2 ** 72 - 1),
        (Tagged(TAG_NEGATIVE_BIGNUM, b'\xff' * 8), Kind.EINTEGER, -(2 ** 64)),
        (Tagged(TAG_RATIONAL, [3, 4]), Kind.ERATIONAL, BigRational.create(3, 4)),
        (Tagged(TAG_RATIONAL, [-6, 4]), Kind.ERATIONAL, BigRational.create(-3, 2)),
        (Tagged(TAG_RATIONAL, (bignum(2 ** 70), 3)), Kind.ERATIONAL,
         BigRational.create(2 ** 70, 3)),
        (Tagged(TAG_EXTENDED_RATIONAL, [3, 2, 1]), Kind.ERATIONAL, BigRational.create(-3, 2)),
        (Tagged(TAG_DECIMAL_FRACTION, [-2, 12345]), Kind.EDECIMAL, Decimal('123.45')),
        (Tagged(TAG_DECIMAL_FRACTION, (0, 7)), Kind.EDECIMAL, Decimal(7)),
        (Tagged(TAG_DECIMAL_FRACTION, [2, bignum(-(10 ** 30))]), Kind.EDECIMAL,
         Decimal('-1E+32')),
        (Tagged(TAG_DECIMAL_FRACTION_BIG_EXPONENT, [bignum(1), 5]), Kind.EDECIMAL,
         Decimal('5E+1')),
        (Tagged(TAG_BIGFLOAT, [-1, 3]), Kind.EFLOAT, BigFloat.create(3, -1)),
        (Tagged(TAG_BIGFLOAT_BIG_EXPONENT, [bignum(-1), 3]), Kind.EFLOAT,
         BigFloat.create(3, -1)),
        (Tagged(TAG_BIGFLOAT_BIG_EXPONENT, [bignum(2 ** 70), -1]), Kind.EFLOAT,
         BigFloat.create(-1, 2 ** 70)),
        (Tagged(TAG_EXTENDED_BIGFLOAT, [-2, 5, 1]), Kind.EFLOAT, BigFloat.create(-5, -2)),
    ))
    def test_from_item(self, item, kind, value):
        assert is_number(item)
        result = from_item(item)
        assert result.kind == kind
        assert result.value == value

    def test_extended_infinities(self):
        for tag in (TAG_EXTENDED_DECIMAL_FRACTION, TAG_EXTENDED_BIGFLOAT, TAG_EXTENDED_RATIONAL):
            # A rational infinity has denominator 1
            content = [0, 1, 2] if tag == TAG_EXTENDED_RATIONAL else [0, 0, 2]
            result = from_item(Tagged(tag, content))
            assert result.is_positive_infinity()
            content[2] = 3
            assert from_item(Tagged(tag, content)).is_negative_infinity()
        assert from_item(Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 2])).kind == Kind.EDECIMAL
        assert from_item(Tagged(TAG_EXTENDED_BIGFLOAT, [0, 0, 2])).kind == Kind.EFLOAT

    def test_extended_rational_nan(self):
        result = from_item(Tagged(TAG_EXTENDED_RATIONAL, [5, 1, 5]))
        value = result.value
        assert result.kind == Kind.ERATIONAL
        assert value.is_quiet_nan() and value.is_negative()
        assert value.numerator == 5
        value = from_item(Tagged(TAG_EXTENDED_RATIONAL, [5, 1, 7])).value
        assert value.is_signaling_nan() and value.is_negative()

    def test_extended_decimal_nan(self):
        value = from_item(Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 5, 4])).value
        assert value.is_qnan() and not value.is_signed()
        assert value.as_tuple().digits == (5, )
        value = from_item(Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 6])).value
        assert value.is_snan()

    def test_extended_bigfloat_nan(self):
        value = from_item(Tagged(TAG_EXTENDED_BIGFLOAT, [0, 9, 6])).value
        assert value.is_signaling_nan() and value.nan_payload() == 9

    def test_negative_zero(self):
        value = from_item(Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 1])).value
        assert value.is_zero() and value.is_signed()
        value = from_item(Tagged(TAG_EXTENDED_RATIONAL, [0, 1, 1])).value
        assert value.is_zero() and value.is_negative()

    @pytest.mark.parametrize('tag', (TAG_DECIMAL_FRACTION, TAG_BIGFLOAT, TAG_RATIONAL))
    def test_wrong_length(self, tag):
        item = Tagged(tag, [1, 2, 3, 4])
        assert not is_number(item)
        assert from_item(item) is None

    @pytest.mark.parametrize('item', (
        2 ** 64,
        -(2 ** 64) - 1,
        True,
        None,
        'text',
        b'\x01',
        [1, 2],
        Tagged(7, [1, 2]),
        Tagged(TAG_POSITIVE_BIGNUM, 'text'),
        Tagged(TAG_POSITIVE_BIGNUM, 5),
        Tagged(TAG_DECIMAL_FRACTION, {'exponent': 1}),
        Tagged(TAG_DECIMAL_FRACTION, [1.5, 2]),
        Tagged(TAG_DECIMAL_FRACTION, [0, 1.5]),
        Tagged(TAG_DECIMAL_FRACTION, [bignum(1), 1]),
        Tagged(TAG_BIGFLOAT, [bignum(-1), 1]),
        Tagged(TAG_DECIMAL_FRACTION, [decimal.MAX_EMAX, 10]),
        Tagged(TAG_BIGFLOAT, [0, 1, 2]),
        Tagged(TAG_RATIONAL, [1, 0]),
        Tagged(TAG_RATIONAL, [3, -4]),
        Tagged(TAG_RATIONAL, [3, Tagged(TAG_RATIONAL, [1, 2])]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, -1, 0]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 1, 8]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 1, -1]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 1, True]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 1, bignum(1)]),
        Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [1, 0, 2]),
        Tagged(TAG_EXTENDED_BIGFLOAT, [0, 1, 3]),
        Tagged(TAG_EXTENDED_BIGFLOAT, [1, 5, 4]),
        Tagged(TAG_EXTENDED_RATIONAL, [-3, 2, 1]),
        Tagged(TAG_EXTENDED_RATIONAL, [0, 2, 2]),
        Tagged(TAG_EXTENDED_RATIONAL, [3, 2, 4]),
        Tagged(TAG_EXTENDED_RATIONAL, [3, 2]),
    ))
    def test_invalid(self, item):
        assert not is_number(item)
        assert from_item(item) is None

    def test_from_item_classmethod(self):
        assert CBORNumber.from_item(Tagged(TAG_NEGATIVE_BIGNUM, b'\x01\x00')) == -257
        assert CBORNumber.from_item(Tagged(TAG_RATIONAL, [1, 0])) is None


class TestEncode:

    @pytest.mark.parametrize('value, item', (
        (5, 5),
        (-257, -257),
        (2 ** 64 - 1, 2 ** 64 - 1),
        (-(2 ** 64), -(2 ** 64)),
        (2 ** 64, Tagged(TAG_POSITIVE_BIGNUM, b'\x01' + bytes(8))),
        (-(2 ** 64) - 1, Tagged(TAG_NEGATIVE_BIGNUM, b'\x01' + bytes(8))),
        (1.5, 1.5),
        (Decimal('123.45'), Tagged(TAG_DECIMAL_FRACTION, [-2, 12345])),
        (Decimal('-1E+3'), Tagged(TAG_DECIMAL_FRACTION, [3, -1])),
        (Decimal('1' * 25), Tagged(TAG_DECIMAL_FRACTION, [0, bignum(int('1' * 25))])),
        (Decimal('-0.0'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [-1, 0, 1])),
        (Decimal('Infinity'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 2])),
        (Decimal('-Infinity'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 3])),
        (Decimal('NaN'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 4])),
        (Decimal('-NaN'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 0, 5])),
        (Decimal('sNaN12'), Tagged(TAG_EXTENDED_DECIMAL_FRACTION, [0, 12, 6])),
        (BigFloat.create(3, -1), Tagged(TAG_BIGFLOAT, [-1, 3])),
        (BigFloat.create(-3, 2 ** 64),
         Tagged(TAG_BIGFLOAT_BIG_EXPONENT, [bignum(2 ** 64), -3])),
        (BigFloat.NEGATIVE_ZERO, Tagged(TAG_EXTENDED_BIGFLOAT, [0, 0, 1])),
        (BigFloat.POSITIVE_INFINITY, Tagged(TAG_EXTENDED_BIGFLOAT, [0, 0, 2])),
        (BigFloat.create_nan(7, True), Tagged(TAG_EXTENDED_BIGFLOAT, [0, 7, 6])),
        (Fraction(-3, 4), Tagged(TAG_RATIONAL, [-3, 4])),
        (BigRational.create(0).negate(), Tagged(TAG_EXTENDED_RATIONAL, [0, 1, 1])),
        (BigRational.infinity(True), Tagged(TAG_EXTENDED_RATIONAL, [0, 1, 3])),
        (BigRational.create_nan(5, False, True), Tagged(TAG_EXTENDED_RATIONAL, [5, 1, 5])),
    ))
    def test_to_item(self, value, item):
        assert to_item(value) == item
        assert to_item(CBORNumber.from_value(value)) == item

    @pytest.mark.parametrize('value', (None, 'text', True, [1]))
    def test_to_item_type_error(self, value):
        with pytest.raises(TypeError):
            to_item(value)

    @pytest.mark.parametrize('value', (
        2 ** 80,
        Decimal('-sNaN3'),
        Decimal('-0E+5'),
        BigFloat.create(-5, -200),
        BigRational.create(-7, 3),
        BigRational.create_nan(2, True, True),
    ))
    def test_decode_encoded(self, value):
        number = CBORNumber.from_value(value)
        result = from_item(to_item(number))
        assert result.kind == number.kind
        assert result.to_string() == number.to_string()

    def test_decode_encoded_huge_exponent(self):
        value = BigFloat.create(-5, -2 ** 65)
        item = to_item(value)
        assert item.tag == TAG_BIGFLOAT_BIG_EXPONENT
        assert from_item(item).value == value

    def test_huge_exponent_hash(self):
        modulus = sys.hash_info.modulus
        value = from_item(Tagged(TAG_BIGFLOAT, [2 ** 40, 1]))
        assert hash(value) == pow(2, 2 ** 40, modulus)
        assert hash(from_item(Tagged(TAG_BIGFLOAT, [-2 ** 40, 3]))) == \
            3 * pow(2, -2 ** 40, modulus) % modulus
        assert hash(from_item(Tagged(TAG_BIGFLOAT, [-3, 1]))) == hash(Fraction(1, 8))

    @pytest.mark.parametrize('exponent, answer', ((10 ** 12, 1), (-10 ** 12, -1)))
    def test_huge_exponent_compare(self, exponent, answer):
        value = from_item(Tagged(TAG_DECIMAL_FRACTION, [exponent, 1]))
        assert value.compare_to(1.0) == answer
        assert value.compare_to(BigFloat.create(1, 2 ** 42)) == -1
        assert value.compare_to(BigFloat.create(-1, 2 ** 42)) == 1


class TestDiagnostic:

    @pytest.mark.parametrize('item, answer', (
        (None, 'null'),
        (True, 'true'),
        (False, 'false'),
        (-5, '-5'),
        (1.5, '1.5'),
        (float('nan'), 'NaN'),
        (float('-inf'), '-Infinity'),
        (b'\x01\x00', "h'0100'"),
        (bytearray(), "h''"),
        ('a"b\\', '"a\\"b\\\\"'),
        ([1, [2, 'x']], '[1, [2, "x"]]'),
        ((), '[]'),
        (Tagged(TAG_DECIMAL_FRACTION, [-2, 12345]), '4([-2, 12345])'),
        (Tagged(TAG_EXTENDED_RATIONAL, [5, 1, 5]), '270([5, 1, 5])'),
    ))
    def test_diagnostic(self, item, answer):
        assert diagnostic(item) == answer

    def test_diagnostic_type_error(self):
        with pytest.raises(TypeError):
            diagnostic(object())
