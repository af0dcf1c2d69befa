import math
from decimal import Decimal
from fractions import Fraction

import pytest

from cbornum import *


def number(value):
    return CBORNumber.from_value(value)


def check(result, kind, value):
    assert result.kind == kind
    assert result.value == value


class TestConstruction:

    @pytest.mark.parametrize('value, kind', (
        (5, Kind.INTEGER),
        (INT64_MIN, Kind.INTEGER),
        (INT64_MAX + 1, Kind.EINTEGER),
        (-(2 ** 100), Kind.EINTEGER),
        (1.5, Kind.DOUBLE),
        (Decimal('1.5'), Kind.EDECIMAL),
        (BigFloat.create(3, -1), Kind.EFLOAT),
        (BigRational.create(1, 3), Kind.ERATIONAL),
        (Fraction(1, 3), Kind.ERATIONAL),
    ))
    def test_from_value(self, value, kind):
        result = number(value)
        assert result.kind == kind
        assert result.compare_to(number(value)) == 0

    @pytest.mark.parametrize('value', (None, True, 'x', [1], complex(1, 2)))
    def test_from_value_type_error(self, value):
        with pytest.raises(TypeError):
            number(value)

    def test_from_value_identity(self):
        value = number(7)
        assert CBORNumber.from_value(value) is value

    def test_validation(self):
        with pytest.raises(ValueError):
            CBORNumber(Kind.INTEGER, INT64_MAX + 1)
        with pytest.raises(TypeError):
            CBORNumber(Kind.DOUBLE, 1)
        with pytest.raises(TypeError):
            CBORNumber(Kind.INTEGER, True)
        with pytest.raises(TypeError):
            CBORNumber(Kind.EFLOAT, 1.5)
        with pytest.raises(ValueError):
            CBORNumber(7, 1)
        assert CBORNumber(0, 5).kind is Kind.INTEGER

    def test_immutable(self):
        value = number(1)
        with pytest.raises(AttributeError):
            value.value = 2

    def test_repr(self):
        assert repr(number(5)) == 'CBORNumber(Kind.INTEGER, 5)'
        assert repr(number(Decimal('1.5'))) == "CBORNumber(Kind.EDECIMAL, Decimal('1.5'))"


class TestInspection:

    @pytest.mark.parametrize('value, sign', (
        (-3, -1),
        (0, 0),
        (-0.0, 0),
        (float('nan'), 2),
        (Decimal('-0'), 0),
        (Decimal('sNaN'), 2),
        (BigFloat.NEGATIVE_INFINITY, -1),
        (BigRational.create_nan(), 2),
        (Fraction(1, 3), 1),
    ))
    def test_sign(self, value, sign):
        assert number(value).sign == sign

    def test_specials(self):
        assert number(float('inf')).is_positive_infinity()
        assert number(Decimal('-Infinity')).is_negative_infinity()
        assert number(BigRational.infinity()).is_infinity()
        assert number(float('nan')).is_nan()
        assert not number(float('nan')).is_finite()
        assert number(2 ** 80).is_finite()

    def test_negative(self):
        assert number(-0.0).is_negative() and number(-0.0).is_zero()
        assert number(Decimal('-0')).is_negative()
        assert not number(0).is_negative()
        assert number(BigFloat.create_nan(0, False, True)).is_negative()
        assert number(-(2 ** 70)).is_negative()

    @pytest.mark.parametrize('value, integral', (
        (3, True),
        (2 ** 80, True),
        (2.0, True),
        (2.5, False),
        (float('inf'), False),
        (Decimal('2.50'), False),
        (Decimal('1E+3'), True),
        (BigFloat.create(3, -1), False),
        (BigRational.create(4, 2), True),
    ))
    def test_is_integral(self, value, integral):
        assert number(value).is_integral() is integral

    @pytest.mark.parametrize('value, int64, int32', (
        (2 ** 31 - 1, True, True),
        (2 ** 31, True, False),
        (INT64_MIN, True, False),
        (2 ** 63, False, False),
        (2.0 ** 62, True, False),
        (2.0 ** 63, False, False),
        (-2.0 ** 31, True, True),
        (1.5, False, False),
        (float('nan'), False, False),
        (Decimal('1E+3'), True, True),
        (Decimal('1.5'), False, False),
        (Decimal('1E+30'), False, False),
        (BigFloat.create(1, 62), True, False),
        (BigFloat.create(1, 63), False, False),
        (BigRational.create(-8, 2), True, True),
    ))
    def test_can_fit(self, value, int64, int32):
        assert number(value).can_fit_in_int64() is int64
        assert number(value).can_fit_in_int32() is int32

    @pytest.mark.parametrize('value, fits', (
        (9.3e18, False),
        (9.2e18, True),
        (Decimal('-9223372036854775808.9'), True),
        (Decimal('-9223372036854775809'), False),
        (Decimal('9223372036854775807.5'), True),
        (Decimal('9223372036854775808'), False),
        (BigRational.create(-19, 2), True),
        (float('nan'), False),
        (float('-inf'), False),
    ))
    def test_can_truncated_int_fit_in_int64(self, value, fits):
        assert number(value).can_truncated_int_fit_in_int64() is fits


class TestConversions:

    def test_to_integer(self):
        assert number(1.9).to_integer() == 1
        assert number(-1.9).to_integer() == -1
        assert number(Decimal('-7.5')).to_integer() == -7
        assert number(Fraction(-7, 2)).to_integer() == -3
        assert number(BigFloat.create(3, 100)).to_integer() == 3 << 100
        with pytest.raises(ValueError):
            number(float('nan')).to_integer()
        with pytest.raises(OverflowError):
            number(Decimal('Infinity')).to_integer()

    def test_to_integer_if_exact(self):
        assert number(Decimal('2.0')).to_integer_if_exact() == 2
        with pytest.raises(NotExactError):
            number(Decimal('2.5')).to_integer_if_exact()
        with pytest.raises(NotExactError):
            number(Fraction(1, 3)).to_integer_if_exact()
        with pytest.raises(OverflowError):
            number(float('inf')).to_integer_if_exact()

    def test_fixed_width(self):
        assert number(1.9).to_int64() == 1
        assert number(Decimal('-9223372036854775808.9')).to_int64() == INT64_MIN
        assert number(-2.5).to_int32() == -2
        with pytest.raises(OverflowError):
            number(2.0 ** 63).to_int64()
        with pytest.raises(OverflowError):
            number(float('-inf')).to_int64()
        with pytest.raises(ValueError):
            number(float('nan')).to_int64()
        with pytest.raises(OverflowError):
            number(2 ** 31).to_int32()
        with pytest.raises(ValueError):
            number(Decimal('NaN')).to_int32()

    def test_to_int64_if_exact(self):
        assert number(Decimal('2.0')).to_int64_if_exact() == 2
        assert number(BigFloat.create(1, 62)).to_int64_if_exact() == 1 << 62
        with pytest.raises(NotExactError):
            number(1.5).to_int64_if_exact()
        with pytest.raises(NotExactError):
            number(Fraction(7, 2)).to_int64_if_exact()
        with pytest.raises(OverflowError):
            number(2 ** 63).to_int64_if_exact()

    @pytest.mark.parametrize('value, answer', (
        (3, 3.0),
        (2 ** 64, 18446744073709551616.0),
        (Decimal('0.1'), 0.1),
        (Fraction(1, 3), 1 / 3),
        (BigFloat.create(1, -1), 0.5),
        (Decimal('1E+400'), float('inf')),
    ))
    def test_to_float(self, value, answer):
        assert number(value).to_float() == answer
        assert float(number(value)) == answer

    def test_to_float_nan(self):
        assert math.isnan(number(Decimal('NaN')).to_float())

    def test_to_decimal(self):
        assert number(0.5).to_decimal() == Decimal('0.5')
        assert number(0.1).to_decimal() == Decimal(0.1)
        assert number(Fraction(1, 4)).to_decimal() == Decimal('0.25')
        assert number(Fraction(1, 3)).to_decimal() == Decimal('0.' + '3' * 34)
        assert number(BigFloat.create(-3, -2)).to_decimal() == Decimal('-0.75')

    def test_to_bigfloat(self):
        assert number(7).to_bigfloat() == BigFloat.create(7)
        assert number(Decimal('0.375')).to_bigfloat() == BigFloat.create(3, -3)
        assert number(Decimal('0.1')).to_bigfloat().to_float() == 0.1
        assert number(-0.0).to_bigfloat().is_negative()

    def test_to_rational(self):
        assert number(Decimal('0.1')).to_rational() == BigRational.create(1, 10)
        assert number(0.5).to_rational() == BigRational.create(1, 2)
        assert number(Decimal('-Infinity')).to_rational().is_negative_infinity()
        nan = number(Decimal('sNaN7')).to_rational()
        assert nan.is_signaling_nan() and nan.numerator == 7


class TestSignOperations:

    def test_negate(self):
        check(number(5).negate(), Kind.INTEGER, -5)
        check(number(INT64_MIN).negate(), Kind.EINTEGER, 2 ** 63)
        check(number(2 ** 63).negate(), Kind.EINTEGER, -(2 ** 63))
        check(number(1.5).negate(), Kind.DOUBLE, -1.5)
        check(number(Fraction(1, 3)).negate(), Kind.ERATIONAL, BigRational.create(-1, 3))

    def test_negate_zero(self):
        result = number(0).negate()
        assert result.kind == Kind.EDECIMAL
        assert result.is_zero() and result.is_negative()
        result = CBORNumber(Kind.EINTEGER, 0).negate()
        assert result.kind == Kind.EDECIMAL and result.is_negative()
        assert number(0.0).negate().is_negative()
        assert number(0.0).negate().kind == Kind.DOUBLE

    def test_negate_specials(self):
        assert number(Decimal('NaN')).negate().is_negative()
        assert number(BigFloat.POSITIVE_INFINITY).negate().is_negative_infinity()

    def test_abs(self):
        check(number(-5).abs(), Kind.INTEGER, 5)
        check(number(INT64_MIN).abs(), Kind.EINTEGER, 2 ** 63)
        check(number(-(2 ** 70)).abs(), Kind.EINTEGER, 2 ** 70)
        assert not number(-0.0).abs().is_negative()
        assert number(Decimal('-1.5')).abs().value == Decimal('1.5')
        assert abs(number(Fraction(-1, 2))) == Fraction(1, 2)
        assert -number(3) == -3
        assert +number(3) == 3


class TestArithmetic:

    def test_integers(self):
        check(number(3).add(4), Kind.INTEGER, 7)
        check(number(3).subtract(4), Kind.INTEGER, -1)
        check(number(3).multiply(-4), Kind.INTEGER, -12)

    @pytest.mark.parametrize('operation, lhs, rhs, answer', (
        ('add', INT64_MAX, 1, 2 ** 63),
        ('add', INT64_MAX, INT64_MAX, 2 * INT64_MAX),
        ('subtract', INT64_MIN, 1, INT64_MIN - 1),
        ('multiply', INT64_MAX, 2, 2 * INT64_MAX),
        ('multiply', INT64_MIN, -1, 2 ** 63),
    ))
    def test_integer_overflow(self, operation, lhs, rhs, answer):
        result = getattr(number(lhs), operation)(rhs)
        check(result, Kind.EINTEGER, answer)

    def test_arbitrary_integers(self):
        big = number(2 ** 64)
        check(big.add(1), Kind.EINTEGER, 2 ** 64 + 1)
        check(big.subtract(big), Kind.EINTEGER, 0)
        check(big.multiply(big), Kind.EINTEGER, 2 ** 128)

    def test_promotion(self):
        check(number(1).add(0.5), Kind.EFLOAT, BigFloat.create(3, -1))
        check(number(0.25).add(0.5), Kind.EFLOAT, BigFloat.create(3, -2))
        check(number(1).add(Decimal('0.1')), Kind.EDECIMAL, Decimal('1.1'))
        check(number(Fraction(1, 3)).add(1), Kind.ERATIONAL, BigRational.create(4, 3))
        check(number(Decimal('0.5')).multiply(Fraction(2, 3)), Kind.ERATIONAL,
              BigRational.create(1, 3))
        check(number(BigFloat.create(1, -1)).subtract(Decimal('0.25')), Kind.EDECIMAL,
              Decimal('0.25'))
        check(number(2 ** 64).multiply(0.5), Kind.EFLOAT, BigFloat.create(1, 63))

    def test_promotion_is_exact(self):
        result = number(0.1).add(Decimal('0.2'))
        assert result.kind == Kind.EDECIMAL
        assert result.compare_to(Decimal('0.3')) == 1
        assert result.subtract(Decimal('0.2')).value == Decimal(0.1)
        result = number(1e300).multiply(1e300)
        assert result.kind == Kind.EFLOAT
        assert result.to_integer() == int(1e300) ** 2

    @pytest.mark.parametrize('lhs, rhs, kind, answer', (
        (6, 3, Kind.INTEGER, 2),
        (7, 2, Kind.ERATIONAL, BigRational.create(7, 2)),
        (-7, 2, Kind.ERATIONAL, BigRational.create(-7, 2)),
        (INT64_MIN, -1, Kind.EINTEGER, 2 ** 63),
        (2 ** 64, 2, Kind.EINTEGER, 2 ** 63),
        (2 ** 64, 3, Kind.ERATIONAL, BigRational.create(2 ** 64, 3)),
        (Decimal(1), 4, Kind.EDECIMAL, Decimal('0.25')),
        (Decimal(1), 8, Kind.EDECIMAL, Decimal('0.125')),
        (Decimal(3), 80, Kind.EDECIMAL, Decimal('0.0375')),
        (Decimal(1), 3, Kind.ERATIONAL, BigRational.create(1, 3)),
        (1.0, 4.0, Kind.EFLOAT, BigFloat.create(1, -2)),
        (1.0, 3.0, Kind.ERATIONAL, BigRational.create(1, 3)),
        (BigFloat.create(1), 3, Kind.ERATIONAL, BigRational.create(1, 3)),
        (Fraction(1, 2), Fraction(1, 3), Kind.ERATIONAL, BigRational.create(3, 2)),
    ))
    def test_divide(self, lhs, rhs, kind, answer):
        check(number(lhs).divide(rhs), kind, answer)

    @pytest.mark.parametrize('lhs, answer', ((1, 'Infinity'), (-1, '-Infinity'), (0, 'NaN'),
                                             (2 ** 70, 'Infinity')))
    def test_integer_divide_by_zero(self, lhs, answer):
        result = number(lhs).divide(0)
        assert result.kind == Kind.EDECIMAL
        assert str(result.value) == answer

    def test_zero_divided_by_zero(self):
        for lhs, rhs in ((0.0, 0.0), (Decimal(0), 0), (BigFloat.ZERO, -0.0)):
            result = number(lhs).divide(rhs)
            assert result.kind == Kind.EDECIMAL and result.is_nan()
        result = number(Fraction(0)).divide(0)
        assert result.kind == Kind.ERATIONAL and result.is_nan()

    def test_divide_specials(self):
        result = number(float('inf')).divide(2.0)
        assert result.kind == Kind.EFLOAT and result.is_positive_infinity()
        result = number(Decimal('-Infinity')).divide(2)
        assert result.kind == Kind.EDECIMAL and result.is_negative_infinity()
        # Finite operands with a non-finite quotient fall back to a rational
        result = number(1.0).divide(0.0)
        assert result.kind == Kind.ERATIONAL and result.is_positive_infinity()
        result = number(Decimal(-1)).divide(Decimal(0))
        assert result.kind == Kind.ERATIONAL and result.is_negative_infinity()

    @pytest.mark.parametrize('lhs, rhs, kind, answer', (
        (7, 3, Kind.INTEGER, 1),
        (-7, 3, Kind.INTEGER, -1),
        (7, -3, Kind.INTEGER, 1),
        (INT64_MIN, -1, Kind.INTEGER, 0),
        (2 ** 64 + 5, 2 ** 32, Kind.EINTEGER, 5),
        (Decimal('7.5'), 2, Kind.EDECIMAL, Decimal('1.5')),
        (7.5, 2, Kind.EFLOAT, BigFloat.create(3, -1)),
        (Fraction(7, 2), 1, Kind.ERATIONAL, BigRational.create(1, 2)),
    ))
    def test_remainder(self, lhs, rhs, kind, answer):
        check(number(lhs).remainder(rhs), kind, answer)

    def test_remainder_by_zero(self):
        result = number(7).remainder(0)
        assert result.kind == Kind.EDECIMAL and result.is_nan()
        assert number(2 ** 70).remainder(0).is_nan()
        assert number(7.0).remainder(0.0).is_nan()

    def test_none_operand(self):
        for name in ('add', 'subtract', 'multiply', 'divide', 'remainder'):
            with pytest.raises(TypeError):
                getattr(number(1), name)(None)


class TestComparisons:

    @pytest.mark.parametrize('lhs, rhs, answer', (
        (1, 1.0, 0),
        (1, 2 ** 64, -1),
        (2 ** 64, 5, 1),
        (5, Decimal('5.0'), 0),
        (Decimal('0.1'), 0.1, -1),
        (0.1, Decimal('0.1'), 1),
        (Fraction(1, 3), 1 / 3, 1),
        (Fraction(1, 2), Decimal('0.5'), 0),
        (-0.0, 0, 0),
        (Decimal('-0'), BigRational.create(0), 0),
        (float('inf'), 10 ** 400, 1),
        (Decimal('-Infinity'), -(10 ** 400), -1),
        (-1, 0.5, -1),
        (float('nan'), 5, 1),
        (5, Decimal('NaN'), -1),
        (Decimal('NaN'), BigRational.create_nan(), 0),
        (float('nan'), float('nan'), 0),
        (BigFloat.create(1, -1), Decimal('0.5'), 0),
        (BigFloat.create(1, 1000), Decimal('1E+301'), 1),
    ))
    def test_compare_to(self, lhs, rhs, answer):
        assert number(lhs).compare_to(number(rhs)) == answer
        assert number(rhs).compare_to(number(lhs)) == -answer

    def test_compare_to_none(self):
        assert number(1).compare_to(None) == 1

    def test_operators(self):
        assert number(1) == number(1.0)
        assert number(1) == 1
        assert number(Decimal('0.5')) == Fraction(1, 2)
        assert number(1) != 2
        assert number(1) < 1.5 < number(Decimal(2))
        assert number(Fraction(1, 3)) <= Fraction(1, 3)
        assert number(2 ** 64) > INT64_MAX
        assert number(0.5) >= BigFloat.create(1, -1)
        assert (number(1) == 'x') is False
        assert (number(1) == True) is False
        with pytest.raises(TypeError):
            number(1) < 'x'

    @pytest.mark.parametrize('value', (
        1, 2 ** 70, -0.0, 0.5, Decimal('0.5'), Decimal('2.000'), Fraction(1, 2), Fraction(5, 1),
        BigFloat.create(3, -1), float('inf'), Decimal('-Infinity'),
    ))
    def test_hash(self, value):
        expected = hash(value) if not isinstance(value, BigFloat) else hash(1.5)
        assert hash(number(value)) == expected

    def test_hash_across_kinds(self):
        values = [number(2), number(2.0), number(Decimal('2.00')), number(Fraction(4, 2)),
                  number(BigFloat.create(1, 1))]
        assert len({hash(value) for value in values}) == 1
        assert len(set(values)) == 1
        assert hash(number(float('nan'))) == hash(number(Decimal('NaN'))) == 0


class TestStrings:

    @pytest.mark.parametrize('value, answer', (
        (-5, '-5'),
        (2 ** 64, '18446744073709551616'),
        (0.1, '0.1'),
        (2.0, '2'),
        (100.0, '100'),
        (-0.0, '-0'),
        (1e23, '1E+23'),
        (1e-05, '0.00001'),
        (5e-324, '5E-324'),
        (1.7976931348623157e308, '1.7976931348623157E+308'),
        (float('inf'), 'Infinity'),
        (float('-inf'), '-Infinity'),
        (float('nan'), 'NaN'),
        (Decimal('1.50'), '1.50'),
        (Decimal('-sNaN3'), '-sNaN3'),
        (BigFloat.create(3, -1), '1.5'),
        (Fraction(-1, 3), '-1/3'),
    ))
    def test_to_string(self, value, answer):
        assert number(value).to_string() == answer
        assert str(number(value)) == answer

    @pytest.mark.parametrize('value, answer', (
        (-5, '-5'),
        (2.0, '2'),
        (-0.0, '-0'),
        (0.1, '0.1'),
        (1e300, '1E+300'),
        (float('inf'), 'null'),
        (float('nan'), 'null'),
        (Decimal('1E+3'), '1E+3'),
        (Decimal('NaN'), 'null'),
        (BigFloat.create(3, -1), '1.5'),
        (BigFloat.create(1, -3000), '0'),
        (BigFloat.create(1, 3000), 'null'),
        (Fraction(1, 4), '0.25'),
        (Fraction(1, 3), '0.' + '3' * 34),
        (BigRational.infinity(), 'null'),
    ))
    def test_to_json_string(self, value, answer):
        assert number(value).to_json_string() == answer

    @pytest.mark.parametrize('value, answer', (
        (5, '5'),
        (1.5, '1.5'),
        (2 ** 64, "2(h'010000000000000000')"),
        (Decimal('1.5'), '4([-1, 15])'),
        (Decimal('-Infinity'), '268([0, 0, 3])'),
        (BigFloat.create(3, -1), '5([-1, 3])'),
        (Fraction(-3, 4), '30([-3, 4])'),
    ))
    def test_to_diagnostic_string(self, value, answer):
        assert number(value).to_diagnostic_string() == answer


class TestProtocols:

    def test_arithmetic_operators(self):
        check(number(1) + 2, Kind.INTEGER, 3)
        check(2 - number(5), Kind.INTEGER, -3)
        check(number(3) * 0.5, Kind.EFLOAT, BigFloat.create(3, -1))
        check(number(1) / 3, Kind.ERATIONAL, BigRational.create(1, 3))
        check(7 % number(3), Kind.INTEGER, 1)
        check(Decimal('0.5') + number(1), Kind.EDECIMAL, Decimal('1.5'))
        check(Fraction(1, 2) * number(4), Kind.ERATIONAL, BigRational.create(2))
        check(1 / number(4.0), Kind.EFLOAT, BigFloat.create(1, -2))
        with pytest.raises(TypeError):
            number(1) + 'x'
        with pytest.raises(TypeError):
            number(1) + True

    def test_conversions(self):
        assert int(number(Decimal('2.7'))) == 2
        assert float(number(Fraction(1, 4))) == 0.25
        assert not number(0.0)
        assert not number(Decimal('-0'))
        assert number(Fraction(1, 3))

    def test_items(self):
        assert number(Decimal('1.5')).to_item() == Tagged(TAG_DECIMAL_FRACTION, [-1, 15])
        check(CBORNumber.from_item(Tagged(TAG_NEGATIVE_BIGNUM, b'\x01\x00')), Kind.INTEGER,
              -257)
        assert CBORNumber.from_item('text') is None
