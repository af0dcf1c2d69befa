import decimal
import threading
from decimal import Decimal

import pytest

from cbornum import *


class TestDivide:

    @pytest.mark.parametrize('dividend, divisor, answer', (
        ('1', '8', '0.125'),
        ('1', '16', '0.0625'),
        ('1', '20', '0.05'),
        ('1', '25', '0.04'),
        ('3', '80', '0.0375'),
        ('1.00', '4', '0.25'),
        ('10', '2', '5'),
        ('6E+2', '3', '2E+2'),
        ('-1', '4', '-0.25'),
        ('0', '-7', '-0'),
        ('7.5', '2.5', '3'),
    ))
    def test_exact(self, dividend, divisor, answer):
        result = decimals.divide(Decimal(dividend), Decimal(divisor))
        assert str(result) == answer

    @pytest.mark.parametrize('dividend, divisor', (('1', '3'), ('2', '7'), ('1', '12')))
    def test_non_terminating(self, dividend, divisor):
        assert decimals.divide(Decimal(dividend), Decimal(divisor)).is_nan()

    def test_specials(self):
        assert decimals.divide(Decimal(1), Decimal(0)) == Decimal('Infinity')
        assert decimals.divide(Decimal(-1), Decimal(0)) == Decimal('-Infinity')
        assert decimals.divide(Decimal(0), Decimal(0)).is_nan()
        result = decimals.divide(Decimal(-5), Decimal('Infinity'))
        assert result.is_zero() and result.is_signed()
        assert decimals.divide(Decimal('NaN'), Decimal(1)).is_nan()


class TestHelpers:

    def test_exact_arithmetic(self):
        big = Decimal(10 ** 80 + 1)
        assert decimals.add(big, Decimal(1)) == Decimal(10 ** 80 + 2)
        assert decimals.subtract(big, big) == 0
        assert decimals.multiply(big, big) == Decimal((10 ** 80 + 1) ** 2)
        assert decimals.remainder(Decimal(-7), Decimal(3)) == Decimal(-1)

    @pytest.mark.parametrize('value, answer', ((0, 1), (7, 1), (-12345, 5), (10 ** 40, 41)))
    def test_digit_count(self, value, answer):
        assert decimals.digit_count(value) == answer

    def test_exponent_fits(self):
        assert decimals.exponent_fits(1, decimal.MAX_EMAX)
        assert not decimals.exponent_fits(10, decimal.MAX_EMAX)
        assert decimals.exponent_fits(1, -1000000)
        assert not decimals.exponent_fits(1, decimal.MIN_EMIN - decimal.MAX_PREC)

    def test_from_parts(self):
        assert str(decimals.from_parts(5, -3)) == '0.005'
        assert str(decimals.from_parts(-12, 2)) == '-1.2E+3'
        with pytest.raises(OverflowError):
            decimals.from_parts(1, 10 ** 20)

    def test_compare(self):
        assert decimals.compare(Decimal('NaN'), Decimal('Infinity')) == 1
        assert decimals.compare(Decimal('1.0'), Decimal(1)) == 0
        assert decimals.compare(Decimal('-1'), Decimal('-0.5')) == -1
        assert decimals.compare(Decimal('sNaN'), Decimal('NaN')) == 0

    def test_compare_to_binary(self):
        assert decimals.compare_to_binary(Decimal('0.1'), BigFloat.from_float(0.1)) == -1
        assert decimals.compare_to_binary(Decimal('0.5'), BigFloat.create(1, -1)) == 0
        assert decimals.compare_to_binary(Decimal('-Infinity'), BigFloat.create(-1, 5000)) == -1
        assert decimals.compare_to_binary(Decimal(1), BigFloat.NAN) == -1

    @pytest.mark.parametrize('value, other, answer', (
        ('1E+1000000000000', BigFloat.create(1), 1),
        ('1E-1000000000000', BigFloat.create(1), -1),
        ('-1E+1000000000000', BigFloat.create(-1), -1),
        ('1E+1000', BigFloat.create(1, 2 ** 40), -1),
        ('1E-1000', BigFloat.create(1, -2 ** 40), 1),
        ('8', BigFloat.create(1, 3), 0),
        ('7.99', BigFloat.create(1, 3), -1),
        ('1024.5', BigFloat.create(1, 10), 1),
    ))
    def test_compare_to_binary_magnitudes(self, value, other, answer):
        assert decimals.compare_to_binary(Decimal(value), other) == answer

    def test_sign(self):
        assert decimals.sign(Decimal('-0')) == 0
        assert decimals.sign(Decimal('-2')) == -1
        assert decimals.sign(Decimal('NaN')) == 2

    def test_decimal_rounding(self):
        assert decimals.decimal_rounding(ROUND_HALF_EVEN) == decimal.ROUND_HALF_EVEN
        assert decimals.decimal_rounding(ROUND_ODD) == decimal.ROUND_05UP
        with pytest.raises(KeyError):
            decimals.decimal_rounding('ROUND_SIDEWAYS')


class TestContexts:

    def test_shared_contexts_untouched(self):
        assert decimals.divide(Decimal(1), Decimal(0)) == Decimal('Infinity')
        assert decimals.divide(Decimal(0), Decimal(0)).is_nan()
        assert not decimals.EXACT_CONTEXT.flags[decimal.DivisionByZero]
        assert not decimals.EXACT_CONTEXT.flags[decimal.InvalidOperation]
        assert BigRational.create(1, 3).to_decimal_exact_if_possible() == Decimal('0.' + '3' * 34)
        assert not decimals.DECIMAL128_CONTEXT.flags[decimal.Inexact]

    def test_exact_context_per_thread(self):
        contexts = []
        thread = threading.Thread(target=lambda: contexts.append(decimals.exact_context()))
        thread.start()
        thread.join()
        assert decimals.exact_context() is decimals.exact_context()
        assert contexts[0] is not decimals.exact_context()
        assert contexts[0].prec == decimals.EXACT_CONTEXT.prec
