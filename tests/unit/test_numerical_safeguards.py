"""
Тесты для модуля Numerical Safeguards

Проверяет:
1. NaN/Inf санитизацию
2. Детекцию вырожденных делителей
3. Целочисленные примитивы (pow10, digit_count, конверсии в float)
4. Точное масштабирование дробей
5. Precision-safe умножение int × дробь
"""

import math

import pytest

from src.core.math.numerical_safeguards import (
    PRECISE_DIGITS,
    PRECISE_LIMIT,
    digit_count,
    int_to_float,
    is_degenerate_denominator,
    is_valid_float,
    pow10,
    precise_scalar_multiply,
    ratio_to_float,
    sanitize_float,
    scale_fraction,
)

# =============================================================================
# ТЕСТЫ КОНСТАНТ
# =============================================================================


class TestPrecisionConstants:
    """Тесты параметров точности"""

    def test_precise_limit_matches_digits(self) -> None:
        """PRECISE_LIMIT == 10^PRECISE_DIGITS"""
        assert PRECISE_DIGITS == 15
        assert PRECISE_LIMIT == 10**15


# =============================================================================
# ТЕСТЫ NaN/Inf САНИТИЗАЦИИ
# =============================================================================


class TestSanitizeFloat:
    """Тесты для is_valid_float и sanitize_float"""

    def test_valid_values(self) -> None:
        """Конечные значения валидны"""
        assert is_valid_float(0.0)
        assert is_valid_float(-1.5)
        assert is_valid_float(1e308)

    def test_invalid_values(self) -> None:
        """NaN и Inf невалидны"""
        assert not is_valid_float(float("nan"))
        assert not is_valid_float(float("inf"))
        assert not is_valid_float(float("-inf"))

    def test_valid_value_unchanged(self) -> None:
        """Валидное значение возвращается как есть"""
        assert sanitize_float(0.25) == 0.25
        assert sanitize_float(-3.0) == -3.0

    def test_nan_and_inf_replaced(self) -> None:
        """NaN/Inf заменяются на fallback"""
        assert sanitize_float(float("nan")) == 0.0
        assert sanitize_float(float("inf")) == 0.0
        assert sanitize_float(float("-inf"), fallback=0.5) == 0.5


class TestDegenerateDenominator:
    """Тесты для is_degenerate_denominator"""

    def test_zero_is_degenerate(self) -> None:
        """Ноль (включая -0.0) вырожден"""
        assert is_degenerate_denominator(0.0)
        assert is_degenerate_denominator(-0.0)

    def test_non_finite_is_degenerate(self) -> None:
        """NaN и Inf вырождены"""
        assert is_degenerate_denominator(float("nan"))
        assert is_degenerate_denominator(float("inf"))
        assert is_degenerate_denominator(float("-inf"))

    def test_small_values_are_not_degenerate(self) -> None:
        """Малые ненулевые значения допустимы"""
        assert not is_degenerate_denominator(1e-300)
        assert not is_degenerate_denominator(-2.5)


# =============================================================================
# ТЕСТЫ ЦЕЛОЧИСЛЕННЫХ ПРИМИТИВОВ
# =============================================================================


class TestPow10:
    """Тесты для pow10"""

    def test_small_exponents(self) -> None:
        assert pow10(0) == 1
        assert pow10(1) == 10
        assert pow10(15) == PRECISE_LIMIT

    def test_negative_exponent_raises(self) -> None:
        """Отрицательная степень вызывает ошибку"""
        with pytest.raises(ValueError, match="exponent must be non-negative"):
            pow10(-1)


class TestDigitCount:
    """Тесты для digit_count"""

    def test_zero_has_no_digits(self) -> None:
        assert digit_count(0) == 0

    def test_sign_ignored(self) -> None:
        assert digit_count(23) == 2
        assert digit_count(-23) == 2

    def test_powers_of_ten_boundaries(self) -> None:
        """Границы 10^k - 1 и 10^k"""
        for k in range(1, 60):
            assert digit_count(10**k - 1) == k
            assert digit_count(10**k) == k + 1

    def test_huge_integer(self) -> None:
        """Работает для int длиннее лимита str()"""
        assert digit_count(10**5000) == 5001


class TestFloatConversions:
    """Тесты для int_to_float и ratio_to_float"""

    def test_int_to_float_regular(self) -> None:
        assert int_to_float(3) == 3.0
        assert int_to_float(-(2**53)) == -(2.0**53)

    def test_int_to_float_saturates(self) -> None:
        """Переполнение даёт ±Inf вместо OverflowError"""
        assert int_to_float(10**400) == math.inf
        assert int_to_float(-(10**400)) == -math.inf

    def test_ratio_correctly_rounded(self) -> None:
        assert ratio_to_float(1, 4) == 0.25
        assert ratio_to_float(10**400 + 1, 10**400) == 1.0

    def test_ratio_saturates(self) -> None:
        assert ratio_to_float(10**400, 3) == math.inf
        assert ratio_to_float(-(10**400), 3) == -math.inf

    def test_ratio_by_zero_raises(self) -> None:
        with pytest.raises(ZeroDivisionError):
            ratio_to_float(1, 0)


# =============================================================================
# ТЕСТЫ МАСШТАБИРОВАНИЯ
# =============================================================================


class TestScaleFraction:
    """Тесты для scale_fraction"""

    def test_exact_dyadic_fractions(self) -> None:
        assert scale_fraction(0.25, 3) == 250
        assert scale_fraction(0.75, 2) == 75

    def test_half_rounds_up(self) -> None:
        """Ровно половина округляется вверх"""
        assert scale_fraction(0.5, 0) == 1
        assert scale_fraction(0.125, 2) == 13
        assert scale_fraction(0.25, 0) == 0

    def test_no_binary_drift(self) -> None:
        """Двоичная погрешность double не попадает в результат"""
        assert scale_fraction(0.1, 15) == 100_000_000_000_000
        assert scale_fraction(0.7, 15) == 700_000_000_000_000

    def test_negative_fraction_rounds_toward_plus_inf(self) -> None:
        assert scale_fraction(-0.5, 0) == 0
        assert scale_fraction(-0.75, 0) == -1


class TestPreciseScalarMultiply:
    """Тесты для precise_scalar_multiply"""

    def test_precise_range_uses_double(self) -> None:
        """|int| < 10^15: прямое произведение в double"""
        assert precise_scalar_multiply(4, 0.5) == (0, 2.0)
        assert precise_scalar_multiply(-3, 0.25) == (0, -0.75)

    def test_split_keeps_low_digits(self) -> None:
        """|int| >= 10^15: младшие разряды не теряются"""
        whole, partial = precise_scalar_multiply(10**20 + 1, 0.5)
        assert whole == 5 * 10**19
        assert partial == 0.5

    def test_split_at_threshold(self) -> None:
        whole, partial = precise_scalar_multiply(3 * PRECISE_LIMIT, 0.5)
        assert whole == 15 * 10**14
        assert partial == 0.0

    def test_split_negative_integer(self) -> None:
        """Отрицательный int раскладывается через floor-divmod"""
        whole, partial = precise_scalar_multiply(-(10**20), 0.25)
        assert whole == -25 * 10**18
        assert partial == 0.0
