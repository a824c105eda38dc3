"""
Numerical Safeguards — примитивы точной арифметики

Модуль содержит общие примитивы, на которых построены Fixed и Decimal:
- NaN/Inf санитизация дробной части
- Детекция вырожденных делителей (ноль, NaN, Inf)
- Степени десяти и подсчёт десятичных разрядов для int произвольной длины
- Точное масштабирование double-дроби в целое число
- Precision-safe умножение большого int на дробь

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf никогда не попадают в дробную часть (заменяются на fallback)
2. Умножение int на дробь не теряет старшие разряды при |int| >= 10^15
3. Конверсия int → float никогда не бросает OverflowError (насыщение до ±Inf)
4. Все операции детерминированы и воспроизводимы
"""

import math
from functools import lru_cache
from typing import Final

# =============================================================================
# ПАРАМЕТРЫ ТОЧНОСТИ
# =============================================================================

# Количество десятичных цифр, которые double гарантированно удерживает
# в дробной части Fixed
PRECISE_DIGITS: Final[int] = 15

# Порог precise-range: |int| < PRECISE_LIMIT умножается на double напрямую,
# иначе применяется разложение divmod(int, PRECISE_LIMIT)
PRECISE_LIMIT: Final[int] = 10**PRECISE_DIGITS

# log10(2) для оценки количества десятичных разрядов по bit_length
_LOG10_2: Final[float] = 0.30102999566398120


# =============================================================================
# NaN/Inf САНИТИЗАЦИЯ
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Проверка, является ли float валидным (не NaN, не Inf).

    Returns:
        True если значение конечное
    """
    return math.isfinite(value)


def sanitize_float(value: float, fallback: float = 0.0) -> float:
    """
    Санитизация float: замена NaN/Inf на fallback значение.

    Args:
        value: Исходное значение
        fallback: Значение для замены NaN/Inf (default: 0.0)

    Returns:
        value если валидное, иначе fallback

    Examples:
        >>> sanitize_float(0.25)
        0.25
        >>> sanitize_float(float('nan'))
        0.0
        >>> sanitize_float(float('-inf'), fallback=0.5)
        0.5
    """
    if is_valid_float(value):
        return value
    return fallback


def is_degenerate_denominator(value: float) -> bool:
    """
    Проверка, что делитель вырожден: ноль, NaN или Inf.

    Деление на вырожденный делитель в Fixed/Decimal возвращает ноль,
    а не ошибку.

    Examples:
        >>> is_degenerate_denominator(0.0)
        True
        >>> is_degenerate_denominator(float('inf'))
        True
        >>> is_degenerate_denominator(1e-300)
        False
    """
    return value == 0.0 or not is_valid_float(value)


# =============================================================================
# ЦЕЛОЧИСЛЕННЫЕ ПРИМИТИВЫ
# =============================================================================


@lru_cache(maxsize=512)
def pow10(exponent: int) -> int:
    """
    Целая степень десяти (кэшируется).

    Raises:
        ValueError: Если exponent < 0
    """
    if exponent < 0:
        raise ValueError(f"exponent must be non-negative, got {exponent}")
    return 10**exponent


def digit_count(value: int) -> int:
    """
    Количество десятичных разрядов abs(value).

    Не использует str(), поэтому работает для int любой длины.

    Examples:
        >>> digit_count(0)
        0
        >>> digit_count(-23)
        2
        >>> digit_count(10**40)
        41
    """
    magnitude = abs(value)
    if magnitude == 0:
        return 0

    # Оценка по bit_length может ошибиться на единицу в обе стороны
    digits = int(magnitude.bit_length() * _LOG10_2) + 1
    if pow10(digits - 1) > magnitude:
        digits -= 1
    elif magnitude >= pow10(digits):
        digits += 1
    return digits


def int_to_float(value: int) -> float:
    """
    Конверсия int → float с насыщением до ±Inf вместо OverflowError.

    Examples:
        >>> int_to_float(3)
        3.0
        >>> int_to_float(-(10**400))
        -inf
    """
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def ratio_to_float(numerator: int, denominator: int) -> float:
    """
    Корректно округлённое numerator / denominator для int произвольной длины.

    Raises:
        ZeroDivisionError: Если denominator == 0
    """
    try:
        return numerator / denominator
    except OverflowError:
        negative = (numerator < 0) != (denominator < 0)
        return -math.inf if negative else math.inf


# =============================================================================
# ДРОБИ И МАСШТАБИРОВАНИЕ
# =============================================================================


def scale_fraction(fraction: float, digits: int) -> int:
    """
    Точное округление fraction * 10^digits до целого (round half up).

    Использует точное рациональное представление double
    (float.as_integer_ratio), поэтому двоичная погрешность
    не накапливается при масштабировании.

    Args:
        fraction: Конечное значение float
        digits: Количество десятичных разрядов (>= 0)

    Returns:
        floor(fraction * 10^digits + 1/2)

    Examples:
        >>> scale_fraction(0.5, 0)
        1
        >>> scale_fraction(0.125, 2)
        13
        >>> scale_fraction(0.25, 3)
        250
    """
    numerator, denominator = fraction.as_integer_ratio()
    return (2 * numerator * pow10(digits) + denominator) // (2 * denominator)


def precise_scalar_multiply(integer: int, fraction: float) -> tuple[int, float]:
    """
    Precision-safe умножение int произвольной длины на double-дробь.

    Для |integer| < 10^15 произведение считается напрямую в double.
    Для больших значений integer раскладывается как
    (high, low) = divmod(integer, 10^15): high умножается на дробь,
    отмасштабированную в целое (точно), а low * fraction считается в double.

    Args:
        integer: Целый множитель
        fraction: Дробный множитель (конечный float)

    Returns:
        (whole, partial): integer * fraction == whole + partial
        (partial не нормализован и может выходить за [0, 1))

    Examples:
        >>> precise_scalar_multiply(4, 0.5)
        (0, 2.0)
        >>> precise_scalar_multiply(3 * 10**15, 0.5)
        (1500000000000000, 0.0)
    """
    if abs(integer) < PRECISE_LIMIT:
        return 0, integer * fraction

    high, low = divmod(integer, PRECISE_LIMIT)
    return high * scale_fraction(fraction, PRECISE_DIGITS), low * fraction
