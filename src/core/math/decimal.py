"""
Decimal — десятичное число произвольной точности с явной точностью

Представление: whole (int) + frac * 10^-prec, где 0 <= frac < 10^prec.
Точность (количество дробных цифр) хранится в каждом значении явно.
Отрицательные значения: whole < 0, frac неотрицательный
(-1.23 == Decimal(whole=-2, frac=77, prec=2)).

Арифметика:
- Перед операцией точности операндов унифицируются (expand)
- После операции хвостовые нули дроби отбрасываются (reduce)
- Деление на ноль возвращает ноль (ошибка не сигнализируется)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. 0 <= frac < 10^prec, prec >= 0; prec == 0 влечёт frac == 0
2. Равенство и порядок не зависят от представления (1.50 == 1.5)
3. reduce никогда не увеличивает prec
"""

import logging
import re
from enum import Enum
from fractions import Fraction
from typing import Any, Final, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.core.math.numerical_safeguards import (
    digit_count,
    is_valid_float,
    pow10,
    ratio_to_float,
)

logger = logging.getLogger(__name__)

# =============================================================================
# ПАРАМЕТРЫ
# =============================================================================

# Максимальная точность при конверсии из double
DECIMAL_FROM_FLOAT_PRECISION: Final[int] = 16

# Знак, целые цифры, опционально дробные цифры и экспонента
_DECIMAL_PATTERN: Final = re.compile(r"([+-]?)(\d+)(?:\.(\d*))?(?:[eE]([+-]?\d+))?")


# =============================================================================
# ENUMS
# =============================================================================


class RoundingMode(str, Enum):
    """Режим округления при уменьшении точности."""

    EVEN = "even"  # половина → к чётному
    FLOOR = "floor"  # к -inf
    CEIL = "ceil"  # к +inf
    UP = "up"  # от нуля
    DOWN = "down"  # к нулю
    HALF_CEIL = "half-ceil"  # половина → к +inf
    HALF_FLOOR = "half-floor"  # половина → к -inf
    HALF_UP = "half-up"  # половина → от нуля
    HALF_DOWN = "half-down"  # половина → к нулю


def _resolve_rounding(
    quotient: int,
    remainder: int,
    divisor: int,
    negative: bool,
    mode: RoundingMode,
) -> int:
    """
    Выбор результата округления по частному с округлением к -inf.

    Args:
        quotient: value // divisor
        remainder: value % divisor (в [0, divisor))
        divisor: Отбрасываемый масштаб (10^k)
        negative: Знак исходного значения
        mode: Режим округления

    Returns:
        quotient или quotient + 1
    """
    if remainder == 0 or mode is RoundingMode.FLOOR:
        return quotient
    if mode is RoundingMode.CEIL:
        return quotient + 1
    if mode is RoundingMode.DOWN:
        return quotient + 1 if negative else quotient
    if mode is RoundingMode.UP:
        return quotient if negative else quotient + 1

    twice = 2 * remainder
    if twice < divisor:
        return quotient
    if twice > divisor:
        return quotient + 1

    # Ровно половина
    if mode is RoundingMode.EVEN:
        return quotient + (quotient & 1)
    if mode is RoundingMode.HALF_CEIL:
        return quotient + 1
    if mode is RoundingMode.HALF_FLOOR:
        return quotient
    if mode is RoundingMode.HALF_UP:
        return quotient if negative else quotient + 1
    # HALF_DOWN
    return quotient + 1 if negative else quotient


# =============================================================================
# DECIMAL MODEL
# =============================================================================


class Decimal(BaseModel):
    """
    Десятичное число: whole + frac * 10^-prec.

    Immutable модель (frozen=True). Если prec не задан, он выводится из
    количества цифр frac: Decimal(whole=1, frac=23) == 1.23.
    Отрицательный frac занимает единицу у whole:
    Decimal(whole=1, frac=-23) == 0.77.
    """

    whole: int = Field(0, description="Целая часть (округление к -inf)")
    frac: int = Field(0, ge=0, description="Дробная часть в единицах 10^-prec")
    prec: int = Field(0, ge=0, description="Количество дробных цифр")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data: Any) -> Any:
        """Вывод точности и перенос дробной части в whole до валидации полей."""
        if not isinstance(data, dict):
            return data

        whole = data.get("whole", 0)
        frac = data.get("frac", 0)
        prec = data.get("prec", -1)
        if not all(isinstance(part, int) for part in (whole, frac, prec)):
            return data

        if prec < 0:
            prec = digit_count(frac)
        carry, frac = divmod(frac, pow10(prec))
        return {**data, "whole": whole + carry, "frac": frac, "prec": prec}

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def of(cls, whole: int, frac: int = 0, precision: int = -1) -> "Decimal":
        """
        Конструктор из целой части, дроби и точности.

        Examples:
            >>> Decimal.of(1, 23).show()
            '1.23'
            >>> Decimal.of(1, 5, 2).show()
            '1.05'
        """
        return cls(whole=whole, frac=frac, prec=precision)

    @classmethod
    def at_scale(cls, value: int, precision: int) -> "Decimal":
        """
        Целое value, уже отмасштабированное на 10^-precision.

        Examples:
            >>> Decimal.at_scale(123, 2).show()
            '1.23'
            >>> Decimal.at_scale(-123, 2).show()
            '-1.23'
        """
        precision = max(precision, 0)
        whole, frac = divmod(value, pow10(precision))
        return cls(whole=whole, frac=frac, prec=precision)

    @classmethod
    def parse(cls, text: str) -> Optional["Decimal"]:
        """
        Парсинг десятичной записи: [+-]digits[.digits][e[+-]digits].

        Точность результата равна количеству записанных дробных цифр
        с учётом экспоненты ("1.50" имеет prec=2).

        Returns:
            Decimal или None, если строка не соответствует формату

        Examples:
            >>> Decimal.parse("-1.25").show()
            '-1.25'
            >>> Decimal.parse("1.5e2").show()
            '150'
            >>> Decimal.parse("abc") is None
            True
        """
        match = _DECIMAL_PATTERN.fullmatch(text.strip())
        if match is None:
            return None

        sign, whole_digits, frac_digits, exponent = match.groups()
        frac_digits = frac_digits or ""
        value = int(whole_digits + frac_digits)
        if sign == "-":
            value = -value

        scale = len(frac_digits) - (int(exponent) if exponent else 0)
        if scale < 0:
            return cls.at_scale(value * pow10(-scale), 0)
        return cls.at_scale(value, scale)

    @classmethod
    def from_float(
        cls, value: float, max_precision: int = DECIMAL_FROM_FLOAT_PRECISION
    ) -> "Decimal":
        """
        Конверсия double → Decimal через кратчайшую десятичную запись double.

        Запись усекается (к нулю) до max_precision дробных цифр.
        NaN/Inf дают ноль.

        Examples:
            >>> Decimal.from_float(0.1).show()
            '0.1'
            >>> Decimal.from_float(2.0 / 3.0, max_precision=4).show()
            '0.6666'
        """
        if not is_valid_float(value):
            logger.debug("decimal_from_invalid_float", extra={"value": repr(value)})
            return DECIMAL_ZERO

        parsed = cls.parse(repr(value))
        if parsed is None:
            raise ValueError(f"unexpected float representation: {value!r}")
        return reduce(parsed.round_to_precision(max_precision, RoundingMode.DOWN))

    # -------------------------------------------------------------------------
    # Аксессоры и знак
    # -------------------------------------------------------------------------

    def scaled(self) -> int:
        """Полное целое представление: whole * 10^prec + frac."""
        return self.whole * pow10(self.prec) + self.frac

    def to_float(self) -> float:
        """Корректно округлённое приближение double."""
        return ratio_to_float(self.scaled(), pow10(self.prec))

    def __float__(self) -> float:
        return self.to_float()

    def is_negative(self) -> bool:
        return self.whole < 0

    def is_positive(self) -> bool:
        return self.whole > 0 or (self.whole == 0 and self.frac > 0)

    def is_zero(self) -> bool:
        return self.whole == 0 and self.frac == 0

    def sign(self) -> int:
        """-1, 0 или 1."""
        if self.is_negative():
            return -1
        if self.is_zero():
            return 0
        return 1

    # -------------------------------------------------------------------------
    # Округление
    # -------------------------------------------------------------------------

    def round_to_precision(
        self, precision: int, mode: RoundingMode = RoundingMode.EVEN
    ) -> "Decimal":
        """
        Округление до precision дробных цифр.

        Лишние цифры отбрасываются целочисленным делением с остатком,
        остаток разрешается выбранным режимом. Если precision >= prec,
        значение возвращается без изменений.

        Args:
            precision: Целевое количество дробных цифр (отрицательное → 0)
            mode: Режим округления (RoundingMode или его строковое значение)
        """
        mode = RoundingMode(mode)
        precision = max(precision, 0)
        if precision >= self.prec:
            return self

        value = self.scaled()
        divisor = pow10(self.prec - precision)
        quotient, remainder = divmod(value, divisor)
        rounded = _resolve_rounding(quotient, remainder, divisor, value < 0, mode)
        return Decimal.at_scale(rounded, precision)

    def to_integer(self, mode: RoundingMode = RoundingMode.EVEN) -> int:
        """
        Округление до целого.

        Examples:
            >>> Decimal.of(2, 5, 1).to_integer()
            2
            >>> Decimal.of(3, 5, 1).to_integer()
            4
        """
        return self.round_to_precision(0, mode).whole

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def __neg__(self) -> "Decimal":
        return Decimal.at_scale(-self.scaled(), self.prec)

    def __abs__(self) -> "Decimal":
        return -self if self.is_negative() else self

    def __add__(self, other: Any) -> "Decimal":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        x, y = unify(self, rhs)
        # Перенос при frac >= 10^prec выполняет нормализация конструктора
        return reduce(Decimal(whole=x.whole + y.whole, frac=x.frac + y.frac, prec=x.prec))

    __radd__ = __add__

    def __sub__(self, other: Any) -> "Decimal":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        x, y = unify(self, rhs)
        return reduce(Decimal(whole=x.whole - y.whole, frac=x.frac - y.frac, prec=x.prec))

    def __rsub__(self, other: Any) -> "Decimal":
        lhs = _coerce(other)
        if lhs is None:
            return NotImplemented
        return lhs - self

    def __mul__(self, other: Any) -> "Decimal":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return multiply(self, rhs)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "Decimal":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return divide(self, rhs)

    def __rtruediv__(self, other: Any) -> "Decimal":
        lhs = _coerce(other)
        if lhs is None:
            return NotImplemented
        return divide(lhs, self)

    # -------------------------------------------------------------------------
    # Сравнение
    # -------------------------------------------------------------------------

    def compare(self, other: "Decimal") -> int:
        """Сравнение после унификации точности: -1, 0 или 1."""
        x, y = unify(self, other)
        lhs = (x.whole, x.frac)
        rhs = (y.whole, y.frac)
        if lhs < rhs:
            return -1
        if lhs > rhs:
            return 1
        return 0

    def __eq__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.compare(rhs) == 0

    def __hash__(self) -> int:
        # Хэш точного рационального значения: не зависит от точности
        # и совпадает с хэшем равного int
        return hash(Fraction(self.scaled(), pow10(self.prec)))

    def __lt__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.compare(rhs) < 0

    def __le__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.compare(rhs) <= 0

    def __gt__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.compare(rhs) > 0

    def __ge__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.compare(rhs) >= 0

    # -------------------------------------------------------------------------
    # Отображение
    # -------------------------------------------------------------------------

    def show(self, max_precision: int = -1) -> str:
        """
        Десятичная запись whole.frac.

        Args:
            max_precision: Округлить до этой точности (EVEN) перед выводом;
                < 0 — полная точность значения

        Examples:
            >>> Decimal.of(1, 23, 2).show()
            '1.23'
            >>> Decimal.of(1, 5, 2).show()
            '1.05'
            >>> Decimal.of(-2, 77, 2).show()
            '-1.23'
        """
        value = self.round_to_precision(max_precision) if max_precision >= 0 else self
        scaled = value.scaled()
        sign = "-" if scaled < 0 else ""
        whole, frac = divmod(abs(scaled), pow10(value.prec))
        if value.prec == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}.{str(frac).rjust(value.prec, '0')}"

    def __str__(self) -> str:
        return self.show()


DecimalLike = Union[Decimal, int]

# Канонический ноль
DECIMAL_ZERO: Final[Decimal] = Decimal()


def _coerce(value: Any) -> Optional[Decimal]:
    """Приведение операнда (Decimal, int) к Decimal; None для прочих типов."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(whole=value, prec=0)
    return None


# =============================================================================
# ТОЧНОСТЬ
# =============================================================================


def expand(value: Decimal, precision: int) -> Decimal:
    """
    Повышение точности до precision (значение не меняется).

    Если precision <= value.prec, возвращается value.

    Examples:
        >>> expand(Decimal.of(1, 5, 1), 3)
        Decimal(whole=1, frac=500, prec=3)
    """
    if precision <= value.prec:
        return value
    return Decimal(
        whole=value.whole,
        frac=value.frac * pow10(precision - value.prec),
        prec=precision,
    )


def reduce(value: Decimal) -> Decimal:
    """
    Отбрасывание хвостовых нулей дроби (prec никогда не увеличивается).

    Examples:
        >>> reduce(Decimal.of(1, 500, 3))
        Decimal(whole=1, frac=5, prec=1)
    """
    if value.frac == 0:
        if value.prec == 0:
            return value
        return Decimal(whole=value.whole, frac=0, prec=0)

    frac, prec = value.frac, value.prec
    while frac % 10 == 0:
        frac //= 10
        prec -= 1
    if prec == value.prec:
        return value
    return Decimal(whole=value.whole, frac=frac, prec=prec)


def unify(x: Decimal, y: Decimal) -> tuple[Decimal, Decimal]:
    """Приведение двух значений к общей точности max(x.prec, y.prec)."""
    precision = max(x.prec, y.prec)
    return expand(x, precision), expand(y, precision)


# =============================================================================
# УМНОЖЕНИЕ И ДЕЛЕНИЕ
# =============================================================================


def multiply(x: Decimal, y: Decimal, max_precision: int = -1) -> Decimal:
    """
    Точное произведение.

    Операнды приводятся к общей точности p, их полные целые
    представления перемножаются, произведение интерпретируется
    в масштабе 2p и сокращается (reduce).

    Args:
        x: Первый множитель
        y: Второй множитель
        max_precision: Если >= 0, произведение округляется (EVEN)
            до этой точности; иначе возвращается полная точность

    Examples:
        >>> multiply(Decimal.of(1, 5, 1), Decimal.of(2, 25, 2)).show()
        '3.375'
        >>> multiply(Decimal.of(1, 5, 1), Decimal.of(2, 25, 2), max_precision=2).show()
        '3.38'
    """
    x, y = unify(x, y)
    product = Decimal.at_scale(x.scaled() * y.scaled(), 2 * x.prec)
    if max_precision >= 0:
        product = product.round_to_precision(max_precision)
    return reduce(product)


def divide(x: Decimal, y: Decimal, max_precision: int = -1) -> Decimal:
    """
    Частное x / y.

    Операнды приводятся к общей точности p. Целевая точность mp равна
    max_precision, если он неотрицательный, иначе p. Делимое
    масштабируется на 2*mp + 1 разрядов, делится целочисленно на
    целое представление делителя, и частное округляется (EVEN) до mp цифр.

    Деление на ноль и деление нуля возвращают ноль.

    Args:
        x: Делимое
        y: Делитель
        max_precision: Если >= 0, точность частного; иначе точность
            частного равна общей точности операндов max(x.prec, y.prec),
            а не собственной точности x: 1 / 0.3 == 3.3, а не 3

    Examples:
        >>> divide(Decimal.of(1), Decimal.of(3), max_precision=4).show()
        '0.3333'
        >>> divide(Decimal.of(1), Decimal.of(8), max_precision=2).show()
        '0.12'
    """
    if y.is_zero():
        logger.debug("decimal_division_by_zero", extra={"numerator": x.show()})
        return DECIMAL_ZERO
    if x.is_zero():
        return DECIMAL_ZERO

    x, y = unify(x, y)
    target = max_precision if max_precision >= 0 else x.prec
    guard = 2 * target + 1
    quotient = (x.scaled() * pow10(guard)) // y.scaled()
    return reduce(Decimal.at_scale(quotient, guard).round_to_precision(target))
