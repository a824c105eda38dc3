"""
Fixed — число с фиксированной точкой: неограниченная целая часть + double-дробь

Представление: floor (int произвольной длины) + frac (float в [0, 1)).
Отрицательные значения хранятся с отрицательным floor и неотрицательным frac:
-0.3 == Fixed(floor=-1, frac=0.7).

Точность дробной части — до 15 значащих десятичных цифр, диапазон целой
части не ограничен. Для типичных случаев быстрее Decimal, так как дробь
хранится в нативном double.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. 0.0 <= frac < 1.0 для любого экземпляра (нормализация в валидаторе)
2. NaN/Inf в дробной части нормализуются в 0.0 без ошибки
3. Деление на ноль (или на значение, чей double равен 0/Inf) возвращает ноль
4. Все операции возвращают новый экземпляр (frozen модель)
"""

import logging
import math
import re
from fractions import Fraction
from typing import Any, Final, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.core.math.numerical_safeguards import (
    PRECISE_LIMIT,
    int_to_float,
    is_degenerate_denominator,
    is_valid_float,
    pow10,
    precise_scalar_multiply,
    sanitize_float,
    scale_fraction,
)

logger = logging.getLogger(__name__)

# =============================================================================
# ПАРАМЕТРЫ
# =============================================================================

# Максимальное количество дробных цифр при отображении по умолчанию
FIXED_MAX_PRECISION: Final[int] = 15

# Знак, целые цифры, опционально "." и дробные цифры
_FIXED_PATTERN: Final = re.compile(r"([+-]?)(\d+)(?:\.(\d+))?")


# =============================================================================
# НОРМАЛИЗАЦИЯ
# =============================================================================


def normalize_fixed_parts(floor: int, frac: float) -> tuple[int, float]:
    """
    Приведение пары (floor, frac) к инвариантной форме 0.0 <= frac < 1.0.

    Целые единицы, вышедшие за [0, 1), переносятся в floor (carry/borrow).
    NaN/Inf в дробной части заменяются на 0.0, floor не меняется.

    Examples:
        >>> normalize_fixed_parts(0, -0.25)
        (-1, 0.75)
        >>> normalize_fixed_parts(1, 2.5)
        (3, 0.5)
        >>> normalize_fixed_parts(7, float('nan'))
        (7, 0.0)
    """
    frac = sanitize_float(frac, fallback=0.0)
    if 0.0 <= frac < 1.0:
        # + 0.0 превращает -0.0 в 0.0
        return floor, frac + 0.0

    carry = math.floor(frac)
    floor += carry
    frac -= carry

    # frac = -1e-20 даёт 1.0 - 1e-20 == 1.0 после округления
    if frac >= 1.0:
        floor += 1
        frac = 0.0

    return floor, frac + 0.0


# =============================================================================
# FIXED MODEL
# =============================================================================


class Fixed(BaseModel):
    """
    Число с фиксированной точкой: floor + frac.

    Immutable модель (frozen=True): каждая операция создаёт новый экземпляр.
    Конструктор нормализует дробную часть, поэтому
    Fixed(floor=1, frac=1.5) == Fixed(floor=2, frac=0.5).
    """

    floor: int = Field(0, description="Целая часть (округление к -inf)")
    frac: float = Field(0.0, ge=0.0, lt=1.0, description="Дробная часть в [0, 1)")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data: Any) -> Any:
        """Нормализация дробной части до валидации полей."""
        if not isinstance(data, dict):
            return data

        floor = data.get("floor", 0)
        frac = data.get("frac", 0.0)
        if not isinstance(floor, int):
            return data

        if isinstance(frac, int):
            # Целая "дробь" переносится в floor без потери точности
            return {**data, "floor": floor + frac, "frac": 0.0}
        if isinstance(frac, float):
            floor, frac = normalize_fixed_parts(floor, frac)
            return {**data, "floor": floor, "frac": frac}
        return data

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def of(cls, integer: int, fraction: float = 0.0) -> "Fixed":
        """
        Конструктор из целой части и дроби (дробь может быть вне [0, 1)).

        Examples:
            >>> Fixed.of(1, 0.5).show()
            '1.5'
            >>> Fixed.of(0, -0.3).floor
            -1
        """
        return cls(floor=integer, frac=fraction)

    @classmethod
    def from_float(cls, value: float) -> "Fixed":
        """Конверсия double → Fixed (эквивалентно Fixed.of(0, value))."""
        return cls(floor=0, frac=float(value))

    @classmethod
    def parse(cls, text: str) -> Optional["Fixed"]:
        """
        Парсинг десятичной записи: [+-]digits[.digits].

        Дробь вычисляется точным целочисленным делением, для отрицательных
        значений берётся десятичное дополнение ("-1.3" → floor=-2, frac=0.7).

        Returns:
            Fixed или None, если строка не соответствует формату
            (частичный результат не возвращается)

        Examples:
            >>> Fixed.parse("123")
            Fixed(floor=123, frac=0.0)
            >>> Fixed.parse("0.5")
            Fixed(floor=0, frac=0.5)
            >>> Fixed.parse("1.2.3") is None
            True
        """
        match = _FIXED_PATTERN.fullmatch(text.strip())
        if match is None:
            return None

        sign, whole_digits, frac_digits = match.groups()
        whole = int(whole_digits)
        numerator = int(frac_digits) if frac_digits else 0
        scale = pow10(len(frac_digits)) if frac_digits else 1

        if sign != "-":
            return cls(floor=whole, frac=numerator / scale)
        if numerator == 0:
            return cls(floor=-whole, frac=0.0)
        return cls(floor=-whole - 1, frac=(scale - numerator) / scale)

    # -------------------------------------------------------------------------
    # Конверсии и аксессоры
    # -------------------------------------------------------------------------

    def to_float(self) -> float:
        """Приближение double (±Inf, если floor вне диапазона double)."""
        return int_to_float(self.floor) + self.frac

    def __float__(self) -> float:
        return self.to_float()

    def to_int(self) -> int:
        """Округление до целого (половина округляется к +inf)."""
        return self.floor + scale_fraction(self.frac, 0)

    def trunc(self) -> int:
        """
        Целая часть с округлением к нулю.

        Для неотрицательных значений равна floor, для отрицательных
        с ненулевой дробью — floor + 1.
        """
        if self.floor < 0 and self.frac > 0.0:
            return self.floor + 1
        return self.floor

    def fraction(self) -> float:
        """
        Дробная часть с тем же знаком, что и значение: trunc() + fraction() == value.

        Examples:
            >>> Fixed.of(0, -0.25).fraction()
            -0.25
        """
        if self.floor < 0 and self.frac > 0.0:
            return self.frac - 1.0
        return self.frac

    def floored_fraction(self) -> float:
        """Хранимая дробь в [0, 1): floor + floored_fraction() == value."""
        return self.frac

    # -------------------------------------------------------------------------
    # Знак
    # -------------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.floor == 0 and self.frac == 0.0

    def is_negative(self) -> bool:
        return self.floor < 0

    def is_positive(self) -> bool:
        return self.floor > 0 or (self.floor == 0 and self.frac > 0.0)

    def sign(self) -> int:
        """-1, 0 или 1."""
        if self.is_negative():
            return -1
        if self.is_zero():
            return 0
        return 1

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def __neg__(self) -> "Fixed":
        # Нельзя просто сменить знак floor: frac должен остаться в [0, 1)
        return Fixed(floor=-self.floor, frac=-self.frac)

    def __abs__(self) -> "Fixed":
        return -self if self.is_negative() else self

    def __add__(self, other: Any) -> "Fixed":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return Fixed(floor=self.floor + rhs.floor, frac=self.frac + rhs.frac)

    __radd__ = __add__

    def __sub__(self, other: Any) -> "Fixed":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return Fixed(floor=self.floor - rhs.floor, frac=self.frac - rhs.frac)

    def __rsub__(self, other: Any) -> "Fixed":
        lhs = _coerce(other)
        if lhs is None:
            return NotImplemented
        return lhs - self

    def multiply(self, other: "Fixed") -> "Fixed":
        """
        Произведение (i1 + f1) * (i2 + f2) = i1*i2 + i1*f2 + f1*i2 + f1*f2.

        Перекрёстные слагаемые int × дробь считаются через
        precise_scalar_multiply, поэтому старшие разряды больших
        целых частей не теряются.
        """
        cross_whole_1, cross_frac_1 = precise_scalar_multiply(self.floor, other.frac)
        cross_whole_2, cross_frac_2 = precise_scalar_multiply(other.floor, self.frac)

        result = Fixed(floor=self.floor * other.floor + cross_whole_1 + cross_whole_2)
        result = result + Fixed.from_float(cross_frac_1)
        result = result + Fixed.from_float(cross_frac_2)
        return result + Fixed.from_float(self.frac * other.frac)

    def divide(self, other: "Fixed") -> "Fixed":
        """
        Частное self / other.

        Если дробь делителя равна нулю или |floor| делителя > 10^15,
        выполняется точное целочисленное деление целых частей с поправкой
        на остаток и собственную дробь делимого. Иначе — умножение на
        обратную величину (тот же путь, что и multiply).

        Деление на ноль или на значение, чей double равен 0/Inf,
        возвращает ноль (ошибка не сигнализируется).
        """
        denominator = other.to_float()
        if is_degenerate_denominator(denominator):
            logger.debug(
                "fixed_division_degenerate_denominator",
                extra={"numerator": self.show(), "denominator": other.show()},
            )
            return FIXED_ZERO

        if other.frac == 0.0 or abs(other.floor) > PRECISE_LIMIT:
            divisor = other.floor
            quotient, remainder = divmod(self.floor, divisor)
            # remainder имеет знак divisor, поэтому remainder / divisor в [0, 1)
            correction = remainder / divisor + self.frac / int_to_float(divisor)
            return Fixed(floor=quotient, frac=correction)

        reciprocal = 1.0 / denominator
        if not is_valid_float(reciprocal):
            logger.debug(
                "fixed_division_reciprocal_overflow",
                extra={"denominator": other.show()},
            )
            return FIXED_ZERO
        return self.multiply(Fixed.from_float(reciprocal))

    def __mul__(self, other: Any) -> "Fixed":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.multiply(rhs)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "Fixed":
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.divide(rhs)

    def __rtruediv__(self, other: Any) -> "Fixed":
        lhs = _coerce(other)
        if lhs is None:
            return NotImplemented
        return lhs.divide(self)

    # -------------------------------------------------------------------------
    # Сравнение
    # -------------------------------------------------------------------------

    def compare(self, other: "Fixed") -> int:
        """Лексикографическое сравнение (floor, frac): -1, 0 или 1."""
        lhs = (self.floor, self.frac)
        rhs = (other.floor, other.frac)
        if lhs < rhs:
            return -1
        if lhs > rhs:
            return 1
        return 0

    def __eq__(self, other: Any) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self.floor == rhs.floor and self.frac == rhs.frac

    def __hash__(self) -> int:
        # Хэш точного рационального значения совпадает с хэшем равных int/float
        return hash(Fraction(self.floor) + Fraction(self.frac))

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
    # Округление и отображение
    # -------------------------------------------------------------------------

    def _scaled(self, digits: int) -> int:
        """Значение * 10^digits, округлённое до целого (half up)."""
        return self.floor * pow10(digits) + scale_fraction(self.frac, digits)

    def round_to_precision(self, digits: int) -> "Fixed":
        """
        Округление дроби до digits десятичных цифр (half up).

        digits <= 0 округляет до целого с переносом в floor.

        Examples:
            >>> Fixed.of(1, 0.96).round_to_precision(1)
            Fixed(floor=2, frac=0.0)
        """
        digits = max(digits, 0)
        scale = pow10(digits)
        floor, rest = divmod(self._scaled(digits), scale)
        return Fixed(floor=floor, frac=rest / scale)

    def show(self, precision: int = -1, max_precision: int = FIXED_MAX_PRECISION) -> str:
        """
        Десятичная запись значения.

        Args:
            precision: Количество дробных цифр. < 0 — автоматически:
                значение округляется до max_precision цифр, хвостовые нули
                отбрасываются, а больше трёх оставшихся цифр дополняются
                нулями до кратного трём (милли/микро/нано группы).
                0 — округление до целого. > 0 — ровно precision цифр
                (округление до min(precision, max_precision) и дополнение нулями).
            max_precision: Верхняя граница количества значащих дробных цифр

        Returns:
            Строка вида "-12.345"; целые значения выводятся без точки

        Examples:
            >>> Fixed.of(1, 0.5).show()
            '1.5'
            >>> Fixed.of(0, 0.1234).show()
            '0.123400'
            >>> Fixed.of(2, 0.5).show(3)
            '2.500'
            >>> Fixed.of(-1, 0.7).show()
            '-0.3'
        """
        max_precision = max(max_precision, 0)
        digits = max_precision if precision < 0 else min(precision, max_precision)

        scaled = self._scaled(digits)
        sign = "-" if scaled < 0 else ""
        whole, rest = divmod(abs(scaled), pow10(digits))
        text = f"{sign}{whole}"
        if rest == 0:
            return text

        frac_digits = str(rest).rjust(digits, "0")
        if precision < 0:
            frac_digits = frac_digits.rstrip("0")
            if len(frac_digits) > 3:
                groups = -(-len(frac_digits) // 3)
                frac_digits = frac_digits.ljust(groups * 3, "0")
        else:
            frac_digits = frac_digits.ljust(precision, "0")

        return f"{text}.{frac_digits}"

    def __str__(self) -> str:
        return self.show()


FixedLike = Union[Fixed, int, float]

# Канонические константы
FIXED_ZERO: Final[Fixed] = Fixed()
FIXED_ONE: Final[Fixed] = Fixed(floor=1)


def _coerce(value: Any) -> Optional[Fixed]:
    """Приведение операнда (Fixed, int, float) к Fixed; None для прочих типов."""
    if isinstance(value, Fixed):
        return value
    if isinstance(value, int):
        return Fixed(floor=value)
    if isinstance(value, float):
        return Fixed.from_float(value)
    return None


def to_fixed(value: FixedLike) -> Fixed:
    """
    Приведение числа к Fixed.

    Raises:
        TypeError: Если value не Fixed, int или float
    """
    result = _coerce(value)
    if result is None:
        raise TypeError(f"cannot convert {type(value).__name__} to Fixed")
    return result
