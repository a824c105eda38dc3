"""
Timestamp — момент времени с явным учётом leap seconds

Представление: since (Fixed, секунды от эпохи по непрерывной шкале)
+ leap_seconds (int >= 0, дополнительные leap seconds в этот момент).

Отображаемое количество секунд от эпохи = since + leap_seconds, но порядок
и арифметика используют лексикографическую пару (since, leap_seconds),
а не сумму. Момент внутри вставленной leap second кодируется как
(since - 1, leap_seconds=1): непрерывная шкала удерживается на единицу
назад, а счётчик помечает особую секунду.

Календарный слой (вне этого модуля) использует только calendar_seconds(),
days_seconds() и show().

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. leap_seconds >= 0
2. Сравнение: since доминирует, leap_seconds — tie-break
3. timestamp ± span меняет только since
"""

import logging
from typing import Any, Final, NamedTuple, Optional

from pydantic import BaseModel, Field, model_validator

from src.core.math.fixed import FIXED_ONE, Fixed, FixedLike, to_fixed

logger = logging.getLogger(__name__)

# =============================================================================
# ПАРАМЕТРЫ
# =============================================================================

# Количество секунд в сутках (без leap seconds)
SECONDS_PER_DAY: Final[int] = 86_400

# Точность дробных секунд при отображении по умолчанию (наносекунды)
TIMESTAMP_SHOW_PRECISION: Final[int] = 9


# =============================================================================
# RESULT TYPES
# =============================================================================


class CalendarSeconds(NamedTuple):
    """
    Секунды для календарного отображения.

    seconds: целое количество секунд непрерывной шкалы (floor)
    fraction: дробная секунда в [0, 1)
    leap_seconds: счётчик leap seconds (секунда 60 минуты при leap_seconds > 0)
    """

    seconds: int
    fraction: float
    leap_seconds: int


class DaySeconds(NamedTuple):
    """Разложение since на целые сутки и секунды внутри суток в [0, 86400)."""

    days: int
    seconds: Fixed


# =============================================================================
# TIMESTAMP MODEL
# =============================================================================


class Timestamp(BaseModel):
    """
    Момент времени: since + leap_seconds.

    Immutable модель (frozen=True). since принимает Fixed, int или float.
    """

    since: Fixed = Field(default_factory=Fixed, description="Секунды от эпохи (непрерывная шкала)")
    leap_seconds: int = Field(0, ge=0, description="Дополнительные leap seconds")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def coerce_since(cls, data: Any) -> Any:
        """Приведение числового since к Fixed."""
        if isinstance(data, dict) and isinstance(data.get("since"), (int, float)):
            return {**data, "since": to_fixed(data["since"])}
        return data

    @classmethod
    def of(cls, since: FixedLike, leap_seconds: int = 0) -> "Timestamp":
        """Конструктор из смещения от эпохи и счётчика leap seconds."""
        return cls(since=to_fixed(since), leap_seconds=leap_seconds)

    @classmethod
    def from_days(
        cls, days: int, seconds: FixedLike = 0, leap_seconds: int = 0
    ) -> "Timestamp":
        """
        Конструктор из количества суток от эпохи и секунд внутри суток.

        Examples:
            >>> Timestamp.from_days(1, 30).since.floor
            86430
        """
        return cls(
            since=Fixed(floor=days * SECONDS_PER_DAY) + to_fixed(seconds),
            leap_seconds=leap_seconds,
        )

    # -------------------------------------------------------------------------
    # Аксессоры
    # -------------------------------------------------------------------------

    def total_seconds(self) -> Fixed:
        """Плоское представление since + leap_seconds (секунды от эпохи)."""
        return self.since + self.leap_seconds

    def without_leap_seconds(self) -> "Timestamp":
        """Копия с leap_seconds = 0 (since сохраняется)."""
        if self.leap_seconds == 0:
            return self
        return Timestamp(since=self.since)

    def calendar_seconds(self) -> CalendarSeconds:
        """
        Тройка (целые секунды, дробная секунда, leap_seconds) для календаря.

        Examples:
            >>> Timestamp.of(Fixed.of(10, 0.25), 1).calendar_seconds()
            CalendarSeconds(seconds=10, fraction=0.25, leap_seconds=1)
        """
        return CalendarSeconds(
            seconds=self.since.floor,
            fraction=self.since.floored_fraction(),
            leap_seconds=self.leap_seconds,
        )

    def days_seconds(self) -> DaySeconds:
        """
        Разложение since на (сутки, секунды внутри суток).

        Для моментов до эпохи сутки отрицательные, секунды в [0, 86400).
        """
        days, seconds = divmod(self.since.floor, SECONDS_PER_DAY)
        return DaySeconds(days=days, seconds=Fixed(floor=seconds, frac=self.since.frac))

    def is_epoch(self) -> bool:
        return self.since.is_zero() and self.leap_seconds == 0

    # -------------------------------------------------------------------------
    # Leap seconds
    # -------------------------------------------------------------------------

    def add_leap_seconds(self, delta: FixedLike) -> "Timestamp":
        """
        Добавление leap seconds.

        - delta <= 0: без изменений
        - 0 < delta < 1 и leap_seconds == 0: момент внутри вставленной
          leap second, кодируется как (since - 1, leap_seconds=1)
        - иначе: дробная часть delta добавляется к since,
          целая часть — к leap_seconds

        Examples:
            >>> Timestamp.of(100).add_leap_seconds(0.5)
            Timestamp(since=Fixed(floor=99, frac=0.0), leap_seconds=1)
        """
        delta = to_fixed(delta)
        if not delta.is_positive():
            return self

        if delta < FIXED_ONE and self.leap_seconds == 0:
            logger.debug(
                "timestamp_inside_leap_second",
                extra={"since": self.since.show(), "delta": delta.show()},
            )
            return Timestamp(since=self.since - FIXED_ONE, leap_seconds=1)

        return Timestamp(
            since=self.since + delta.fraction(),
            leap_seconds=self.leap_seconds + delta.trunc(),
        )

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def __add__(self, span: Any) -> "Timestamp":
        if not isinstance(span, (Fixed, int, float)):
            return NotImplemented
        return Timestamp(since=self.since + span, leap_seconds=self.leap_seconds)

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        """
        timestamp - span → Timestamp (leap_seconds без изменений);
        timestamp - timestamp → Fixed, разность total_seconds().
        """
        if isinstance(other, Timestamp):
            return self.total_seconds() - other.total_seconds()
        if not isinstance(other, (Fixed, int, float)):
            return NotImplemented
        return Timestamp(since=self.since - other, leap_seconds=self.leap_seconds)

    def round_to_precision(self, digits: int) -> "Timestamp":
        """Округление since до digits дробных цифр (leap_seconds не меняется)."""
        return Timestamp(
            since=self.since.round_to_precision(digits),
            leap_seconds=self.leap_seconds,
        )

    # -------------------------------------------------------------------------
    # Сравнение
    # -------------------------------------------------------------------------

    def compare(self, other: "Timestamp") -> int:
        """
        Лексикографическое сравнение (since, leap_seconds): -1, 0 или 1.

        При равном since момент с большим leap_seconds идёт позже.
        """
        order = self.since.compare(other.since)
        if order != 0:
            return order
        if self.leap_seconds < other.leap_seconds:
            return -1
        if self.leap_seconds > other.leap_seconds:
            return 1
        return 0

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.compare(other) >= 0

    # -------------------------------------------------------------------------
    # Отображение
    # -------------------------------------------------------------------------

    def show(
        self,
        max_precision: int = TIMESTAMP_SHOW_PRECISION,
        secs_width: int = 1,
        unit: str = "",
    ) -> str:
        """
        Запись since в секундах с суффиксом " (+N leap)" при leap_seconds != 0.

        Args:
            max_precision: Максимум дробных цифр секунд
            secs_width: Минимальная ширина целой части (дополняется нулями)
            unit: Суффикс единицы измерения после числа (например, "s")

        Examples:
            >>> Timestamp.of(Fixed.of(59, 0.5), 1).show(secs_width=2, unit="s")
            '59.5s (+1 leap)'
            >>> Timestamp.of(5).show(secs_width=2)
            '05'
        """
        text = self.since.show(max_precision=max_precision)
        sign = "-" if text.startswith("-") else ""
        whole, dot, frac_digits = text[len(sign):].partition(".")
        text = f"{sign}{whole.rjust(secs_width, '0')}{dot}{frac_digits}{unit}"
        if self.leap_seconds != 0:
            text += f" (+{self.leap_seconds} leap)"
        return text

    def __str__(self) -> str:
        return self.show()


# Каноническая эпоха (since=0, leap_seconds=0)
TIMESTAMP_EPOCH: Final[Timestamp] = Timestamp()


def parse_timestamp(text: str, leap_seconds: int = 0) -> Optional[Timestamp]:
    """
    Парсинг секунд от эпохи ("1234.5") в Timestamp.

    Returns:
        Timestamp или None, если строка не является десятичным числом
    """
    since = Fixed.parse(text)
    if since is None:
        return None
    return Timestamp(since=since, leap_seconds=leap_seconds)
