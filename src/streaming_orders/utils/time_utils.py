from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

from dateutil.relativedelta import relativedelta


def truncate_to_seconds(value: datetime) -> datetime:
    """Отбрасывает микросекунды: в БД все метки времени хранятся с точностью до секунды."""
    return value.replace(microsecond=0)


def utc_now() -> datetime:
    return truncate_to_seconds(datetime.now(timezone.utc))


def add_calendar_period(start: datetime, period: relativedelta) -> datetime:
    """
    Календарное сложение: 2024-01-31 + 1 месяц = 2024-02-29,
    а не фиксированное число секунд.
    """
    return truncate_to_seconds(start + period)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Текущее время UTC, усечённое до секунд."""

    def now(self) -> datetime:
        return utc_now()


class FixedClock:
    """Часы с заданным временем; двигаются только через set()/advance()."""

    def __init__(self, now: datetime):
        self._now = self._normalize(now)

    @staticmethod
    def _normalize(value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return truncate_to_seconds(value.astimezone(timezone.utc))

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = self._normalize(now)

    def advance(self, delta: timedelta | relativedelta) -> datetime:
        self._now = self._normalize(self._now + delta)
        return self._now
