"""Recurring chore/event expansion.

Clients speak the legacy integer cycle codes (``0`` no repeat, ``N > 0`` every
N days, ``-30`` monthly, ``-365`` yearly). They are translated into a
``Recurrence`` at the API boundary and never travel further in raw form.
Month and year steps use ``relativedelta`` so Jan 31 + 1 month lands on the
last day of February instead of overflowing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

NO_REPEAT_CODE = 0
MONTHLY_CODE = -30
YEARLY_CODE = -365
MAX_REPEAT_COUNT = 365


class InvalidCycleCode(ValueError):
    def __init__(self, code: int):
        super().__init__(
            f"Unsupported cycle {code}. Use 0, a positive number of days, "
            f"{MONTHLY_CODE} (monthly) or {YEARLY_CODE} (yearly)."
        )
        self.code = code


class RecurrenceKind(str, Enum):
    NONE = "none"
    EVERY_N_DAYS = "every_n_days"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class Recurrence:
    kind: RecurrenceKind
    interval_days: int = 0

    @classmethod
    def none(cls) -> Recurrence:
        return cls(RecurrenceKind.NONE)

    @classmethod
    def every_n_days(cls, days: int) -> Recurrence:
        if days <= 0:
            raise ValueError("Day interval must be positive")
        return cls(RecurrenceKind.EVERY_N_DAYS, days)

    @classmethod
    def monthly(cls) -> Recurrence:
        return cls(RecurrenceKind.MONTHLY)

    @classmethod
    def yearly(cls) -> Recurrence:
        return cls(RecurrenceKind.YEARLY)

    @classmethod
    def from_cycle_code(cls, code: int) -> Recurrence:
        if code == NO_REPEAT_CODE:
            return cls.none()
        if code > 0:
            return cls.every_n_days(code)
        if code == MONTHLY_CODE:
            return cls.monthly()
        if code == YEARLY_CODE:
            return cls.yearly()
        raise InvalidCycleCode(code)

    def to_cycle_code(self) -> int:
        if self.kind == RecurrenceKind.EVERY_N_DAYS:
            return self.interval_days
        if self.kind == RecurrenceKind.MONTHLY:
            return MONTHLY_CODE
        if self.kind == RecurrenceKind.YEARLY:
            return YEARLY_CODE
        return NO_REPEAT_CODE

    @property
    def repeats(self) -> bool:
        return self.kind != RecurrenceKind.NONE

    def shift(self, base: datetime, steps: int) -> datetime:
        """Date of the occurrence ``steps`` cycles after ``base``."""
        if self.kind == RecurrenceKind.EVERY_N_DAYS:
            return base + timedelta(days=steps * self.interval_days)
        if self.kind == RecurrenceKind.MONTHLY:
            return base + relativedelta(months=steps)
        if self.kind == RecurrenceKind.YEARLY:
            return base + relativedelta(years=steps)
        return base


def occurrence_dates(
    base: datetime,
    recurrence: Recurrence,
    repeat_count: int,
    max_count: int = MAX_REPEAT_COUNT,
) -> list[datetime]:
    """Dates of the child occurrences, excluding the base item itself."""
    if repeat_count < 0 or repeat_count > max_count:
        raise ValueError(f"repeat_count must be between 0 and {max_count}")
    if not recurrence.repeats or repeat_count == 0:
        return []
    return [recurrence.shift(base, step) for step in range(1, repeat_count + 1)]
