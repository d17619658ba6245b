from datetime import datetime

import pytest

from homebase.services.recurrence import (
    InvalidCycleCode,
    Recurrence,
    RecurrenceKind,
    occurrence_dates,
)


@pytest.mark.parametrize(
    ("code", "kind", "interval"),
    [
        (0, RecurrenceKind.NONE, 0),
        (1, RecurrenceKind.EVERY_N_DAYS, 1),
        (14, RecurrenceKind.EVERY_N_DAYS, 14),
        (-30, RecurrenceKind.MONTHLY, 0),
        (-365, RecurrenceKind.YEARLY, 0),
    ],
)
def test_cycle_codes_map_to_recurrence(code: int, kind: RecurrenceKind, interval: int) -> None:
    recurrence = Recurrence.from_cycle_code(code)
    assert recurrence.kind == kind
    assert recurrence.interval_days == interval
    assert recurrence.to_cycle_code() == code


@pytest.mark.parametrize("code", [-1, -7, -31, -364, -366, -1000])
def test_unknown_negative_cycle_codes_are_rejected(code: int) -> None:
    with pytest.raises(InvalidCycleCode) as exc_info:
        Recurrence.from_cycle_code(code)
    assert exc_info.value.code == code


def test_weekly_occurrences_step_from_base() -> None:
    dates = occurrence_dates(datetime(2025, 1, 1), Recurrence.every_n_days(7), 3)
    assert dates == [datetime(2025, 1, 8), datetime(2025, 1, 15), datetime(2025, 1, 22)]


def test_no_repeat_ignores_repeat_count() -> None:
    assert occurrence_dates(datetime(2025, 1, 1), Recurrence.none(), 10) == []


def test_zero_repeat_count_yields_nothing() -> None:
    assert occurrence_dates(datetime(2025, 1, 1), Recurrence.monthly(), 0) == []


def test_monthly_clamps_to_month_end() -> None:
    dates = occurrence_dates(datetime(2025, 1, 31, 9, 30), Recurrence.monthly(), 3)
    assert dates == [
        datetime(2025, 2, 28, 9, 30),
        datetime(2025, 3, 31, 9, 30),
        datetime(2025, 4, 30, 9, 30),
    ]


def test_yearly_clamps_leap_day() -> None:
    dates = occurrence_dates(datetime(2024, 2, 29), Recurrence.yearly(), 4)
    assert dates == [
        datetime(2025, 2, 28),
        datetime(2026, 2, 28),
        datetime(2027, 2, 28),
        datetime(2028, 2, 29),
    ]


@pytest.mark.parametrize("repeat_count", [-1, 366])
def test_repeat_count_out_of_range(repeat_count: int) -> None:
    with pytest.raises(ValueError):
        occurrence_dates(datetime(2025, 1, 1), Recurrence.every_n_days(1), repeat_count)


def test_every_n_days_requires_positive_interval() -> None:
    with pytest.raises(ValueError):
        Recurrence.every_n_days(0)


def test_repeat_limit_can_be_raised() -> None:
    dates = occurrence_dates(
        datetime(2025, 1, 1), Recurrence.every_n_days(1), 400, max_count=500
    )

    assert len(dates) == 400
    assert dates[-1] == datetime(2026, 2, 5)
