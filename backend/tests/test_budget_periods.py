from datetime import date

import pytest

from pennywise.services.budget_periods import parse_iso_date, resolve_period_range


@pytest.mark.parametrize(
    "period, today, expected",
    [
        ("weekly", date(2026, 4, 29), (date(2026, 4, 27), date(2026, 5, 3))),
        ("weekly", date(2026, 4, 27), (date(2026, 4, 27), date(2026, 5, 3))),
        ("weekly", date(2026, 5, 3), (date(2026, 4, 27), date(2026, 5, 3))),
        ("monthly", date(2026, 2, 14), (date(2026, 2, 1), date(2026, 2, 28))),
        ("Monthly", date(2028, 2, 14), (date(2028, 2, 1), date(2028, 2, 29))),
        ("quarterly", date(2026, 5, 20), (date(2026, 4, 1), date(2026, 6, 30))),
        ("quarterly", date(2026, 12, 31), (date(2026, 10, 1), date(2026, 12, 31))),
        ("yearly", date(2026, 7, 4), (date(2026, 1, 1), date(2026, 12, 31))),
    ],
)
def test_calendar_periods(period, today, expected):
    assert resolve_period_range(period, None, None, today) == expected


def test_custom_period_uses_explicit_dates():
    assert resolve_period_range("custom", "2026-03-10", "2026-04-09T00:00:00", date(2026, 3, 20)) == (
        date(2026, 3, 10),
        date(2026, 4, 9),
    )


@pytest.mark.parametrize(
    "start, end",
    [
        (None, "2026-04-09"),
        ("2026-03-10", None),
        ("not a date", "2026-04-09"),
        ("2026-05-01", "2026-04-01"),
    ],
)
def test_custom_period_without_usable_dates(start, end):
    assert resolve_period_range(None, start, end, date(2026, 3, 20)) is None


def test_parse_iso_date():
    assert parse_iso_date(date(2026, 1, 2)) == date(2026, 1, 2)
    assert parse_iso_date(" 2026-01-02 ") == date(2026, 1, 2)
    assert parse_iso_date("") is None
    assert parse_iso_date(42) is None
