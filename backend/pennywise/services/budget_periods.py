"""Budget period calculation."""
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

BUDGET_PERIODS = ("weekly", "monthly", "quarterly", "yearly", "custom")


def parse_iso_date(value) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def resolve_period_range(
    period: str | None,
    start_date: str | date | None,
    end_date: str | date | None,
    today: date,
) -> tuple[date, date] | None:
    """Calculate the inclusive start and end dates of the budget period containing today.

    Args:
        period: weekly (Monday to Sunday), monthly, quarterly, yearly; anything
            else uses the explicit start_date/end_date
        start_date: Custom period start, ISO date string or date
        end_date: Custom period end, ISO date string or date
        today: The date to find the period for

    Returns:
        Tuple of (period_start, period_end), or None when a custom period has no
        usable dates
    """
    cadence = (period or "").strip().lower()

    if cadence == "weekly":
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=6)

    elif cadence == "monthly":
        start = today.replace(day=1)
        end = (start + relativedelta(months=1)) - timedelta(days=1)

    elif cadence == "quarterly":
        # Q1: Jan-Mar, Q2: Apr-Jun, Q3: Jul-Sep, Q4: Oct-Dec
        quarter = (today.month - 1) // 3
        start = date(today.year, quarter * 3 + 1, 1)
        end = (start + relativedelta(months=3)) - timedelta(days=1)

    elif cadence == "yearly":
        start = date(today.year, 1, 1)
        end = date(today.year, 12, 31)

    else:
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
        if start is None or end is None or start > end:
            return None

    return start, end
