"""Credit card billing cycle calculation."""
from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class BillingCycle:
    start: date
    end: date


def day_in_month(reference: date, months: int, day: int) -> date:
    """The ``day``-th of the month ``months`` away from reference, clamped to the month's length."""
    return reference.replace(day=1) + relativedelta(months=months, day=day)


def compute_cycle(today: date, statement_day: int) -> BillingCycle:
    """Billing cycle containing today.
    
    The cycle ends on this month's statement date while today is on or before the
    statement day, otherwise on next month's. It starts the day after the previous
    month's statement date.
    """
    if today.day <= statement_day:
        end = day_in_month(today, 0, statement_day)
    else:
        end = day_in_month(today, 1, statement_day)
    previous_end = day_in_month(end, -1, statement_day)
    return BillingCycle(start=previous_end + timedelta(days=1), end=end)


def compute_due_date(cycle_end: date, due_day: int) -> date:
    """Payment due date: due_day of the cycle-end month, rolled a month when not after the cycle end."""
    due = day_in_month(cycle_end, 0, due_day)
    if due <= cycle_end:
        due = day_in_month(cycle_end, 1, due_day)
    return due


def days_between(start: date, end: date) -> int:
    """Calendar-day difference, negative when end is before start."""
    return (end - start).days
