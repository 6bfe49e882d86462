"""Reminder event producers and the scheduled notification sweep.

Scanners read cards and budgets and emit ReminderEvents; event keys depend only
on the record id and the threshold (or days to due), so repeated sweeps converge
on the same keys and the dedup window suppresses repeats.
"""
import json
import logging
import math
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pennywise.models.budget import Budget
from pennywise.models.card import Card
from pennywise.models.transaction import Transaction
from pennywise.services.billing import compute_cycle, compute_due_date, days_between
from pennywise.services.budget_periods import resolve_period_range
from pennywise.services.engine import NotificationEngine, ReminderEvent
from pennywise.services.exceptions import UnsupportedTemplateError
from pennywise.services.templates import (
    BudgetAlertInput,
    BudgetTemplate,
    DueReminderInput,
    DueTemplate,
    UtilizationAlertInput,
    UtilizationTemplate,
)

logger = logging.getLogger(__name__)

DUE_REMINDER_DAYS = frozenset({7, 3, 1, 0})
UTILIZATION_CRITICAL = 0.95
UTILIZATION_WARNING = 0.80
DEFAULT_BUDGET_THRESHOLDS = (80, 100)


def sum_current_bill(db: Session, card: Card, start: date, end: date) -> float:
    """Sum of the card's current-bill transactions dated within [start, end]."""
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0.0))
        .filter(
            Transaction.user_id == card.user_id,
            Transaction.card_id == card.id,
            Transaction.affect_current_bill == 1,
            Transaction.date >= start.isoformat(),
            Transaction.date <= end.isoformat(),
        )
        .scalar()
    )
    return float(total or 0.0)


def _has_billing_config(card: Card) -> bool:
    return (
        bool(card.user_id)
        and isinstance(card.statement_day, int)
        and 1 <= card.statement_day <= 31
        and isinstance(card.due_day, int)
        and 1 <= card.due_day <= 31
        and isinstance(card.limit_amount, (int, float))
        and card.limit_amount > 0
    )


def card_reminder_events(card: Card, today: date, current_due: float) -> list[ReminderEvent]:
    """Due-date and utilization events for one card on one day."""
    cycle = compute_cycle(today, card.statement_day)
    due_date = compute_due_date(cycle.end, card.due_day)
    days_to_due = days_between(today, due_date)
    utilization = current_due / card.limit_amount
    label = card.label

    events = []
    if days_to_due in DUE_REMINDER_DAYS or days_to_due < 0:
        events.append(ReminderEvent(
            user_id=card.user_id,
            type="due-reminder",
            event_key=f"card:{card.id}:due:{days_to_due}",
            card_id=card.id,
            template=DueTemplate(DueReminderInput(
                card_label=label,
                days_to_due=days_to_due,
                due_date=due_date,
                amount=current_due,
            )),
        ))

    threshold = None
    if utilization >= UTILIZATION_CRITICAL:
        threshold = 95
    elif utilization >= UTILIZATION_WARNING:
        threshold = 80
    if threshold is not None:
        events.append(ReminderEvent(
            user_id=card.user_id,
            type=f"utilization-{threshold}",
            event_key=f"card:{card.id}:utilization:{threshold}",
            card_id=card.id,
            template=UtilizationTemplate(UtilizationAlertInput(
                card_label=label,
                utilization=utilization,
                threshold=threshold,
                limit=card.limit_amount,
                amount=current_due,
            )),
        ))

    return events


def scan_card_reminders(db: Session, today: date) -> list[ReminderEvent]:
    """Reminder events for every card with a complete billing configuration."""
    events = []
    for card in db.query(Card).order_by(Card.created_at, Card.id).all():
        if not _has_billing_config(card):
            logger.debug(f"Skipping card {card.id}: incomplete billing configuration")
            continue

        try:
            cycle = compute_cycle(today, card.statement_day)
            current_due = sum_current_bill(db, card, cycle.start, cycle.end)
            events.extend(card_reminder_events(card, today, current_due))
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping card {card.id}: {e}")
    return events


def _to_positive_number(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number > 0 else 0.0


def normalize_thresholds(value) -> list[float | int]:
    """Numeric, non-negative, unique, ascending; defaults to 80 and 100."""
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else None
        except ValueError:
            value = None

    if value is None:
        raw = list(DEFAULT_BUDGET_THRESHOLDS)
    elif isinstance(value, (list, tuple)):
        raw = list(value)
    else:
        raw = [value]

    thresholds = set()
    for entry in raw:
        if isinstance(entry, bool):
            continue
        try:
            number = float(entry)
        except (TypeError, ValueError):
            continue
        if not math.isfinite(number):
            continue
        number = max(0.0, number)
        thresholds.add(int(number) if number.is_integer() else number)

    if not thresholds:
        return list(DEFAULT_BUDGET_THRESHOLDS)
    return sorted(thresholds)


def budget_label(budget: Budget) -> str:
    for candidate in (budget.label, budget.category):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return f"Budget {budget.id}"


def budget_alert_events(budget: Budget) -> list[ReminderEvent]:
    """One event per alert threshold the budget's usage has reached."""
    user_id = (budget.user_id or "").strip()
    limit = _to_positive_number(budget.limit_amount)
    spent = _to_positive_number(budget.spent)
    if not user_id or (limit <= 0 and spent <= 0):
        return []

    usage_percent = spent / limit * 100 if limit > 0 else math.inf
    label = budget_label(budget)

    events = []
    for threshold in normalize_thresholds(budget.thresholds):
        if usage_percent < threshold:
            continue
        events.append(ReminderEvent(
            user_id=user_id,
            type=f"budget-{threshold}",
            event_key=f"budget:{budget.id}:usage:{threshold}",
            budget_id=budget.id,
            template=BudgetTemplate(BudgetAlertInput(
                budget_label=label,
                spent=spent,
                limit=limit,
                percentage=usage_percent / 100,
                threshold=threshold,
            )),
        ))
    return events


def sum_budget_spend(db: Session, budget: Budget, start: date, end: date) -> float:
    """Positive spend of the budget's category within [start, end]; credits are ignored."""
    category = budget.category.strip().lower()
    total = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0.0))
        .filter(
            Transaction.user_id == budget.user_id,
            func.lower(func.trim(Transaction.category)) == category,
            Transaction.amount > 0,
            Transaction.date >= start.isoformat(),
            Transaction.date <= end.isoformat(),
        )
        .scalar()
    )
    return float(total or 0.0)


def refresh_budget_spent(db: Session, budget: Budget, today: date) -> None:
    """Recompute ``budget.spent`` for the current period and store it when it changed.

    Budgets without a category or a resolvable period keep their stored spend.
    """
    if not isinstance(budget.category, str) or not budget.category.strip():
        return

    period_range = resolve_period_range(budget.period, budget.start_date, budget.end_date, today)
    if period_range is None:
        logger.debug(f"Budget {budget.id} has no resolvable period; keeping stored spend")
        return

    start, end = period_range
    try:
        spent = sum_budget_spend(db, budget, start, end)
        if budget.spent != spent:
            budget.spent = spent
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to refresh spend for budget {budget.id}: {e}")


def scan_budget_alerts(db: Session, today: date | None = None) -> list[ReminderEvent]:
    """Refresh each budget's spend for its current period, then emit its threshold alerts."""
    today = today or date.today()
    events = []
    for budget in db.query(Budget).order_by(Budget.created_at, Budget.id).all():
        refresh_budget_spent(db, budget, today)
        budget_events = budget_alert_events(budget)
        if not budget_events:
            logger.debug(f"No alerts for budget {budget.id}")
        events.extend(budget_events)
    return events


def run_notification_sweep(engine: NotificationEngine, db: Session, now: datetime) -> dict:
    """Scan cards, then budgets, and deliver every resulting event in order.

    ``now`` is read once by the caller; every record in the sweep sees the same day.
    """
    today = now.date()
    events = scan_card_reminders(db, today) + scan_budget_alerts(db, today)

    delivered = 0
    failed = 0
    for event in events:
        try:
            engine.deliver_reminder(event)
            delivered += 1
        except UnsupportedTemplateError:
            raise
        except Exception as e:
            db.rollback()
            logger.exception(f"Failed to deliver {event.event_key} to user {event.user_id}: {e}")
            failed += 1

    logger.info(f"Notification sweep processed {len(events)} events ({failed} failed)")
    return {"events": len(events), "delivered": delivered, "failed": failed}
