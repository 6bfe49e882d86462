"""English notification templates (USD, US date style)."""
from datetime import date

from pennywise.services.templates.common import build_notification, format_amount, resolve_url, round_percent
from pennywise.services.templates.types import (
    BudgetAlertInput,
    DueReminderInput,
    NotificationContent,
    NotificationTemplates,
    UtilizationAlertInput,
)

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_currency(amount: float) -> str:
    return format_amount(amount, "$")


def format_date(value: date) -> str:
    return f"{MONTHS[value.month - 1]} {value.day}, {value.year}"


def _due_summary(data: DueReminderInput, amount: str, due_date: str) -> str:
    if data.days_to_due < 0:
        return f"{data.card_label} payment was due on {due_date}. Outstanding balance: {amount}."
    if data.days_to_due == 0:
        return f"{data.card_label} payment is due today ({due_date}). Balance: {amount}."
    if data.days_to_due == 1:
        return f"{data.card_label} payment is due tomorrow ({due_date}). Balance: {amount}."
    return f"{data.card_label} payment is due in {data.days_to_due} days on {due_date}. Balance: {amount}."


def due_reminder(data: DueReminderInput) -> NotificationContent:
    amount = format_currency(data.amount)
    due_date = format_date(data.due_date)
    return build_notification(
        subject="Card payment reminder",
        summary=_due_summary(data, amount, due_date),
        url=resolve_url(data.base_url, "/cards"),
        facts=[f"Card: {data.card_label}", f"Due date: {due_date}", f"Balance: {amount}"],
        cta_text="Review card activity",
        base_url=data.base_url,
    )


def utilization_alert(data: UtilizationAlertInput) -> NotificationContent:
    percent = round_percent(data.utilization * 100)
    limit = format_currency(data.limit)
    amount = format_currency(data.amount)
    subject = "High utilization alert" if data.threshold >= 95 else "Utilization warning"
    return build_notification(
        subject=subject,
        summary=f"{data.card_label} is at {percent}% of its credit limit (balance {amount} of {limit}).",
        url=resolve_url(data.base_url, "/cards"),
        facts=[f"Card: {data.card_label}", f"Current balance: {amount}", f"Credit limit: {limit}"],
        cta_text="Open cards dashboard",
        base_url=data.base_url,
    )


def budget_alert(data: BudgetAlertInput) -> NotificationContent:
    spent = format_currency(data.spent)
    limit = format_currency(data.limit)
    if data.percentage >= 1:
        subject = "Budget exceeded"
        summary = f"{data.budget_label} exceeded its budget (spent {spent} of {limit})."
    else:
        percent = round_percent(data.percentage * 100)
        subject = f"Budget reached {max(percent, round_percent(data.threshold))}%"
        summary = f"{data.budget_label} is at {percent}% of its budget (spent {spent} of {limit})."
    return build_notification(
        subject=subject,
        summary=summary,
        url=resolve_url(data.base_url, "/budgets"),
        facts=[f"Budget: {data.budget_label}", f"Spent: {spent}", f"Limit: {limit}"],
        cta_text="Review budget details",
        base_url=data.base_url,
    )


templates = NotificationTemplates(
    due_reminder=due_reminder,
    utilization_alert=utilization_alert,
    budget_alert=budget_alert,
)
