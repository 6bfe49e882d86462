"""Content types shared by the notification template sets."""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, ClassVar, Union


@dataclass(frozen=True)
class PushContent:
    title: str
    body: str


@dataclass(frozen=True)
class EmailContent:
    subject: str
    template_name: str = "email"
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationContent:
    """Channel-agnostic render of one reminder for one locale."""

    summary: str
    push: PushContent
    email: EmailContent
    url: str


@dataclass(frozen=True)
class DueReminderInput:
    card_label: str
    days_to_due: int
    due_date: date
    amount: float
    base_url: str = ""


@dataclass(frozen=True)
class UtilizationAlertInput:
    card_label: str
    utilization: float  # fraction of the limit, 0.97 == 97%
    threshold: int  # 80 or 95
    limit: float
    amount: float
    base_url: str = ""


@dataclass(frozen=True)
class BudgetAlertInput:
    budget_label: str
    spent: float
    limit: float
    percentage: float  # fraction of the limit; inf when the limit is zero
    threshold: float
    base_url: str = ""


@dataclass(frozen=True)
class NotificationTemplates:
    due_reminder: Callable[[DueReminderInput], NotificationContent]
    utilization_alert: Callable[[UtilizationAlertInput], NotificationContent]
    budget_alert: Callable[[BudgetAlertInput], NotificationContent]


# Reminder template variants. The set is closed: the engine refuses anything else.

@dataclass(frozen=True)
class DueTemplate:
    kind: ClassVar[str] = "due"
    data: DueReminderInput


@dataclass(frozen=True)
class UtilizationTemplate:
    kind: ClassVar[str] = "utilization"
    data: UtilizationAlertInput


@dataclass(frozen=True)
class BudgetTemplate:
    kind: ClassVar[str] = "budget"
    data: BudgetAlertInput


ReminderTemplate = Union[DueTemplate, UtilizationTemplate, BudgetTemplate]
