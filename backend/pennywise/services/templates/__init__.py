"""Locale-keyed registry of notification template sets."""
import re

from pennywise.services.templates import en, zh_tw
from pennywise.services.templates.types import (
    BudgetAlertInput,
    BudgetTemplate,
    DueReminderInput,
    DueTemplate,
    NotificationContent,
    NotificationTemplates,
    ReminderTemplate,
    UtilizationAlertInput,
    UtilizationTemplate,
)

DEFAULT_LOCALE = "en"

# Insertion order matters for the primary-subtag fallback: first key wins.
TEMPLATE_REGISTRY: dict[str, NotificationTemplates] = {
    "en": en.templates,
    "en-US": en.templates,
    "en-GB": en.templates,
    "zh-TW": zh_tw.templates,
    "zh": zh_tw.templates,
    "zh-Hant": zh_tw.templates,
}


def resolve_locale_tag(locale: str | None) -> str:
    """Normalize a locale string to a registry key.

    Exact case-insensitive match first, then the first key sharing the primary
    language subtag (``zh-Hant-TW`` -> ``zh-TW``), then the default locale.
    """
    if not locale or not locale.strip():
        return DEFAULT_LOCALE

    lowered = locale.strip().lower()
    for key in TEMPLATE_REGISTRY:
        if key.lower() == lowered:
            return key

    prefix = re.split(r"[-_]", lowered)[0]
    if prefix:
        for key in TEMPLATE_REGISTRY:
            if key.lower().startswith(prefix):
                return key

    return DEFAULT_LOCALE


def get_templates(locale: str | None) -> NotificationTemplates:
    return TEMPLATE_REGISTRY.get(resolve_locale_tag(locale), TEMPLATE_REGISTRY[DEFAULT_LOCALE])


__all__ = [
    "DEFAULT_LOCALE",
    "TEMPLATE_REGISTRY",
    "BudgetAlertInput",
    "BudgetTemplate",
    "DueReminderInput",
    "DueTemplate",
    "NotificationContent",
    "NotificationTemplates",
    "ReminderTemplate",
    "UtilizationAlertInput",
    "UtilizationTemplate",
    "get_templates",
    "resolve_locale_tag",
]
