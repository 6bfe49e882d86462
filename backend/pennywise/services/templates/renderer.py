"""Email HTML rendering with Jinja2.

Templates live under ``email/<locale>/`` and are looked up variant first:
``<name>_<variant>.html`` then ``<name>.html``.
"""
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from pennywise.services.templates import resolve_locale_tag

TEMPLATE_DIR = Path(__file__).parent / "email"
EMAIL_LOCALES = ("en", "zh-TW")


@lru_cache
def get_environment() -> Environment:
    """Shared environment; Jinja2 caches compiled templates per environment."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def email_locale(locale: str | None) -> str:
    """Map any registry locale onto a locale that has an email template directory."""
    tag = resolve_locale_tag(locale)
    return "zh-TW" if tag.lower().startswith("zh") else "en"


def candidate_templates(locale: str, template_name: str, variant: str) -> list[str]:
    folder = email_locale(locale)
    return [
        f"{folder}/{template_name}_{variant}.html",
        f"{folder}/{template_name}.html",
    ]


def render_email_template(
    locale: str,
    context: dict[str, Any],
    template_name: str = "email",
    variant: str = "A",
) -> str:
    """Render the email body; raises TemplateNotFound when no candidate exists."""
    candidates = candidate_templates(locale, template_name, variant)
    template = get_environment().select_template(candidates)
    return template.render(**context)


__all__ = ["EMAIL_LOCALES", "TemplateNotFound", "email_locale", "render_email_template"]
