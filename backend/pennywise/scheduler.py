"""Scheduled notification sweep entry point.

Run from cron (or any external scheduler) every ``SWEEP_INTERVAL_HOURS``; the
sweep is not meant to overlap with itself.
"""
import logging
from datetime import datetime, timedelta

from dateutil import tz

from pennywise.config import Settings, get_settings
from pennywise.database import create_tables, get_db_context
from pennywise.services.engine import NotificationEngine
from pennywise.services.mailer import get_email_transport
from pennywise.services.push import get_push_transport
from pennywise.services.reminders import run_notification_sweep

logger = logging.getLogger(__name__)


def local_now(settings: Settings) -> datetime:
    """Current time in the configured timezone; billing days follow the user's calendar."""
    zone = tz.gettz(settings.timezone)
    if zone is None:
        logger.warning(f"Unknown timezone {settings.timezone}; using UTC")
        zone = tz.UTC
    return datetime.now(zone)


def run_scheduled_sweep(settings: Settings | None = None) -> dict:
    """Scan cards and budgets and deliver every due notification once."""
    settings = settings or get_settings()
    push_transport = get_push_transport(settings)
    email_transport = get_email_transport(settings)
    now = local_now(settings)

    with get_db_context() as db:
        engine = NotificationEngine(
            db,
            push_transport=push_transport,
            email_transport=email_transport,
            notification_window=timedelta(hours=settings.notification_window_hours),
            base_url=settings.app_base_url,
            open_pixel_url=settings.open_pixel_endpoint,
            click_redirect_url=settings.click_redirect_endpoint,
        )
        return run_notification_sweep(engine, db, now)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    create_tables()
    result = run_scheduled_sweep(settings)
    logger.info(f"Sweep finished: {result}")


if __name__ == "__main__":
    main()
