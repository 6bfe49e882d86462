"""Email open/click tracking endpoints.

Both endpoints are unauthenticated and never fail on bad input: the pixel is
always served and the redirect always lands somewhere on the app.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pennywise.api.deps import get_db
from pennywise.config import Settings, get_settings
from pennywise.models.notification import NotificationLog
from pennywise.services.tracking import TRANSPARENT_GIF, resolve_click_target

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/track", tags=["tracking"])

NO_CACHE = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"


def _stamp(db: Session, nid: str | None, column: str) -> None:
    """Set the first-seen timestamp column on the notification, if it exists."""
    if not nid:
        return
    try:
        notification = db.get(NotificationLog, nid)
        if notification is not None and getattr(notification, column) is None:
            setattr(notification, column, datetime.utcnow().isoformat())
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to record {column} for notification {nid}: {e}")


@router.get("/open")
def track_open(
    nid: str | None = None,
    uid: str | None = None,
    variant: str | None = None,
    event: str | None = None,
    db: Session = Depends(get_db),
):
    """Serve the 1x1 open-tracking pixel."""
    logger.debug(f"Open beacon nid={nid} uid={uid} variant={variant} event={event}")
    _stamp(db, nid, "opened_at")
    return Response(
        content=TRANSPARENT_GIF,
        media_type="image/gif",
        headers={"Cache-Control": NO_CACHE, "Access-Control-Allow-Origin": "*"},
    )


@router.get("/click")
def track_click(
    nid: str | None = None,
    uid: str | None = None,
    variant: str | None = None,
    event: str | None = None,
    url: str | None = None,
    target: str | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Record the click and redirect to the target page."""
    destination = resolve_click_target(url or target, settings.app_base_url)
    logger.debug(f"Click nid={nid} uid={uid} variant={variant} event={event} -> {destination}")
    _stamp(db, nid, "clicked_at")
    return RedirectResponse(
        destination,
        status_code=302,
        headers={"Cache-Control": "no-store", "Access-Control-Allow-Origin": "*"},
    )
