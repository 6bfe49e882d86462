"""Notification API endpoints."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pennywise.api.deps import get_current_user, get_db
from pennywise.config import get_settings
from pennywise.models.notification import NotificationLog
from pennywise.models.user import User
from pennywise.schemas.notification import EmailTestResponse, NotificationResponse, PushTestResponse
from pennywise.services.engine import NotificationEngine
from pennywise.services.exceptions import NotificationError, TemplateRenderError, TransportFailedError
from pennywise.services.mailer import get_email_transport
from pennywise.services.push import get_push_transport

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_engine(db: Session = Depends(get_db)) -> NotificationEngine:
    """Per-request engine; its caches live only as long as the request."""
    settings = get_settings()
    return NotificationEngine(
        db,
        push_transport=get_push_transport(settings),
        email_transport=get_email_transport(settings),
        notification_window=timedelta(hours=settings.notification_window_hours),
        base_url=settings.app_base_url,
        open_pixel_url=settings.open_pixel_endpoint,
        click_redirect_url=settings.click_redirect_endpoint,
    )


def _error_response(error: NotificationError) -> HTTPException:
    if isinstance(error, TransportFailedError):
        status_code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, TemplateRenderError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_412_PRECONDITION_FAILED
    return HTTPException(
        status_code=status_code,
        detail={"reason": error.reason, "message": error.message},
    )


@router.get("", response_model=list[NotificationResponse])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get user's notifications."""
    query = db.query(NotificationLog).filter(NotificationLog.user_id == current_user.id)
    if unread_only:
        query = query.filter(NotificationLog.read == 0)
    
    return query.order_by(NotificationLog.sent_at.desc()).limit(50).all()


@router.post("/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark a notification as read."""
    notification = db.query(NotificationLog).filter(
        NotificationLog.id == notification_id,
        NotificationLog.user_id == current_user.id,
    ).first()
    
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    
    notification.read = 1
    notification.read_at = datetime.utcnow().isoformat()
    db.commit()
    return {"success": True}


@router.post("/test/push", response_model=PushTestResponse)
def send_test_push(
    engine: NotificationEngine = Depends(get_notification_engine),
    current_user: User = Depends(get_current_user),
):
    """Send a test push to every registered device of the current user."""
    try:
        result = engine.send_test_push(current_user.id)
    except NotificationError as e:
        raise _error_response(e)
    return PushTestResponse(success_count=result.success_count, failure_count=result.failure_count)


@router.post("/test/email", response_model=EmailTestResponse)
def send_test_email(
    engine: NotificationEngine = Depends(get_notification_engine),
    current_user: User = Depends(get_current_user),
):
    """Send a test email to the current user's address."""
    try:
        email = engine.send_test_email(current_user.id)
    except NotificationError as e:
        raise _error_response(e)
    return EmailTestResponse(delivered=True, email=email)
