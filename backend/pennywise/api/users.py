"""User profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pennywise.api.deps import get_current_user, get_db
from pennywise.models.user import User
from pennywise.schemas.notification import LocaleResponse, LocaleUpdate
from pennywise.services.templates import resolve_locale_tag

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/me/locale", response_model=LocaleResponse)
def set_locale(
    locale_data: LocaleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Store the user's notification locale, normalized to a supported tag."""
    current_user.locale = resolve_locale_tag(locale_data.locale)
    db.commit()
    return LocaleResponse(locale=current_user.locale)
