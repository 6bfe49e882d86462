"""Push device registration endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pennywise.api.deps import get_current_user, get_db
from pennywise.models.device_token import DeviceToken
from pennywise.models.user import User
from pennywise.schemas.notification import DeviceTokenRegister, DeviceTokenResponse

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("/tokens", response_model=DeviceTokenResponse, status_code=status.HTTP_201_CREATED)
def register_token(
    token_data: DeviceTokenRegister,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Register a device token, or refresh it if it is already known."""
    token_id = DeviceToken.make_id(current_user.id, token_data.token)
    device_token = db.get(DeviceToken, token_id)
    
    if device_token:
        device_token.token = token_data.token
        device_token.platform = token_data.platform
    else:
        device_token = DeviceToken(
            id=token_id,
            user_id=current_user.id,
            token=token_data.token,
            platform=token_data.platform,
        )
        db.add(device_token)
    
    db.commit()
    return DeviceTokenResponse(token=device_token.token, platform=device_token.platform)
