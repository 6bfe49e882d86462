"""Notification schemas."""
from typing import Any

from pydantic import BaseModel, Field, field_validator


class NotificationResponse(BaseModel):
    id: str
    type: str
    channel: str
    message: str
    event_key: str
    locale: str
    card_id: str | None = None
    budget_id: str | None = None
    read: bool
    sent_at: str

    @field_validator("read", mode="before")
    @classmethod
    def int_to_bool(cls, v: Any) -> bool:
        if isinstance(v, int):
            return bool(v)
        return v

    class Config:
        from_attributes = True


class PushTestResponse(BaseModel):
    success_count: int
    failure_count: int


class EmailTestResponse(BaseModel):
    delivered: bool
    email: str


class DeviceTokenRegister(BaseModel):
    """Register or refresh a push token for the current user."""

    token: str = Field(min_length=1, max_length=4096)
    platform: str = "unknown"

    @field_validator("token")
    @classmethod
    def strip_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("token is required")
        return v


class DeviceTokenResponse(BaseModel):
    token: str
    platform: str


class LocaleUpdate(BaseModel):
    locale: str = Field(min_length=1, max_length=35)


class LocaleResponse(BaseModel):
    locale: str
