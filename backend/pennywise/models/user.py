"""User profile model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from pennywise.database import Base


class User(Base):
    """User profile; the account email doubles as the email channel recipient."""
    
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True)
    email_verified = Column(Integer, default=1)  # SQLite boolean
    locale = Column(String(35))  # BCP 47 tag, e.g. en-US, zh-TW
    preferred_currency = Column(String(3), default="TWD")
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    cards = relationship("Card", back_populates="user", cascade="all, delete-orphan")
    budgets = relationship("Budget", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    device_tokens = relationship("DeviceToken", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("NotificationLog", backref="user", cascade="all, delete-orphan")
