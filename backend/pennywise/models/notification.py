"""Notification audit log and dedup marker models."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text

from pennywise.database import Base


class NotificationLog(Base):
    """One successful delivery on one channel."""
    
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_unread", "user_id", "read"),
        Index("ix_notifications_sent", "user_id", "sent_at"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    
    # Notification type: due-reminder, utilization-80, utilization-95, budget-<n>, test-push, test-email
    type = Column(String(50), nullable=False)
    channel = Column(String(10), nullable=False)  # push | email
    event_key = Column(String(255), nullable=False)
    locale = Column(String(35), nullable=False)
    ab_variant = Column(String(1))
    
    # Email tracking
    tracking_open_url = Column(Text)
    tracking_click_url = Column(Text)
    opened_at = Column(String(26))
    clicked_at = Column(String(26))
    
    # Context
    card_id = Column(String(36))
    budget_id = Column(String(36))
    
    # Content
    message = Column(Text, nullable=False)
    
    # Status
    read = Column(Integer, default=0)  # SQLite boolean
    read_at = Column(String(26))
    
    sent_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())


class NotificationKey(Base):
    """Marker that a (user, event, channel) triple was notified at sent_at."""
    
    __tablename__ = "notif_keys"
    
    id = Column(String(512), primary_key=True)  # sanitized "<user_id>:<channel>:<event_key>"
    user_id = Column(String(36), nullable=False, index=True)
    event_key = Column(String(255), nullable=False)
    channel = Column(String(10), nullable=False)
    sent_at = Column(String(26), nullable=False)
