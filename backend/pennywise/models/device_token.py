"""Push device token model."""
import hashlib
from datetime import datetime

from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from pennywise.database import Base


class DeviceToken(Base):
    """FCM registration token of one of the user's devices."""
    
    __tablename__ = "user_tokens"
    
    id = Column(String(64), primary_key=True)  # sha256 hex of "<user_id>:<token>"
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(4096), nullable=False)
    platform = Column(String(20), default="unknown")
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    user = relationship("User", back_populates="device_tokens")

    @staticmethod
    def make_id(user_id: str, token: str) -> str:
        """Fixed-length key for a (user, token) pair; tokens can be thousands of characters."""
        return hashlib.sha256(f"{user_id}:{token}".encode("utf-8")).hexdigest()
