"""Credit card model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from pennywise.database import Base


class Card(Base):
    """A user's credit card with its billing configuration."""
    
    __tablename__ = "cards"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    alias = Column(String(100))
    issuer = Column(String(50))
    last4 = Column(String(4))
    
    # Billing configuration; reminders are skipped for cards missing any of these
    statement_day = Column(Integer)  # 1-31
    due_day = Column(Integer)  # 1-31
    limit_amount = Column(Float)
    
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    user = relationship("User", back_populates="cards")
    transactions = relationship("Transaction", back_populates="card")

    @property
    def label(self) -> str:
        return self.alias or self.issuer or f"Card {self.last4 or ''}".strip()
