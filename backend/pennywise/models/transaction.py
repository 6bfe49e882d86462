"""Transaction model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from pennywise.database import Base


class Transaction(Base):
    """A spend or credit recorded against a card or wallet."""
    
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_card_bill", "card_id", "affect_current_bill", "date"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    card_id = Column(String(36), ForeignKey("cards.id", ondelete="SET NULL"))
    
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    amount = Column(Float, nullable=False)  # Positive = spend, negative = credit
    category = Column(String(100))
    note = Column(String(255))
    affect_current_bill = Column(Integer, default=1)  # SQLite boolean
    
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    user = relationship("User", back_populates="transactions")
    card = relationship("Card", back_populates="transactions")
