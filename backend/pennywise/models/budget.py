"""Budget model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from pennywise.database import Base


class Budget(Base):
    """Spending budget with alert thresholds (percent of limit)."""
    
    __tablename__ = "budgets"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(100))
    category = Column(String(100))
    limit_amount = Column(Float)
    spent = Column(Float, default=0.0)  # recomputed by the budget sweep from transactions
    period = Column(String(20), default="monthly")  # weekly, monthly, quarterly, yearly, custom
    start_date = Column(String(10))  # YYYY-MM-DD, custom periods only
    end_date = Column(String(10))
    thresholds = Column(Text)  # JSON array, e.g. [80, 100]; empty means defaults
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    user = relationship("User", back_populates="budgets")
