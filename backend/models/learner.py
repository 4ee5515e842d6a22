from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from backend.database import Base

class Learner(Base):
    """A learner and how far through TABLE_ORDER they have unlocked"""
    __tablename__ = "learners"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    unlocked_count = Column(Integer, nullable=False, default=1)  # tables open, 1..12
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    
    fact_progress = relationship(
        "FactProgress",
        back_populates="learner",
        cascade="all, delete-orphan"
    )
