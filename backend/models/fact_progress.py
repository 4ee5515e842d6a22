from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from backend.database import Base

class FactProgress(Base):
    """Spaced repetition state for one learner on one problem"""
    __tablename__ = "fact_progress"
    __table_args__ = (
        UniqueConstraint("learner_id", "problem_a", "problem_b", name="uq_fact_progress_problem"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    learner_id = Column(Integer, ForeignKey("learners.id"), nullable=False, index=True)
    problem_a = Column(Integer, nullable=False)
    problem_b = Column(Integer, nullable=False)
    
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Float, nullable=False, default=0.0)
    next_review = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    times_correct = Column(Integer, nullable=False, default=0)
    times_wrong = Column(Integer, nullable=False, default=0)
    consecutive_correct = Column(Integer, nullable=False, default=0)
    
    last_answered = Column(DateTime(timezone=True))
    
    learner = relationship("Learner", back_populates="fact_progress")
