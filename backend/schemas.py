from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from backend.problem import MAX_FACTOR, MIN_FACTOR, Problem

class ProblemSchema(BaseModel):
    """A multiplication fact a × b"""
    model_config = ConfigDict(from_attributes=True)

    a: int = Field(ge=MIN_FACTOR, le=MAX_FACTOR)
    b: int = Field(ge=MIN_FACTOR, le=MAX_FACTOR)

    def to_problem(self) -> Problem:
        return Problem(self.a, self.b)

class LearnerCreate(BaseModel):
    """Schema for creating a learner"""
    name: str = Field(min_length=1, max_length=100)

class LearnerResponse(LearnerCreate):
    """Schema for learner response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    unlocked_count: int
    created_at: Optional[datetime] = None

class AnswerRequest(BaseModel):
    """A learner's answer to one problem"""
    a: int = Field(ge=MIN_FACTOR, le=MAX_FACTOR)
    b: int = Field(ge=MIN_FACTOR, le=MAX_FACTOR)
    user_answer: int
    elapsed_seconds: float = Field(ge=0, allow_inf_nan=False)

    @property
    def problem(self) -> Problem:
        return Problem(self.a, self.b)

class FactStateSchema(BaseModel):
    """Progress on a single fact"""
    model_config = ConfigDict(from_attributes=True)

    a: int
    b: int
    ease_factor: float
    interval_days: float
    next_review: datetime
    times_correct: int
    times_wrong: int
    consecutive_correct: int

class AggregateStats(BaseModel):
    """Learner-wide numbers shown alongside each problem"""
    model_config = ConfigDict(from_attributes=True)

    mastered_count: int
    unlocked_count: int
    unlocked_problems: int
    total_answered: int
    due_count: int
    total_correct: int = 0
    total_wrong: int = 0
    unlocked_tables: List[int] = []
    next_table: Optional[int] = None

class NextProblemResult(BaseModel):
    """Next problem to show, None if nothing can be presented"""
    problem: Optional[ProblemSchema] = None
    aggregate: AggregateStats

class AnswerResult(BaseModel):
    """Outcome of submitting an answer"""
    correct: bool
    correct_answer: int
    updated_fact_state: FactStateSchema
    next_problem: Optional[ProblemSchema] = None
    unlocked_new_table: Optional[int] = None
    aggregate: AggregateStats
