from sqlalchemy.orm import Session
from backend.crud.learner import require_learner
from backend.errors import NotFoundError
from backend.models import FactProgress
from backend.problem import Problem
from backend.spaced_rep import FactState, SpacedRepetition, as_utc
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

# These functions flush but never commit: the practice layer commits once per turn.
# Timestamps are written as UTC; SQLite hands them back naive.

def _to_state(row: FactProgress) -> FactState:
    return FactState(
        problem=Problem(row.problem_a, row.problem_b),
        ease_factor=row.ease_factor,
        interval_days=row.interval_days,
        next_review=as_utc(row.next_review),
        times_correct=row.times_correct,
        times_wrong=row.times_wrong,
        consecutive_correct=row.consecutive_correct
    )

def get_fact_rows(db: Session, learner_id: int) -> List[FactProgress]:
    """All stored progress rows for a learner in (a, b) order"""
    return db.query(FactProgress).filter(
        FactProgress.learner_id == learner_id
    ).order_by(FactProgress.problem_a, FactProgress.problem_b).all()

def load_progress(db: Session, learner_id: int) -> Tuple[int, List[FactState]]:
    """
    Load a learner's snapshot.

    Returns:
        (unlocked_count, fact states)

    Raises:
        NotFoundError: unknown learner
    """
    learner = require_learner(db, learner_id)
    states = [_to_state(row) for row in get_fact_rows(db, learner_id)]
    return learner.unlocked_count, states

def initialize_missing(
    db: Session,
    learner_id: int,
    problems: Iterable[Problem],
    now: Optional[datetime] = None
) -> int:
    """Backfill default progress for any problem without a row. Returns rows created."""
    require_learner(db, learner_id)
    existing = {
        (a, b) for a, b in db.query(FactProgress.problem_a, FactProgress.problem_b).filter(
            FactProgress.learner_id == learner_id
        ).all()
    }

    created = 0
    for problem in problems:
        if (problem.a, problem.b) in existing:
            continue
        state = SpacedRepetition.initial_state(problem, now=now)
        db.add(FactProgress(
            learner_id=learner_id,
            problem_a=problem.a,
            problem_b=problem.b,
            ease_factor=state.ease_factor,
            interval_days=state.interval_days,
            next_review=state.next_review,
            times_correct=state.times_correct,
            times_wrong=state.times_wrong,
            consecutive_correct=state.consecutive_correct
        ))
        existing.add((problem.a, problem.b))
        created += 1

    if created:
        db.flush()
    return created

def save_fact_states(
    db: Session,
    learner_id: int,
    states: Iterable[FactState],
    answered_at: Optional[datetime] = None
) -> None:
    """Write updated fact states back to their existing rows"""
    answered_at = as_utc(answered_at)
    for state in states:
        row = db.query(FactProgress).filter(
            FactProgress.learner_id == learner_id,
            FactProgress.problem_a == state.a,
            FactProgress.problem_b == state.b
        ).first()
        if row is None:
            raise NotFoundError(f"No progress row for learner {learner_id}, problem {state.problem}")

        row.ease_factor = state.ease_factor
        row.interval_days = state.interval_days
        row.next_review = as_utc(state.next_review)
        row.times_correct = state.times_correct
        row.times_wrong = state.times_wrong
        row.consecutive_correct = state.consecutive_correct
        row.last_answered = answered_at

    db.flush()

def set_unlocked_count(db: Session, learner_id: int, unlocked_count: int) -> None:
    """Store how many tables are open for the learner"""
    learner = require_learner(db, learner_id)
    learner.unlocked_count = unlocked_count
    db.flush()

def reset_progress(db: Session, learner_id: int) -> int:
    """Delete all progress rows and lock every table but the first. Returns rows deleted."""
    learner = require_learner(db, learner_id)
    deleted = db.query(FactProgress).filter(
        FactProgress.learner_id == learner_id
    ).delete(synchronize_session="fetch")
    learner.unlocked_count = 1
    db.flush()
    return deleted
