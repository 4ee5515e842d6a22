"""Per-turn practice flow: load a learner's progress, run the engine, save the result"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from backend.crud import (
    initialize_missing,
    load_progress,
    require_learner,
    reset_progress,
    save_fact_states,
    set_unlocked_count,
)
from backend.problem import TABLE_ORDER, Problem, generate_all_problems
from backend.schemas import (
    AggregateStats,
    AnswerRequest,
    AnswerResult,
    FactStateSchema,
    NextProblemResult,
    ProblemSchema,
)
from backend.spaced_rep import FactState, SpacedRepetition, as_utc


@dataclass(frozen=True)
class PracticeSession:
    """
    Counters for one sitting, owned by whoever drives the practice loop.

    Never persisted; a fresh session starts at zero.
    """
    streak: int = 0
    best_streak: int = 0
    answered: int = 0
    correct: int = 0

    def record(self, correct: bool) -> "PracticeSession":
        streak = self.streak + 1 if correct else 0
        return replace(
            self,
            streak=streak,
            best_streak=max(self.best_streak, streak),
            answered=self.answered + 1,
            correct=self.correct + (1 if correct else 0),
        )

    @property
    def accuracy(self) -> float:
        if not self.answered:
            return 0.0
        return self.correct / self.answered


def _problem_schema(problem: Optional[Problem]) -> Optional[ProblemSchema]:
    if problem is None:
        return None
    return ProblemSchema.model_validate(problem)


def _aggregate(states: List[FactState], unlocked_count: int, now: datetime) -> AggregateStats:
    summary = SpacedRepetition.summarize(states, unlocked_count, now=now)
    return AggregateStats.model_validate(summary)


def pick_problem_for_display(
    states: List[FactState],
    unlocked_count: int,
    last_problem: Optional[Problem] = None,
    now: Optional[datetime] = None
) -> Optional[Problem]:
    """
    Problem to put on screen, repeating the last one if it is the only choice.

    The engine refuses to repeat a problem immediately; a front end that
    must always show something falls back to ignoring last_problem.
    """
    problem = SpacedRepetition.select_next_problem(states, unlocked_count, last_problem, now=now)
    if problem is None and last_problem is not None:
        problem = SpacedRepetition.select_next_problem(states, unlocked_count, None, now=now)
    return problem


def get_next_problem(
    db: Session,
    learner_id: int,
    last_problem: Optional[Problem] = None,
    now: Optional[datetime] = None,
    repeat_last: bool = False
) -> NextProblemResult:
    """
    Select the next problem for a learner, creating missing progress rows first.

    With repeat_last the last problem comes back when nothing else is
    unlocked (see pick_problem_for_display).

    Raises:
        NotFoundError: unknown learner
    """
    now = as_utc(now)
    require_learner(db, learner_id)

    created = initialize_missing(db, learner_id, generate_all_problems(), now=now)
    if created:
        logger.info(f"Initialized {created} facts for learner {learner_id}")
        db.commit()

    unlocked_count, states = load_progress(db, learner_id)
    if repeat_last:
        problem = pick_problem_for_display(states, unlocked_count, last_problem, now=now)
    else:
        problem = SpacedRepetition.select_next_problem(states, unlocked_count, last_problem, now=now)

    return NextProblemResult(
        problem=_problem_schema(problem),
        aggregate=_aggregate(states, unlocked_count, now)
    )


def submit_answer(
    db: Session,
    learner_id: int,
    request: AnswerRequest,
    now: Optional[datetime] = None
) -> AnswerResult:
    """
    Grade an answer, update the fact, maybe unlock a table and pick the next problem.

    Load, update and save happen in one transaction with the learner row
    locked, so two answers for the same learner cannot overwrite each other.

    Raises:
        NotFoundError: unknown learner, or the problem has no progress yet
        ValidationError: the request's elapsed time is unusable
    """
    now = as_utc(now)
    problem = request.problem
    correct = request.user_answer == problem.answer

    try:
        require_learner(db, learner_id, for_update=True)
        unlocked_count, states = load_progress(db, learner_id)

        current = SpacedRepetition.find_state(states, problem)
        updated = SpacedRepetition.apply_answer(current, correct, request.elapsed_seconds, now=now)
        save_fact_states(db, learner_id, [updated], answered_at=now)

        states = [updated if s.problem == problem else s for s in states]

        unlocked_new_table = None
        if SpacedRepetition.should_unlock_next_table(states, unlocked_count):
            unlocked_count += 1
            set_unlocked_count(db, learner_id, unlocked_count)
            unlocked_new_table = TABLE_ORDER[unlocked_count - 1]
            logger.info(f"Learner {learner_id} unlocked the {unlocked_new_table} times table")

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Learner {learner_id} answered {problem} = {request.user_answer} "
        f"({'correct' if correct else 'wrong'}, {request.elapsed_seconds:.1f}s), "
        f"ease now {updated.ease_factor:.2f}"
    )

    next_problem = SpacedRepetition.select_next_problem(states, unlocked_count, problem, now=now)

    return AnswerResult(
        correct=correct,
        correct_answer=problem.answer,
        updated_fact_state=FactStateSchema.model_validate(updated),
        next_problem=_problem_schema(next_problem),
        unlocked_new_table=unlocked_new_table,
        aggregate=_aggregate(states, unlocked_count, now)
    )


def reset_learner(db: Session, learner_id: int) -> int:
    """Forget all progress for a learner. Returns the number of facts removed."""
    try:
        deleted = reset_progress(db, learner_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Reset learner {learner_id}: removed {deleted} facts")
    return deleted
