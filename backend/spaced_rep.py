import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from loguru import logger

from backend.errors import NotFoundError, ValidationError
from backend.problem import (
    TABLE_ORDER,
    Problem,
    check_unlocked_count,
    is_unlocked,
    next_table_to_unlock,
    unlocked_tables,
)

INITIAL_EASE = 2.5
MIN_EASE = 1.3
MAX_EASE = 3.0
WRONG_PENALTY = 0.2

# Response time bands in seconds: < 3 fast, 3-8 normal, > 8 slow
FAST_SECONDS = 3.0
SLOW_SECONDS = 8.0
FAST_BONUS = 0.15
NORMAL_BONUS = 0.10
SLOW_BONUS = 0.05

MASTERY_STREAK = 3
MASTERY_EASE = 2.0
UNLOCK_FRACTION = 0.75


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime] = None) -> datetime:
    """Normalize a timestamp to aware UTC. Naive values are taken to be UTC already; None means now."""
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class FactState:
    """Per-learner progress on one problem"""
    problem: Problem
    ease_factor: float = INITIAL_EASE
    interval_days: float = 0.0
    next_review: datetime = field(default_factory=utcnow)
    times_correct: int = 0
    times_wrong: int = 0
    consecutive_correct: int = 0

    @property
    def a(self) -> int:
        return self.problem.a

    @property
    def b(self) -> int:
        return self.problem.b

    @property
    def times_answered(self) -> int:
        return self.times_correct + self.times_wrong

    def is_due(self, now: Optional[datetime] = None) -> bool:
        return as_utc(self.next_review) <= as_utc(now)


@dataclass(frozen=True)
class ProgressSummary:
    """Aggregate numbers shown to the learner after each turn"""
    mastered_count: int
    unlocked_count: int
    unlocked_problems: int
    due_count: int
    total_answered: int
    total_correct: int
    total_wrong: int
    unlocked_tables: List[int]
    next_table: Optional[int]


class SpacedRepetition:
    """
    Scheduling engine for times tables practice.

    A simplified SM-2 variant: correct answers grow the review interval by
    the ease factor and nudge the ease up depending on how fast the learner
    answered, wrong answers drop the interval to zero and the ease by 0.2.
    Every method is pure and works on snapshots passed in by the caller.
    """

    @staticmethod
    def initial_state(problem: Problem, now: Optional[datetime] = None) -> FactState:
        """Default state for a problem that has never been answered (due immediately)"""
        return FactState(problem=problem, next_review=as_utc(now))

    @staticmethod
    def ease_bonus(response_seconds: float) -> float:
        """Ease increase for a correct answer given in response_seconds"""
        if response_seconds < FAST_SECONDS:
            return FAST_BONUS
        if response_seconds <= SLOW_SECONDS:
            return NORMAL_BONUS
        return SLOW_BONUS

    @staticmethod
    def apply_answer(
        state: FactState,
        correct: bool,
        response_seconds: float,
        now: Optional[datetime] = None
    ) -> FactState:
        """
        Calculate the new state of a fact after an answer.

        Args:
            state: Current fact state (left untouched)
            correct: Whether the learner answered correctly
            response_seconds: Time taken to answer, must be finite and >= 0
            now: Reference time for next_review (defaults to current UTC time)

        Returns:
            New FactState with counters, interval, ease and next_review updated

        Raises:
            ValidationError: response_seconds is negative, NaN or infinite
        """
        if isinstance(response_seconds, bool) or not isinstance(response_seconds, (int, float)):
            raise ValidationError(f"response_seconds must be a number, got {response_seconds!r}")
        if not math.isfinite(response_seconds) or response_seconds < 0:
            raise ValidationError(
                f"response_seconds must be a finite, non-negative number, got {response_seconds}"
            )

        if correct:
            if state.interval_days < 1:
                interval = 1.0
            else:
                interval = state.interval_days * state.ease_factor
            ease = min(MAX_EASE, state.ease_factor + SpacedRepetition.ease_bonus(response_seconds))
            times_correct = state.times_correct + 1
            times_wrong = state.times_wrong
            streak = state.consecutive_correct + 1
        else:
            interval = 0.0
            ease = max(MIN_EASE, state.ease_factor - WRONG_PENALTY)
            times_correct = state.times_correct
            times_wrong = state.times_wrong + 1
            streak = 0

        base_time = as_utc(now)
        return replace(
            state,
            ease_factor=ease,
            interval_days=interval,
            next_review=base_time + timedelta(days=interval),
            times_correct=times_correct,
            times_wrong=times_wrong,
            consecutive_correct=streak,
        )

    @staticmethod
    def is_mastered(state: FactState) -> bool:
        return state.consecutive_correct >= MASTERY_STREAK and state.ease_factor >= MASTERY_EASE

    @staticmethod
    def find_state(states: Iterable[FactState], problem: Problem) -> FactState:
        """Look up the state for a problem, failing if the caller never initialized it"""
        for state in states:
            if state.problem == problem:
                return state
        raise NotFoundError(f"No progress recorded for {problem}")

    @staticmethod
    def should_unlock_next_table(states: Iterable[FactState], unlocked_count: int) -> bool:
        """
        Decide whether the next table in TABLE_ORDER should open.

        True when at least 75% of the currently unlocked problems are
        mastered. The caller opens exactly one table per True result.
        """
        check_unlocked_count(unlocked_count)
        if unlocked_count >= len(TABLE_ORDER):
            return False

        unlocked = [s for s in states if is_unlocked(s.problem, unlocked_count)]
        if not unlocked:
            return False

        mastered = sum(1 for s in unlocked if SpacedRepetition.is_mastered(s))
        # Integer form of mastered / total >= 0.75
        ready = mastered * 4 >= len(unlocked) * 3
        logger.debug(
            f"Unlock check: {mastered}/{len(unlocked)} mastered with {unlocked_count} tables open"
            f" -> {'unlock' if ready else 'stay'}"
        )
        return ready

    @staticmethod
    def select_next_problem(
        states: Iterable[FactState],
        unlocked_count: int,
        last_problem: Optional[Problem] = None,
        now: Optional[datetime] = None
    ) -> Optional[Problem]:
        """
        Choose the problem to present next.

        Due problems come first. When nothing is due any unlocked problem is
        eligible as extra practice. The previous problem is never repeated
        immediately. Among the candidates the lowest ease factor wins, ties go
        to the smallest (a, b).

        Returns:
            The chosen Problem, or None when no candidate is left
        """
        check_unlocked_count(unlocked_count)
        now = as_utc(now)
        eligible = [
            s for s in states
            if is_unlocked(s.problem, unlocked_count) and s.problem != last_problem
        ]

        candidates = [s for s in eligible if s.is_due(now)]
        if not candidates:
            candidates = eligible
        if not candidates:
            logger.debug(f"No problem available (last={last_problem})")
            return None

        chosen = min(candidates, key=lambda s: (s.ease_factor, s.problem.a, s.problem.b))
        logger.debug(
            f"Selected {chosen.problem} (ease={chosen.ease_factor:.2f}) "
            f"from {len(candidates)} candidates"
        )
        return chosen.problem

    @staticmethod
    def summarize(
        states: Iterable[FactState],
        unlocked_count: int,
        now: Optional[datetime] = None
    ) -> ProgressSummary:
        """Aggregate counts over a learner's full snapshot"""
        now = as_utc(now)
        states = list(states)
        unlocked = [s for s in states if is_unlocked(s.problem, unlocked_count)]

        total_correct = sum(s.times_correct for s in states)
        total_wrong = sum(s.times_wrong for s in states)

        return ProgressSummary(
            mastered_count=sum(1 for s in unlocked if SpacedRepetition.is_mastered(s)),
            unlocked_count=unlocked_count,
            unlocked_problems=len(unlocked),
            due_count=sum(1 for s in unlocked if s.is_due(now)),
            total_answered=total_correct + total_wrong,
            total_correct=total_correct,
            total_wrong=total_wrong,
            unlocked_tables=unlocked_tables(unlocked_count),
            next_table=next_table_to_unlock(unlocked_count),
        )
