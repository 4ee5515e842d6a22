"""
Unit tests for boundary schemas and the caller-owned practice session.
"""

import math

import pytest
from pydantic import ValidationError as SchemaValidationError

from backend.practice import PracticeSession, pick_problem_for_display
from backend.problem import Problem, generate_all_problems
from backend.schemas import AnswerRequest, FactStateSchema, LearnerCreate, ProblemSchema
from backend.spaced_rep import FactState, SpacedRepetition


class TestAnswerRequest:
    def test_valid_request(self):
        request = AnswerRequest(a=7, b=8, user_answer=56, elapsed_seconds=3.2)
        assert request.problem == Problem(7, 8)

    @pytest.mark.parametrize("field, value", [
        ("a", 0),
        ("a", 13),
        ("b", -2),
        ("elapsed_seconds", -0.5),
        ("elapsed_seconds", math.nan),
        ("elapsed_seconds", math.inf),
    ])
    def test_out_of_range_fields_rejected(self, field, value):
        data = {"a": 3, "b": 4, "user_answer": 12, "elapsed_seconds": 2.0}
        data[field] = value
        with pytest.raises(SchemaValidationError):
            AnswerRequest(**data)

    def test_missing_answer_rejected(self):
        with pytest.raises(SchemaValidationError):
            AnswerRequest(a=3, b=4, elapsed_seconds=1.0)


class TestConversions:
    def test_problem_schema_from_problem(self):
        schema = ProblemSchema.model_validate(Problem(9, 4))
        assert (schema.a, schema.b) == (9, 4)
        assert schema.to_problem() == Problem(9, 4)

    def test_fact_state_schema_from_state(self, now):
        state = FactState(Problem(6, 2), ease_factor=2.2, interval_days=3.0, next_review=now, times_correct=2)
        schema = FactStateSchema.model_validate(state)
        assert (schema.a, schema.b) == (6, 2)
        assert schema.ease_factor == 2.2
        assert schema.times_correct == 2
        assert schema.next_review == now

    def test_learner_name_required(self):
        with pytest.raises(SchemaValidationError):
            LearnerCreate(name="")


class TestPracticeSession:
    def test_streak_counts_and_resets(self):
        session = PracticeSession()
        for correct in (True, True, True, False, True):
            session = session.record(correct)

        assert session.streak == 1
        assert session.best_streak == 3
        assert session.answered == 5
        assert session.correct == 4
        assert session.accuracy == pytest.approx(0.8)

    def test_record_returns_new_value(self):
        session = PracticeSession()
        session.record(True)
        assert session.answered == 0
        assert session.accuracy == 0.0


class TestPickProblemForDisplay:
    def test_repeats_last_problem_when_it_is_the_only_one(self, now):
        states = [SpacedRepetition.initial_state(p, now=now) for p in generate_all_problems()]
        assert pick_problem_for_display(states, 1, Problem(1, 1), now=now) == Problem(1, 1)

    def test_prefers_a_different_problem(self, now):
        states = [SpacedRepetition.initial_state(p, now=now) for p in generate_all_problems()]
        assert pick_problem_for_display(states, 2, Problem(1, 1), now=now) == Problem(1, 10)
