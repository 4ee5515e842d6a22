"""
Unit tests for the problem universe and table unlocking.
"""

import pytest

from backend.errors import ValidationError
from backend.problem import (
    TABLE_ORDER,
    Problem,
    generate_all_problems,
    is_unlocked,
    next_table_to_unlock,
    unlocked_tables,
)


class TestProblem:
    def test_answer_key_and_display(self):
        problem = Problem(3, 4)
        assert problem.answer == 12
        assert problem.key == "3x4"
        assert problem.display() == "3 × 4 = ?"

    def test_swapped_factors_are_different_problems(self):
        assert Problem(3, 4) != Problem(4, 3)
        assert len({Problem(3, 4), Problem(4, 3)}) == 2

    def test_ordering_is_lexicographic(self):
        assert Problem(2, 12) < Problem(3, 1)
        assert Problem(3, 1) < Problem(3, 2)

    @pytest.mark.parametrize("a, b", [(0, 5), (5, 13), (-1, 1), (12, 0)])
    def test_out_of_range_factor_rejected(self, a, b):
        with pytest.raises(ValidationError):
            Problem(a, b)

    def test_non_integer_factor_rejected(self):
        with pytest.raises(ValidationError):
            Problem(2.5, 3)
        with pytest.raises(ValidationError):
            Problem(True, 3)


class TestGenerateAllProblems:
    def test_has_144_distinct_problems(self):
        problems = generate_all_problems()
        assert len(problems) == 144
        assert len(set(problems)) == 144

    def test_enumeration_order(self):
        problems = generate_all_problems()
        assert problems[0] == Problem(1, 1)
        assert problems[1] == Problem(1, 2)
        assert problems[12] == Problem(2, 1)
        assert problems[-1] == Problem(12, 12)


class TestUnlocking:
    def test_table_order_is_a_permutation(self):
        assert sorted(TABLE_ORDER) == list(range(1, 13))
        assert TABLE_ORDER == (1, 10, 5, 11, 2, 3, 9, 4, 6, 7, 8, 12)

    def test_only_one_times_one_at_start(self):
        unlocked = [p for p in generate_all_problems() if is_unlocked(p, 1)]
        assert unlocked == [Problem(1, 1)]

    def test_both_factors_must_be_unlocked(self):
        assert is_unlocked(Problem(1, 10), 2) is True
        assert is_unlocked(Problem(10, 1), 2) is True
        assert is_unlocked(Problem(10, 10), 2) is True
        assert is_unlocked(Problem(1, 2), 2) is False

    def test_everything_unlocked_at_twelve(self):
        assert all(is_unlocked(p, 12) for p in generate_all_problems())

    def test_unlocked_tables_follow_table_order(self):
        assert unlocked_tables(3) == [1, 10, 5]

    def test_next_table_to_unlock(self):
        assert next_table_to_unlock(1) == 10
        assert next_table_to_unlock(4) == 2
        assert next_table_to_unlock(12) is None

    @pytest.mark.parametrize("count", [0, 13])
    def test_invalid_unlocked_count_rejected(self, count):
        with pytest.raises(ValidationError):
            is_unlocked(Problem(1, 1), count)
