from dataclasses import dataclass
from typing import List, Optional, Set

from backend.errors import ValidationError

MIN_FACTOR = 1
MAX_FACTOR = 12

# Pedagogical unlock order, not numeric order
TABLE_ORDER = (1, 10, 5, 11, 2, 3, 9, 4, 6, 7, 8, 12)


@dataclass(frozen=True, order=True)
class Problem:
    """
    A single multiplication fact a × b.

    (3, 4) and (4, 3) are different problems with independent progress.
    Ordering is lexicographic on (a, b).
    """
    a: int
    b: int

    def __post_init__(self):
        for name, value in (("a", self.a), ("b", self.b)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"Factor {name} must be an integer, got {value!r}")
            if not MIN_FACTOR <= value <= MAX_FACTOR:
                raise ValidationError(
                    f"Factor {name}={value} is outside {MIN_FACTOR}..{MAX_FACTOR}"
                )

    @property
    def answer(self) -> int:
        return self.a * self.b

    @property
    def key(self) -> str:
        return f"{self.a}x{self.b}"

    def display(self) -> str:
        return f"{self.a} × {self.b} = ?"

    def __str__(self) -> str:
        return f"{self.a} × {self.b}"


def generate_all_problems() -> List[Problem]:
    """All 144 problems, a outer and b inner, both ascending"""
    return [
        Problem(a, b)
        for a in range(MIN_FACTOR, MAX_FACTOR + 1)
        for b in range(MIN_FACTOR, MAX_FACTOR + 1)
    ]


def check_unlocked_count(unlocked_count: int):
    if not 1 <= unlocked_count <= len(TABLE_ORDER):
        raise ValidationError(
            f"unlocked_count must be between 1 and {len(TABLE_ORDER)}, got {unlocked_count}"
        )


def unlocked_tables(unlocked_count: int) -> List[int]:
    """Unlocked table numbers, in the order they were unlocked"""
    check_unlocked_count(unlocked_count)
    return list(TABLE_ORDER[:unlocked_count])


def unlocked_table_set(unlocked_count: int) -> Set[int]:
    return set(unlocked_tables(unlocked_count))


def is_unlocked(problem: Problem, unlocked_count: int) -> bool:
    """
    Check whether a problem can be practised.

    Both factors have to be in the unlocked set, so with tables 1 and 10
    open, 10 × 1 is available but 1 × 2 is not.
    """
    tables = unlocked_table_set(unlocked_count)
    return problem.a in tables and problem.b in tables


def next_table_to_unlock(unlocked_count: int) -> Optional[int]:
    """The table that opens next, or None once every table is open"""
    check_unlocked_count(unlocked_count)
    if unlocked_count >= len(TABLE_ORDER):
        return None
    return TABLE_ORDER[unlocked_count]
