from backend.crud.learner import (
    create_learner,
    get_learner,
    get_learner_by_name,
    list_learners,
    require_learner
)
from backend.crud.fact_progress import (
    get_fact_rows,
    load_progress,
    initialize_missing,
    save_fact_states,
    set_unlocked_count,
    reset_progress
)

__all__ = [
    "create_learner",
    "get_learner",
    "get_learner_by_name",
    "list_learners",
    "require_learner",
    "get_fact_rows",
    "load_progress",
    "initialize_missing",
    "save_fact_states",
    "set_unlocked_count",
    "reset_progress",
]
