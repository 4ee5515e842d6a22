from backend.models.learner import Learner
from backend.models.fact_progress import FactProgress

__all__ = [
    "Learner",
    "FactProgress"
]
