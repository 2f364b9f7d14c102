"""FastAPI dependencies."""
from cbt.dependencies.learner import get_learner_id

__all__ = ["get_learner_id"]
