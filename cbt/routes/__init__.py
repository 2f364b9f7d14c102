"""API route modules."""
from cbt.routes import assessments

__all__ = ["assessments"]
