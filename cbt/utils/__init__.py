"""Utility modules."""
from cbt.utils.time_utils import ensure_utc, utc_now
from cbt.utils.validation import api_error, validate_id

__all__ = [
    "api_error",
    "ensure_utc",
    "utc_now",
    "validate_id",
]
