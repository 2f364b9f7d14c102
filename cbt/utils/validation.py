"""Validation utilities."""
import re

from fastapi import HTTPException

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,64}$")


def api_error(status_code: int, code: str, message: str) -> HTTPException:
    """Build an HTTPException with a machine-readable error code."""
    return HTTPException(
        status_code=status_code, detail={"code": code, "message": message}
    )


def validate_id(name: str, value: str) -> str:
    """Validate ID string (no path separators, bounded length)."""
    if not isinstance(value, str):
        raise api_error(400, "invalid_id", f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise api_error(400, "invalid_id", f"{name} is required")
    if not _ID_PATTERN.match(cleaned):
        raise api_error(400, "invalid_id", f"Invalid {name}")
    return cleaned
