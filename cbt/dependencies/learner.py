"""Learner identity dependency for FastAPI."""
from typing import Annotated

from fastapi import Header

from cbt.utils import validate_id


async def get_learner_id(
    x_learner_id: Annotated[str | None, Header()] = None,
) -> str:
    """Get the learner id from the ``X-Learner-Id`` header.

    Raises:
        HTTPException: 400 if the header is missing or malformed.
    """
    return validate_id("learnerId", x_learner_id or "")
