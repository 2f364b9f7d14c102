"""Rewards sink contract."""
from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class RewardsSink(Protocol):
    """Receives the outcome of a completed attempt, once."""

    def notify(self, percentage: float, passed: bool) -> None: ...


class LoggingRewardsSink:
    """Sink that only logs the outcome."""

    def notify(self, percentage: float, passed: bool) -> None:
        logger.info("Attempt completed: %s%% (passed=%s)", percentage, passed)
