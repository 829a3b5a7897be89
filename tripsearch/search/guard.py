"""Deadline wrapper for datastore calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from tripsearch.domain import PatternRejectedError, RecoverableTimeoutError
from tripsearch.domain.exceptions import is_pattern_complexity_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimeoutGuard:
    """Race each datastore call against a fixed deadline.

    The deadline sits below the datastore's own execution ceiling, so an
    overrun still leaves time to answer the caller. An expired call is
    abandoned and its eventual result discarded.
    """

    def __init__(self, timeout_ms: int):
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self.timeout_ms = timeout_ms

    async def run(self, operation: str, call: Awaitable[T]) -> T:
        """Await ``call`` within the deadline.

        Raises:
            RecoverableTimeoutError: The deadline expired first
            PatternRejectedError: The datastore refused the pattern as too complex
        """
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_ms / 1000)
        except TimeoutError as e:
            logger.warning("%s exceeded %dms guard", operation, self.timeout_ms)
            raise RecoverableTimeoutError(operation, self.timeout_ms) from e
        except Exception as e:
            if is_pattern_complexity_error(e):
                logger.warning("%s rejected as too complex: %s", operation, e)
                raise PatternRejectedError(operation, str(e)) from e
            raise
