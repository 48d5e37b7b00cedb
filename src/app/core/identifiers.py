"""
Unique Identifier Generation

Generate-and-verify loop for human-facing identifiers that must be unique
among stored values at the moment of the check.

The check is advisory: two concurrent callers can both pass the existence
check with the same candidate if neither has inserted yet. Callers that
need a hard guarantee must rely on a store constraint.
"""

import logging
import secrets
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 50

REGISTRATION_CODE_MIN = 1000
REGISTRATION_CODE_MAX = 9999


class IdentifierExhaustedError(RuntimeError):
    """Raised when no free identifier was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unique identifier found after {attempts} attempts")


async def generate_unique_identifier(
    candidate_factory: Callable[[], str],
    exists: Callable[[str], Awaitable[bool]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Generate candidates until one is not already stored.

    Args:
        candidate_factory: Returns a fresh candidate on every call
        exists: Async check returning True when the candidate is taken
        max_attempts: Upper bound on existence checks

    Returns:
        The first candidate for which exists() returned False

    Raises:
        IdentifierExhaustedError: If every attempt collided
        Exception: Anything raised by exists() propagates unchanged
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        candidate = candidate_factory()
        if not await exists(candidate):
            if attempt > 1:
                logger.info(f"Unique identifier found after {attempt} attempts")
            return candidate
        logger.debug(f"Identifier collision on attempt {attempt}, regenerating")

    logger.error(f"Identifier generation exhausted after {max_attempts} attempts")
    raise IdentifierExhaustedError(max_attempts)


def registration_code_candidate(year: int | None = None) -> str:
    """
    Build a registration code candidate: 4 random digits followed by the year.

    Example: "48372026"
    """
    if year is None:
        year = datetime.now(UTC).year
    digits = REGISTRATION_CODE_MIN + secrets.randbelow(REGISTRATION_CODE_MAX - REGISTRATION_CODE_MIN + 1)
    return f"{digits}{year}"
