import asyncio
import logging
from typing import Awaitable

from harbor_auth.domain.errors import AuthErrorCode
from harbor_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


async def bounded(awaitable: Awaitable[Result], seconds: float, operation: str) -> Result:
    """
    Await a use case within a deadline.

    A timed-out operation is a failure of that operation, reported as
    OPERATION_TIMEOUT; it never falls back to an unauthenticated result.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        logger.error(f"Operation timed out after {seconds}s: {operation}")
        return Return.err(
            Error(AuthErrorCode.OPERATION_TIMEOUT, f"{operation} timed out")
        )
