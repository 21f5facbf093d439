"""
Bounded polling.

Both waits of a deployment (ECS service stability and CodeDeploy
completion) go through wait_until with their own check and bound.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from ecs_deployer.errors import WaitTimeoutError

logger = logging.getLogger(__name__)

# Matches the polling delay of the ECS and CodeDeploy waiters
DEFAULT_POLL_INTERVAL = 15.0


async def wait_until(
    check: Callable[[], Awaitable[bool]],
    timeout_seconds: float,
    interval_seconds: float = DEFAULT_POLL_INTERVAL,
    description: str = "condition",
) -> int:
    """
    Poll until a check passes or the deadline is reached.

    The check returns True when done and False to keep waiting. It raises
    WaitFailedError for a terminal failure, which propagates unchanged. The
    check always runs at least once; no attempt starts after the deadline.

    Args:
        check: Coroutine function evaluating the condition
        timeout_seconds: Upper bound on the total wait
        interval_seconds: Delay between attempts
        description: What is being waited for, used in logs and errors

    Returns:
        Number of attempts made

    Raises:
        WaitTimeoutError: If the deadline passes first
    """
    start_time = time.monotonic()
    attempts = 0

    while True:
        attempts += 1
        if await check():
            logger.info(f"{description} reached after {attempts} attempt(s)")
            return attempts

        elapsed = time.monotonic() - start_time
        if elapsed + interval_seconds > timeout_seconds:
            break

        logger.debug(f"Waiting for {description} (attempt {attempts}, {elapsed:.0f}s elapsed)")
        await asyncio.sleep(interval_seconds)

    minutes = timeout_seconds / 60
    raise WaitTimeoutError(
        f"Timed out waiting for {description} after {minutes:g} minutes", description
    )
