"""Blocks until the GitHub API has call quota left."""

import asyncio
from typing import Awaitable, Callable

import structlog

from backstroke_worker.utils.constants import RATE_LIMIT_POLL_INTERVAL_IN_SECONDS

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

QuotaCheck = Callable[[], Awaitable[int]]


class RateLimitGate:
    """Gate placed in front of every call billed against the rate limit.

    While the remaining quota is exactly zero the gate sleeps for a fixed
    interval and asks again. There is no cap on the number of polls: the gate
    waits for as long as GitHub takes to reset the quota. A failing quota
    check is not retried and propagates to the caller.
    """

    def __init__(
        self,
        check_quota: QuotaCheck | None,
        poll_interval: float = RATE_LIMIT_POLL_INTERVAL_IN_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.check_quota = check_quota
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def await_quota(self) -> None:
        """Return once at least one API call may be made."""
        if self.check_quota is None:
            return
        waited = 0
        while await self.check_quota() == 0:
            if waited == 0:
                logger.warning("GitHub rate limit exhausted, waiting for quota", poll_interval=self.poll_interval)
            waited += 1
            await self._sleep(self.poll_interval)
        if waited:
            logger.info("GitHub rate limit quota available again", polls=waited)
