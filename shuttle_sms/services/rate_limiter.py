"""
Send scheduling for the SMS gateway.

The gateway has no published rate limit, it just starts rejecting bursts,
so sends are spaced by a fixed interval and never run concurrently.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from shuttle_sms.core.config import settings

logger = logging.getLogger(__name__)


class FixedIntervalScheduler:
    """Waits a fixed interval (plus optional random jitter) between two sends"""

    def __init__(
        self,
        interval: float = settings.SEND_INTERVAL_SEC,
        jitter: float = settings.SEND_JITTER_SEC,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[random.Random] = None,
    ):
        if interval < 0 or jitter < 0:
            raise ValueError("Send interval and jitter must be >= 0")
        self.interval = interval
        self.jitter = jitter
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

    def next_delay(self) -> float:
        """Seconds to wait before the next send"""
        if self.jitter:
            return self.interval + self._rng.uniform(0, self.jitter)
        return self.interval

    async def wait(self) -> float:
        delay = self.next_delay()
        if delay > 0:
            logger.debug(f"Waiting {delay:.2f}s before next send")
            await self._sleep(delay)
        return delay
