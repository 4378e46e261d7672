"""
Pacing policies for sequential calls against rate-limited services
"""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class FixedDelay:
    """Sleep for a fixed number of seconds on every wait()"""

    def __init__(self, seconds: float, sleep: Callable[[float], Awaitable] = asyncio.sleep):
        if seconds < 0:
            raise ValueError(f"Delay must be non-negative, got {seconds}")
        self.seconds = seconds
        self.sleep = sleep
        self.waits = 0

    @classmethod
    def from_ms(cls, ms: float) -> "FixedDelay":
        return cls(ms / 1000)

    async def wait(self):
        self.waits += 1
        if self.seconds:
            logger.debug(f"Pausing {self.seconds:.3f}s")
            await self.sleep(self.seconds)


class NoDelay(FixedDelay):
    """Pacer that counts waits but never sleeps"""

    def __init__(self, seconds: float = 0):
        super().__init__(0)
