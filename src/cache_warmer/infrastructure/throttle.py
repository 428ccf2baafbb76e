"""
Randomized inter-request delay.

A uniform random pause after every warmed URL keeps the load on the target
server low and avoids a perfectly regular request pattern.
"""

import asyncio
import logging
import random
from typing import Optional

logger = logging.getLogger(__name__)


class RandomDelay:
    """Uniform random delay between min_ms and max_ms milliseconds."""

    def __init__(self, min_ms: int = 500, max_ms: int = 2000, rng: Optional[random.Random] = None):
        if min_ms < 0 or max_ms < min_ms:
            raise ValueError(f"Invalid delay range [{min_ms}, {max_ms}]")
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()
        self._total_wait_time = 0.0

    @classmethod
    def from_config(cls, config) -> "RandomDelay":
        return cls(min_ms=config.delay.min, max_ms=config.delay.max)

    def next_delay(self) -> float:
        """Draw the next delay, in seconds."""
        return self._rng.uniform(self.min_ms, self.max_ms) / 1000

    async def wait(self) -> float:
        """
        Sleep for a freshly drawn delay.

        Returns:
            Time waited (seconds)
        """
        delay = self.next_delay()
        if delay > 0:
            logger.debug(f"Throttling for {delay:.2f}s")
        await asyncio.sleep(delay)
        self._total_wait_time += delay
        return delay

    @property
    def total_wait_time(self) -> float:
        """Accumulated time spent waiting (seconds)."""
        return self._total_wait_time
