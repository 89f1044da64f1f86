"""Response padding for activation calls.

Every activation answer is held back by a random amount so that response
time does not reveal whether a guessed key exists.
"""

import asyncio
import random


class RandomDelay:
    def __init__(self, min_ms: int = 100, max_ms: int = 300, sleep=asyncio.sleep, rng=None):
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._sleep = sleep
        self._rng = rng or random.SystemRandom()

    def next_delay(self) -> float:
        """Seconds to wait for the next response."""
        return self._rng.uniform(self.min_ms, self.max_ms) / 1000

    async def __call__(self) -> None:
        await self._sleep(self.next_delay())


class NoDelay:
    async def __call__(self) -> None:
        return None
