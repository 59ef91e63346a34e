"""Per-backend pacing of outgoing requests.

Each backend name maps to one shared limiter. A request may start once the
backend's minimum gap since the previous start has passed and any cooldown
the backend asked for with ``Retry-After`` has expired.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import ClassVar

logger = logging.getLogger(__name__)

MAX_COOLDOWN_SECONDS = 300.0


class ApiRateLimiter:
    """Start-time gate shared by all requests to one backend."""

    _instances: ClassVar[dict[str, ApiRateLimiter]] = {}
    _registry_lock: ClassVar[asyncio.Lock | None] = None

    def __init__(self, backend: str, min_delay_seconds: float = 1.0) -> None:
        self.backend = backend
        self.min_delay_seconds = min_delay_seconds
        self._next_start: float = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    async def get_instance(cls, backend: str, min_delay_seconds: float = 1.0) -> ApiRateLimiter:
        """Return the limiter registered for ``backend``, creating it on first use.

        Adapters configured with different delays for the same backend share
        the stricter one.
        """
        if cls._registry_lock is None:
            cls._registry_lock = asyncio.Lock()

        async with cls._registry_lock:
            limiter = cls._instances.get(backend)
            if limiter is None:
                limiter = cls(backend, min_delay_seconds)
                cls._instances[backend] = limiter
                logger.info(f"Pacing {backend} requests at least {min_delay_seconds}s apart")
            elif min_delay_seconds > limiter.min_delay_seconds:
                logger.info(f"Raising {backend} request gap to {min_delay_seconds}s")
                limiter.min_delay_seconds = min_delay_seconds
            return limiter

    @classmethod
    def reset(cls) -> None:
        """Forget all registered limiters."""
        cls._instances.clear()
        cls._registry_lock = None

    @property
    def wait_seconds(self) -> float:
        """How long a request starting now would be held back."""
        return max(self._next_start - time.monotonic(), 0.0)

    def cool_down(self, seconds: float) -> None:
        """Hold back further requests for ``seconds``, capped at MAX_COOLDOWN_SECONDS.

        A shorter cooldown never shortens one already in effect.
        """
        seconds = min(max(seconds, 0.0), MAX_COOLDOWN_SECONDS)
        resume_at = time.monotonic() + seconds
        if resume_at > self._next_start:
            logger.warning(f"{self.backend} asked to back off, pausing requests for {seconds:.0f}s")
            self._next_start = resume_at

    async def acquire(self) -> None:
        """Wait for this backend's next free start slot and claim it."""
        async with self._lock:
            wait_time = self.wait_seconds
            if wait_time > 0:
                logger.debug(f"{self.backend}: delaying request by {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
            self._next_start = time.monotonic() + self.min_delay_seconds
