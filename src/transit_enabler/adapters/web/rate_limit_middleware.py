"""Per-client request throttling for the JSON service, using throttled-py."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from throttled import RateLimiterType, Throttled, rate_limiter, store

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60.0
# Probes must not be throttled.
EXEMPT_PATHS = frozenset({"/healthz"})


def extract_client_ip(request: Request) -> str:
    """First address of X-Forwarded-For, else the peer address, else 'unknown'."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip

    if request.client and request.client.host:
        return request.client.host

    logger.warning("Could not determine client IP, using 'unknown'")
    return "unknown"


def retry_after_seconds(result: Any) -> float:
    """Seconds until the client may retry, read from a throttled-py result."""
    state = getattr(result, "state", None)
    if state is not None and getattr(state, "retry_after", None) is not None:
        return float(state.retry_after)
    if getattr(result, "retry_after", None) is not None:
        return float(result.retry_after)
    return DEFAULT_RETRY_AFTER_SECONDS


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token bucket per client IP; excess requests get HTTP 429.

    A limit of zero or less disables throttling.
    """

    def __init__(self, app: Callable, requests_per_minute: int = 100) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.enabled = requests_per_minute > 0
        # One shared store; each client IP is its own key in it.
        self.rate_limiter_store = store.MemoryStore()
        if self.enabled:
            self.quota = rate_limiter.per_min(requests_per_minute, burst=requests_per_minute)
            logger.info(f"Rate limiting enabled: {requests_per_minute} requests per minute per IP")
        else:
            self.quota = None
            logger.info("Rate limiting disabled")

    def _throttle_for(self, client_ip: str) -> Throttled:
        return Throttled(
            key=client_ip,
            using=RateLimiterType.TOKEN_BUCKET.value,
            quota=self.quota,
            store=self.rate_limiter_store,
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not self.enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = extract_client_ip(request)
        result = self._throttle_for(client_ip).limit()
        if result.limited:
            retry_after = retry_after_seconds(result)
            logger.warning(f"Rate limit exceeded for IP {client_ip}, retry after {retry_after} seconds")
            return JSONResponse(
                {"reason": "Rate limit exceeded. Please try again later."},
                status_code=429,
                headers={"Retry-After": str(int(retry_after))},
            )

        response: Response = await call_next(request)
        return response
