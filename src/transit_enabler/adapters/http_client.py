"""Shared aiohttp client for backend adapters.

Every response is paced by the backend's rate limiter, checked for an
unexpected HTTP status and triaged for redirect, expired-session and
internal-error pages before an adapter gets to parse it.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any

import aiohttp

from transit_enabler.adapters.api_rate_limiter import ApiRateLimiter
from transit_enabler.adapters.api_request_logger import log_api_request
from transit_enabler.domain.exceptions import (
    BlockedError,
    InternalErrorResponseError,
    NotFoundError,
    SessionExpiredError,
    TransportError,
    UnexpectedRedirectError,
    UnexpectedResponseError,
)
from transit_enabler.domain.response_triage import ResponseTriage, TriageKind

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from aiohttp import ClientSession

BLOCKED_STATUSES = frozenset({400, 401, 403, 406, 503})
NOT_FOUND_STATUSES = frozenset({404})
REDIRECT_STATUSES = frozenset({301, 302, 307, 308})
INTERNAL_ERROR_STATUSES = frozenset({500, 502})
BACK_OFF_STATUSES = frozenset({429, 503})
BODY_PEEK_LENGTH = 500
DEFAULT_USER_AGENT = "transit-enabler/0.1"


@dataclass(frozen=True)
class HttpResponse:
    url: str
    status: int
    text: str
    content_type: str = ""
    location: str | None = None

    @property
    def body_peek(self) -> str:
        return self.text[:BODY_PEEK_LENGTH]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise UnexpectedResponseError(
                f"Response from {self.url} is not valid JSON: {self.body_peek[:100]!r}"
            ) from e


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header, given as delta-seconds or an HTTP date."""
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparseable Retry-After: {value!r}")
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max((when - datetime.now(UTC)).total_seconds(), 0.0)


def raise_for_status(response: HttpResponse) -> None:
    """Raise the transport error matching a non-2xx status."""
    status = response.status
    if response.ok:
        return
    message = f"HTTP {status} from {response.url}"
    if status in REDIRECT_STATUSES:
        raise UnexpectedRedirectError(response.url, response.location, status_code=status)
    if status in BLOCKED_STATUSES:
        raise BlockedError(message, response.url, status, response.body_peek)
    if status in NOT_FOUND_STATUSES:
        raise NotFoundError(message, response.url, status, response.body_peek)
    if status in INTERNAL_ERROR_STATUSES:
        raise InternalErrorResponseError(message, response.url, status, response.body_peek)
    raise TransportError(message, response.url, status, response.body_peek)


def raise_for_triage(response: HttpResponse, triage: ResponseTriage) -> None:
    """Raise if the body is a redirect, expired-session or internal-error page."""
    result = triage.classify(response.text, response.url)
    if result.kind is TriageKind.REDIRECT:
        raise UnexpectedRedirectError(response.url, result.redirect_url, status_code=response.status)
    if result.kind is TriageKind.SESSION_EXPIRED:
        raise SessionExpiredError(
            f"Session expired at {response.url}", response.url, response.status, response.body_peek
        )
    if result.kind is TriageKind.INTERNAL_ERROR:
        raise InternalErrorResponseError(
            f"Internal error page from {response.url}",
            response.url,
            response.status,
            response.body_peek,
        )


class HttpClient:
    """HTTP access to one backend through a shared aiohttp session."""

    def __init__(
        self,
        session: "ClientSession | None",
        backend: str,
        min_delay_seconds: float = 0.0,
        timeout_seconds: float = 15.0,
        user_agent: str | None = None,
        headers: dict[str, str] | None = None,
        triage: ResponseTriage | None = None,
    ) -> None:
        self._session = session
        self._backend = backend
        self._min_delay_seconds = min_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT, **(headers or {})}
        self._triage = triage or ResponseTriage()
        self._rate_limiter: ApiRateLimiter | None = None

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def triage(self) -> ResponseTriage:
        return self._triage

    async def _get_rate_limiter(self) -> ApiRateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = await ApiRateLimiter.get_instance(
                self._backend, self._min_delay_seconds
            )
        return self._rate_limiter

    async def fetch(self, url: str, params: dict[str, Any] | None = None) -> HttpResponse:
        """GET ``url`` and return the raw response without status checks.

        A 429 or 503 carrying Retry-After puts the backend's limiter on cooldown.

        Raises:
            TransportError: On connection failures and timeouts.
            UnexpectedResponseError: If the body cannot be decoded as text.
        """
        if self._session is None:
            raise TransportError(f"No HTTP session available for {self._backend}", url)

        query = {k: _param_value(v) for k, v in (params or {}).items() if v is not None}
        rate_limiter = await self._get_rate_limiter()
        await rate_limiter.acquire()
        log_api_request("GET", url, params=query, headers=self._headers)

        try:
            async with self._session.get(
                url,
                params=query,
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
                allow_redirects=False,
            ) as response:
                if response.status in BACK_OFF_STATUSES:
                    retry_after = parse_retry_after(response.headers.get("Retry-After"))
                    if retry_after is not None:
                        rate_limiter.cool_down(retry_after)
                text = await response.text()
                return HttpResponse(
                    url=str(response.url),
                    status=response.status,
                    text=text,
                    content_type=response.headers.get("Content-Type", ""),
                    location=response.headers.get("Location"),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Request to {url} timed out after {self._timeout_seconds}s", url
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}", url) from e
        except UnicodeDecodeError as e:
            raise UnexpectedResponseError(f"Response from {url} is not valid text: {e}") from e

    async def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """GET a checked and triaged response body."""
        response = await self.fetch(url, params)
        raise_for_status(response)
        raise_for_triage(response, self._triage)
        return response.text

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a checked and triaged response and decode it as JSON."""
        response = await self.fetch(url, params)
        raise_for_status(response)
        raise_for_triage(response, self._triage)
        return response.json()


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
