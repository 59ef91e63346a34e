"""Error taxonomy shared by the core, the adapters and the HTTP service.

Business outcomes such as "no trips" or "ambiguous origin" are never raised;
they travel as result statuses. Exceptions are reserved for three caller-facing
kinds: precondition violations, transport failures and unexpected response
shapes.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Caller-facing error categories, stable across all adapters."""

    PRECONDITION = "precondition"
    TRANSPORT = "transport"
    UNEXPECTED_RESPONSE = "unexpected_response"


class TransitError(Exception):
    """Base class for all errors raised by this package."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class PreconditionError(TransitError, ValueError):
    """A caller violated a local contract. Never retried."""

    kind = ErrorKind.PRECONDITION


class PaginationError(PreconditionError):
    """A trip continuation was requested that the context does not allow."""


class TransportError(TransitError):
    """The backend could not be reached or answered with a non-structured page."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body_peek: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body_peek = body_peek


class BlockedError(TransportError):
    """The backend refused the request (400/401/403/406/503)."""


class NotFoundError(TransportError):
    """The backend answered 404."""


class UnexpectedRedirectError(TransportError):
    """The backend redirected somewhere else, by status code or by page content."""

    def __init__(self, url: str | None, redirect_url: str | None, status_code: int | None = None):
        super().__init__(
            f"Unexpected redirect from {url} to {redirect_url}",
            url=url,
            status_code=status_code,
        )
        self.redirect_url = redirect_url


class SessionExpiredError(TransportError):
    """The backend session or connection id is no longer valid."""


class InternalErrorResponseError(TransportError):
    """The backend returned its generic internal error page or a 5xx status."""


class UnexpectedResponseError(TransitError):
    """The response was received but could not be parsed into the expected shape."""

    kind = ErrorKind.UNEXPECTED_RESPONSE
