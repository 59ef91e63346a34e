"""Opaque pagination context for earlier/later trip queries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueryTripsContext:
    """Continuation state owned by the adapter that produced it.

    ``token`` is never inspected outside that adapter. ``network`` names the
    originating adapter so a context cannot be fed to a different one.
    """

    token: bytes
    network: str
    can_query_earlier: bool
    can_query_later: bool

    def __post_init__(self) -> None:
        if not isinstance(self.token, bytes):
            raise TypeError(f"Context token must be bytes, got {type(self.token).__name__}")

    def __repr__(self) -> str:
        return (
            f"QueryTripsContext(network={self.network!r}, token=<{len(self.token)} bytes>, "
            f"can_query_earlier={self.can_query_earlier}, can_query_later={self.can_query_later})"
        )
