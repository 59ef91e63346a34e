"""Classification of raw backend pages before structured parsing.

Some backends answer with an HTML redirect, an "expired session" notice or a
generic error template instead of the payload that was asked for. These pages
are detected here so adapters can fail with a typed error rather than a parse
error deep inside their grammar.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urljoin

META_REFRESH_PATTERN = re.compile(
    r'<META\s+http-equiv="?refresh"?\s+content="\d+;\s*URL=([^"]+)"', re.IGNORECASE
)
SCRIPT_REDIRECT_PATTERN = re.compile(
    r'<script\s+(?:type="text/javascript"|language="javascript")>\s*'
    r'(?:window\.location|location\.href)\s*=\s*"([^"]+)"',
    re.IGNORECASE,
)

DEFAULT_SESSION_EXPIRED_MARKERS = (
    r"Your session has expired\.",
    r"Session Expired",
    r"Ihre Verbindungskennung ist nicht mehr g.ltig\.",
)
DEFAULT_INTERNAL_ERROR_MARKERS = (
    r"Internal Error",
    r"Server ein Fehler aufgetreten",
    r"Internal error in gateway",
    r"VRN - Keine Verbindung zum Server m.glich",
)


def _marker_pattern(markers: tuple[str, ...]) -> re.Pattern[str]:
    # Markers must fill a text node on their own, between tag boundaries.
    return re.compile(r">\s*(" + "|".join(markers) + r")\s*<")


class TriageKind(Enum):
    NORMAL = "normal"
    REDIRECT = "redirect"
    SESSION_EXPIRED = "session_expired"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class TriageResult:
    kind: TriageKind
    redirect_url: str | None = None

    @property
    def is_normal(self) -> bool:
        return self.kind is TriageKind.NORMAL


NORMAL = TriageResult(TriageKind.NORMAL)


@dataclass(frozen=True)
class TriageMarkers:
    """Regular expression fragments identifying expired-session and error pages."""

    session_expired: tuple[str, ...] = DEFAULT_SESSION_EXPIRED_MARKERS
    internal_error: tuple[str, ...] = DEFAULT_INTERNAL_ERROR_MARKERS
    _session_expired_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _internal_error_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "session_expired", tuple(self.session_expired))
        object.__setattr__(self, "internal_error", tuple(self.internal_error))
        object.__setattr__(self, "_session_expired_pattern", _marker_pattern(self.session_expired))
        object.__setattr__(self, "_internal_error_pattern", _marker_pattern(self.internal_error))

    def extended(
        self,
        session_expired: tuple[str, ...] | list[str] = (),
        internal_error: tuple[str, ...] | list[str] = (),
        literal: bool = True,
    ) -> "TriageMarkers":
        """Return a marker set with additional markers appended.

        With ``literal`` set, the added markers are matched as plain text.
        """
        prepare = re.escape if literal else (lambda marker: marker)
        return TriageMarkers(
            session_expired=self.session_expired + tuple(prepare(m) for m in session_expired),
            internal_error=self.internal_error + tuple(prepare(m) for m in internal_error),
        )

    def is_session_expired(self, body: str) -> bool:
        return self._session_expired_pattern.search(body) is not None

    def is_internal_error(self, body: str) -> bool:
        return self._internal_error_pattern.search(body) is not None


DEFAULT_MARKERS = TriageMarkers()


def find_redirect_url(body: str, base_url: str) -> str | None:
    """Return the absolute target of a meta-refresh or script redirect, if any."""
    for pattern in (META_REFRESH_PATTERN, SCRIPT_REDIRECT_PATTERN):
        match = pattern.search(body)
        if match:
            return urljoin(base_url, match.group(1))
    return None


def is_session_expired(body: str) -> bool:
    return DEFAULT_MARKERS.is_session_expired(body)


def is_internal_error(body: str) -> bool:
    return DEFAULT_MARKERS.is_internal_error(body)


class ResponseTriage:
    """Runs redirect, expired-session and internal-error checks in that order."""

    def __init__(self, markers: TriageMarkers = DEFAULT_MARKERS) -> None:
        self._markers = markers

    @property
    def markers(self) -> TriageMarkers:
        return self._markers

    def classify(self, body: str, base_url: str) -> TriageResult:
        redirect_url = find_redirect_url(body, base_url)
        if redirect_url is not None:
            return TriageResult(TriageKind.REDIRECT, redirect_url)
        if self._markers.is_session_expired(body):
            return TriageResult(TriageKind.SESSION_EXPIRED)
        if self._markers.is_internal_error(body):
            return TriageResult(TriageKind.INTERNAL_ERROR)
        return NORMAL
