"""Error details domain model."""

from pydantic import BaseModel, ConfigDict

from transit_enabler.domain.exceptions import ErrorKind, TransitError, TransportError


class ErrorDetails(BaseModel):
    """Caller-facing description of a failed operation."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    reason: str
    status_code: int | None = None

    @classmethod
    def from_exception(cls, error: TransitError) -> "ErrorDetails":
        status_code = error.status_code if isinstance(error, TransportError) else None
        return cls(kind=error.kind, reason=str(error), status_code=status_code)
