"""Platform or track position."""

from dataclasses import dataclass

from transit_enabler.domain.exceptions import PreconditionError


@dataclass(frozen=True)
class Position:
    """Platform/track label with an optional short section such as "A-C"."""

    name: str
    section: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise PreconditionError("Position name must not be empty")
        if self.section is not None and len(self.section) > 3:
            raise PreconditionError(f"Position section too long: {self.section!r}")

    def __str__(self) -> str:
        return f"{self.name} {self.section}" if self.section else self.name
