"""Metadata about the backend that answered a query."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ResultHeader:
    network: str
    server_product: str
    server_version: str | None = None
    server_name: str | None = None
    server_time: datetime | None = None
    context: Any = None
