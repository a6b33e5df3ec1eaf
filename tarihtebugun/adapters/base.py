from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class EventCategory(str, Enum):
    """Event kinds as labelled by the remote endpoint (the ``Durum`` field)."""

    OCCURRENCE = "Olay"
    BIRTH = "Doğum"
    DEATH = "Ölüm"


@dataclass(frozen=True)
class Event:
    year: str
    description: str
    category: EventCategory

    @classmethod
    def from_wire(cls, raw: Any) -> "Event":
        """Build an event from an endpoint item ``{Yil, Olay, Durum}``.

        Raises ValueError when the item does not have that shape.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"event item must be an object, got {type(raw).__name__}")
        year = raw.get("Yil")
        description = raw.get("Olay")
        durum = raw.get("Durum")
        if not isinstance(year, str) or not isinstance(description, str) or not isinstance(durum, str):
            raise ValueError("event item must carry string Yil, Olay and Durum fields")
        return cls(year, description, EventCategory(durum))

    def to_wire(self) -> Dict[str, str]:
        return {"Yil": self.year, "Olay": self.description, "Durum": self.category.value}


class FailureKind(str, Enum):
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    HTTP_ERROR = "HTTP_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"


class AcquisitionError(Exception):
    """Terminal failure of an acquisition attempt. Never retried by the pipeline."""

    def __init__(self, kind: FailureKind, status: Optional[int] = None, detail: str = "") -> None:
        self.kind = kind
        self.status = status
        self.detail = detail
        super().__init__(self.code if not detail else f"{self.code}: {detail}")

    @property
    def code(self) -> str:
        if self.kind is FailureKind.HTTP_ERROR and self.status is not None:
            return f"HTTP_ERROR_{self.status}"
        return self.kind.value


class EventSource(Protocol):
    def fetch_events(self) -> List[Event]:
        ...
