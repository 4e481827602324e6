"""
Shared value types for listings and identities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    REQUESTED = "requested"
    # Reserved for owner-driven terminal states.
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Identity:
    """A caller identity established by the identity verifier."""

    uid: str
    email: Optional[str] = None

    def as_dict(self) -> dict:
        return {"uid": self.uid, "email": self.email}


@dataclass
class RequestInfo:
    requester_email: str
    request_date: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    notes: str = ""

    def as_dict(self) -> dict:
        return {
            "requester_email": self.requester_email,
            "request_date": self.request_date.isoformat(),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RequestInfo":
        request_date = data.get("request_date")
        if isinstance(request_date, str):
            request_date = datetime.fromisoformat(request_date)
        return cls(
            requester_email=data["requester_email"],
            request_date=request_date or datetime.now(timezone.utc),
            notes=data.get("notes") or "",
        )
