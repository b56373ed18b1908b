"""Snapshot records consumed by the insight rules."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.time_helpers import from_storage


@dataclass(frozen=True)
class Event:
    """Calendar event as seen by the rules."""

    id: str
    title: str
    start: datetime
    end: datetime
    category: str
    location: Optional[str] = None
    attendees: Optional[int] = None

    @property
    def is_meeting(self) -> bool:
        return self.category == "meeting"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Event":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            start=from_storage(row["start_time"]),
            end=from_storage(row["end_time"]),
            category=row["category"],
            location=row.get("location"),
            attendees=row.get("attendees"),
        )


@dataclass(frozen=True)
class Task:
    """Open task as seen by the rules."""

    id: str
    title: str
    priority: str
    status: str
    due: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    energy_required: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            priority=row["priority"],
            status=row["status"],
            due=from_storage(row.get("due_at")),
            duration_minutes=row.get("duration_minutes"),
            energy_required=row.get("energy_required"),
        )


@dataclass(frozen=True)
class Appointment:
    """Pending appointment as seen by the rules."""

    id: str
    client_name: str
    service_name: str
    requested_at: datetime
    status: str
    duration_minutes: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Appointment":
        return cls(
            id=str(row["id"]),
            client_name=row["client_name"],
            service_name=row["service_name"],
            requested_at=from_storage(row["requested_at"]),
            status=row["status"],
            duration_minutes=row.get("duration_minutes"),
        )


@dataclass
class DataSnapshot:
    """Consistent triple of today's events, open tasks and pending appointments."""

    events: List[Event] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)
