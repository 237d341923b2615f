"""
Meeting and conflict-record data structures
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes coming back from the database"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Meeting:
    """A stored meeting. Times are UTC instants."""
    title: str
    start_time: datetime
    end_time: datetime
    id: str = field(default_factory=new_id)
    description: Optional[str] = None
    organizer: Optional[str] = None
    attendees: List[str] = field(default_factory=list)
    location: Optional[str] = None
    status: str = "scheduled"
    has_conflict: bool = False
    conflict_details: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        """Validate meeting data."""
        self.start_time = as_utc(self.start_time)
        self.end_time = as_utc(self.end_time)
        if self.end_time <= self.start_time:
            raise ValueError(f"Meeting end time must be after start time: {self.title}")

    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() / 60)

    def is_scheduled(self) -> bool:
        return self.status == "scheduled"

    def copy(self, **changes) -> "Meeting":
        changes.setdefault("attendees", list(self.attendees))
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON shape used by the API"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startTime": isoformat(self.start_time),
            "endTime": isoformat(self.end_time),
            "organizer": self.organizer,
            "attendees": list(self.attendees),
            "location": self.location,
            "status": self.status,
            "hasConflict": self.has_conflict,
            "conflictDetails": self.conflict_details,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass
class ConflictRecord:
    """A mediated conflict scenario. Records are append-only."""
    scenario: str
    resolution: str
    intent: str = "advice"
    conflict_type: str = "other"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scenario": self.scenario,
            "resolution": self.resolution,
            "intent": self.intent,
            "conflictType": self.conflict_type,
            "createdAt": isoformat(self.created_at),
        }
