"""
In-memory meeting store for tests and offline runs
"""
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from meeting_manager.calendar.meeting_store import MeetingStore, MEETING_FIELDS
from meeting_manager.calendar.models import Meeting, utc_now
from meeting_manager.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class InMemoryMeetingStore(MeetingStore):
    """Dict-backed meeting store.

    Meetings are copied on the way in and out so callers cannot mutate stored
    state behind the store's back. Set ``available = False`` to simulate a
    lost connection.
    """

    def __init__(self, meetings: List[Meeting] = None):
        self._meetings: Dict[str, Meeting] = {}
        self._lock = threading.RLock()
        self.available = True
        for meeting in meetings or []:
            self._meetings[meeting.id] = meeting.copy()

    def _ensure_available(self):
        if not self.available:
            raise StoreUnavailable("Meeting store is unavailable")

    def create(self, fields: Dict[str, Any]) -> Meeting:
        self._ensure_available()
        values = {key: fields[key] for key in MEETING_FIELDS if key in fields}
        values.setdefault("attendees", [])
        values["attendees"] = list(values["attendees"] or [])
        if values.get("status") is None:
            values["status"] = "scheduled"
        if values.get("has_conflict") is None:
            values["has_conflict"] = False
        meeting = Meeting(**values)

        with self._lock:
            self._meetings[meeting.id] = meeting
        logger.info(f"📋 MOCK: Created meeting {meeting.id}: {meeting.title}")
        return meeting.copy()

    def find(self, organizer: str = None, status: str = None,
             start_from: datetime = None, start_until: datetime = None,
             limit: Optional[int] = 50) -> List[Meeting]:
        self._ensure_available()
        with self._lock:
            meetings = list(self._meetings.values())

        results = []
        for meeting in meetings:
            if organizer and meeting.organizer != organizer:
                continue
            if status and meeting.status != status:
                continue
            if start_from is not None and meeting.start_time < start_from:
                continue
            if start_until is not None and meeting.start_time > start_until:
                continue
            results.append(meeting.copy())

        results.sort(key=lambda m: m.start_time)
        return results[:limit] if limit is not None else results

    def find_by_id(self, meeting_id: str) -> Optional[Meeting]:
        self._ensure_available()
        with self._lock:
            meeting = self._meetings.get(meeting_id)
        return meeting.copy() if meeting else None

    def update(self, meeting_id: str, fields: Dict[str, Any]) -> Optional[Meeting]:
        self._ensure_available()
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                return None
            changes = {key: fields[key] for key in MEETING_FIELDS if key in fields}
            if "attendees" in changes:
                changes["attendees"] = list(changes["attendees"] or [])
            updated = meeting.copy(updated_at=utc_now(), **changes)
            self._meetings[meeting_id] = updated
        logger.info(f"📋 MOCK: Updated meeting {meeting_id}")
        return updated.copy()

    def delete(self, meeting_id: str) -> Optional[Meeting]:
        self._ensure_available()
        with self._lock:
            meeting = self._meetings.pop(meeting_id, None)
        if meeting:
            logger.info(f"📋 MOCK: Deleted meeting {meeting_id}")
        return meeting

    def count(self) -> int:
        self._ensure_available()
        with self._lock:
            return len(self._meetings)
