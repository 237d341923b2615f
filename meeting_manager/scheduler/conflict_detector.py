"""
Interval-overlap conflict detection

Two meetings conflict when their half-open intervals intersect:
``[s1, e1)`` and ``[s2, e2)`` overlap iff ``s1 < e2 and e1 > s2``. Meetings
that merely touch (``e1 == s2``) do not conflict.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from meeting_manager.calendar.meeting_store import MeetingStore
from meeting_manager.calendar.models import Meeting, isoformat
from meeting_manager.errors import InvalidInterval

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%Y-%m-%d %H:%M UTC"


def intervals_overlap(start1: datetime, end1: datetime,
                      start2: datetime, end2: datetime) -> bool:
    """Check if two time ranges overlap"""
    return start1 < end2 and end1 > start2


def find_conflicts(start_time: datetime, end_time: datetime,
                   meetings: Iterable[Meeting], exclude_id: str = None,
                   scheduled_only: bool = True) -> List[Meeting]:
    """Return the meetings whose interval overlaps ``[start_time, end_time)``.

    ``exclude_id`` keeps a meeting from colliding with itself during an
    update. Input order is preserved.
    """
    if end_time <= start_time:
        raise InvalidInterval()

    conflicts = []
    for meeting in meetings:
        if exclude_id is not None and meeting.id == exclude_id:
            continue
        if scheduled_only and not meeting.is_scheduled():
            continue
        if intervals_overlap(start_time, end_time, meeting.start_time, meeting.end_time):
            conflicts.append(meeting)
    return conflicts


def describe_conflicts(conflicts: List[Meeting]) -> Optional[str]:
    """Human-readable conflict summary stored on the meeting"""
    if not conflicts:
        return None
    ordered = sorted(conflicts, key=lambda m: m.start_time)
    listed = ", ".join(
        f'"{m.title}" ({m.start_time.strftime(DISPLAY_FORMAT)} - {m.end_time.strftime(DISPLAY_FORMAT)})'
        for m in ordered
    )
    return f"This meeting conflicts with {len(conflicts)} existing meeting(s): {listed}"


def conflict_summary(meeting: Meeting) -> Dict[str, Any]:
    return {
        "id": meeting.id,
        "title": meeting.title,
        "startTime": isoformat(meeting.start_time),
        "endTime": isoformat(meeting.end_time),
        "organizer": meeting.organizer,
    }


class ConflictDetector:
    """Runs the overlap check against the meetings currently in a store"""

    def __init__(self, store: MeetingStore):
        self.store = store

    def check(self, start_time: datetime, end_time: datetime,
              exclude_id: str = None, scheduled_only: bool = True) -> List[Meeting]:
        if end_time <= start_time:
            raise InvalidInterval()

        candidates = self.store.find(
            status="scheduled" if scheduled_only else None,
            start_until=end_time,
            limit=None,
        )
        conflicts = find_conflicts(start_time, end_time, candidates,
                                   exclude_id=exclude_id, scheduled_only=scheduled_only)

        if conflicts:
            logger.warning(f"⚠️  Found {len(conflicts)} conflicting meeting(s) for "
                           f"{isoformat(start_time)} - {isoformat(end_time)}")
        else:
            logger.info(f"✅ No conflicts for {isoformat(start_time)} - {isoformat(end_time)}")
        return conflicts
