"""
Meeting Scheduler - conflict-aware create/update service shared by the REST
endpoints and the conversational agent
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config.settings import Config
from meeting_manager.calendar.meeting_store import MeetingStore
from meeting_manager.calendar.models import Meeting, isoformat
from meeting_manager.errors import MeetingNotFound
from meeting_manager.scheduler.conflict_detector import (
    ConflictDetector,
    conflict_summary,
    describe_conflicts,
)
from utils.meeting_logger import MeetingLogger
from utils.validators import RequestValidator, DataSanitizer

logger = logging.getLogger(__name__)


@dataclass
class ScheduleOutcome:
    """Result of a create or update.

    When ``requires_confirmation`` is set nothing was written: ``meeting`` is
    ``None`` and ``proposed`` holds the payload that would have been stored.
    """
    meeting: Optional[Meeting] = None
    conflicts: List[Meeting] = field(default_factory=list)
    requires_confirmation: bool = False
    proposed: Optional[Dict[str, Any]] = None

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)

    def conflict_list(self) -> List[Dict[str, Any]]:
        return [conflict_summary(m) for m in sorted(self.conflicts, key=lambda m: m.start_time)]


def _proposed_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "title": fields.get("title"),
        "description": fields.get("description"),
        "startTime": isoformat(fields.get("start_time")),
        "endTime": isoformat(fields.get("end_time")),
        "organizer": fields.get("organizer"),
        "attendees": list(fields.get("attendees") or []),
        "location": fields.get("location"),
    }


class MeetingScheduler:
    """
    Validates meeting payloads, runs the conflict detector and writes to the store.

    Conflict checks and the write that follows them run under one lock so two
    concurrent requests in this process cannot both pass the check for
    overlapping intervals.
    """

    def __init__(self, store: MeetingStore, config: Config = None):
        self.config = config or Config()
        self.store = store
        self.detector = ConflictDetector(store)
        self._write_lock = threading.Lock()

    def create_meeting(self, data: Dict[str, Any], require_confirmation: bool = False,
                       require_organizer: bool = None) -> ScheduleOutcome:
        """Create a meeting, flagging conflicts.

        With ``require_confirmation`` a conflicting meeting is not written and
        the outcome asks the caller to confirm instead.
        """
        if require_organizer is None:
            require_organizer = self.config.REQUIRE_ORGANIZER
        fields = RequestValidator.validate_meeting_fields(data, require_organizer=require_organizer)
        fields.setdefault("attendees", [])

        with self._write_lock:
            conflicts = self.detector.check(fields["start_time"], fields["end_time"])
            MeetingLogger.log_conflict_check(fields.get("title"), fields["start_time"],
                                             fields["end_time"], conflicts)

            if conflicts and require_confirmation:
                logger.info(f"⏸️  Holding '{fields['title']}' for confirmation "
                            f"({len(conflicts)} conflict(s))")
                return ScheduleOutcome(
                    conflicts=conflicts,
                    requires_confirmation=True,
                    proposed=_proposed_payload(fields),
                )

            fields["has_conflict"] = bool(conflicts)
            fields["conflict_details"] = describe_conflicts(conflicts)
            meeting = self.store.create(fields)

        return ScheduleOutcome(meeting=meeting, conflicts=conflicts)

    def update_meeting(self, meeting_id: str, data: Dict[str, Any]) -> ScheduleOutcome:
        """Update any subset of fields.

        Time changes re-run the conflict check, excluding the meeting itself,
        and always recompute the conflict flag and details. Updates are never
        held for confirmation.
        """
        fields = RequestValidator.validate_meeting_fields(data, partial=True)

        with self._write_lock:
            existing = self.store.find_by_id(meeting_id)
            if existing is None:
                raise MeetingNotFound(meeting_id)

            conflicts: List[Meeting] = []
            if "start_time" in fields or "end_time" in fields:
                start_time = fields.get("start_time", existing.start_time)
                end_time = fields.get("end_time", existing.end_time)
                RequestValidator.validate_interval(start_time, end_time)

                conflicts = self.detector.check(start_time, end_time, exclude_id=meeting_id)
                MeetingLogger.log_conflict_check(existing.title, start_time, end_time, conflicts)
                fields["start_time"] = start_time
                fields["end_time"] = end_time
                fields["has_conflict"] = bool(conflicts)
                fields["conflict_details"] = describe_conflicts(conflicts)

            meeting = self.store.update(meeting_id, fields)
            if meeting is None:
                raise MeetingNotFound(meeting_id)

        return ScheduleOutcome(meeting=meeting, conflicts=conflicts)

    def list_meetings(self, organizer: str = None, status: str = None,
                      start_date: Any = None, end_date: Any = None,
                      limit: Any = None) -> List[Meeting]:
        if status:
            RequestValidator.validate_meeting_fields({"status": status}, partial=True)
        return self.store.find(
            organizer=organizer or None,
            status=status or None,
            start_from=DataSanitizer.optional_datetime(start_date, "startDate"),
            start_until=DataSanitizer.optional_datetime(end_date, "endDate"),
            limit=RequestValidator.validate_limit(limit, self.config.DEFAULT_QUERY_LIMIT),
        )

    def get_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.store.find_by_id(meeting_id)
        if meeting is None:
            raise MeetingNotFound(meeting_id)
        return meeting

    def delete_meeting(self, meeting_id: str) -> Meeting:
        with self._write_lock:
            meeting = self.store.delete(meeting_id)
        if meeting is None:
            raise MeetingNotFound(meeting_id)
        return meeting

    def count_meetings(self) -> int:
        return self.store.count()
