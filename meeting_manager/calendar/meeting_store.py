"""
Meeting storage backed by SQLAlchemy
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from meeting_manager.calendar.database import Database, MeetingRow
from meeting_manager.calendar.models import Meeting, as_utc, new_id, utc_now

logger = logging.getLogger(__name__)

MEETING_FIELDS = (
    "title", "description", "start_time", "end_time", "organizer", "attendees",
    "location", "status", "has_conflict", "conflict_details",
)


class MeetingStore(ABC):
    """Persistence contract for meetings.

    Every method may raise ``StoreUnavailable``. Lookups by id return ``None``
    for unknown ids instead of raising.
    """

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> Meeting:
        ...

    @abstractmethod
    def find(self, organizer: str = None, status: str = None,
             start_from: datetime = None, start_until: datetime = None,
             limit: Optional[int] = 50) -> List[Meeting]:
        """Return matching meetings sorted by start time ascending"""

    @abstractmethod
    def find_by_id(self, meeting_id: str) -> Optional[Meeting]:
        ...

    @abstractmethod
    def update(self, meeting_id: str, fields: Dict[str, Any]) -> Optional[Meeting]:
        ...

    @abstractmethod
    def delete(self, meeting_id: str) -> Optional[Meeting]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...


def _row_to_meeting(row: MeetingRow) -> Meeting:
    return Meeting(
        id=row.id,
        title=row.title,
        description=row.description,
        start_time=as_utc(row.start_time),
        end_time=as_utc(row.end_time),
        organizer=row.organizer,
        attendees=list(row.attendees or []),
        location=row.location,
        status=row.status,
        has_conflict=bool(row.has_conflict),
        conflict_details=row.conflict_details,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SQLMeetingStore(MeetingStore):
    """Meeting store on any SQLAlchemy-supported database"""

    def __init__(self, database: Database):
        self.database = database

    def create(self, fields: Dict[str, Any]) -> Meeting:
        now = utc_now()
        row = MeetingRow(id=new_id(), created_at=now, updated_at=now, attendees=[])
        for key in MEETING_FIELDS:
            if key in fields:
                setattr(row, key, fields[key])
        if row.status is None:
            row.status = "scheduled"
        if row.has_conflict is None:
            row.has_conflict = False

        with self.database.session() as session:
            session.add(row)
            session.flush()
            meeting = _row_to_meeting(row)

        logger.info(f"Created meeting {meeting.id}: {meeting.title}")
        return meeting

    def find(self, organizer: str = None, status: str = None,
             start_from: datetime = None, start_until: datetime = None,
             limit: Optional[int] = 50) -> List[Meeting]:
        query = select(MeetingRow)
        if organizer:
            query = query.where(MeetingRow.organizer == organizer)
        if status:
            query = query.where(MeetingRow.status == status)
        if start_from is not None:
            query = query.where(MeetingRow.start_time >= start_from)
        if start_until is not None:
            query = query.where(MeetingRow.start_time <= start_until)
        query = query.order_by(MeetingRow.start_time.asc())
        if limit is not None:
            query = query.limit(limit)

        with self.database.session() as session:
            rows = session.execute(query).scalars().all()
            return [_row_to_meeting(row) for row in rows]

    def find_by_id(self, meeting_id: str) -> Optional[Meeting]:
        with self.database.session() as session:
            row = session.get(MeetingRow, meeting_id)
            return _row_to_meeting(row) if row else None

    def update(self, meeting_id: str, fields: Dict[str, Any]) -> Optional[Meeting]:
        with self.database.session() as session:
            row = session.get(MeetingRow, meeting_id)
            if row is None:
                return None
            for key in MEETING_FIELDS:
                if key in fields:
                    setattr(row, key, fields[key])
            row.updated_at = utc_now()
            session.flush()
            meeting = _row_to_meeting(row)

        logger.info(f"Updated meeting {meeting_id}: {', '.join(sorted(fields)) or 'no fields'}")
        return meeting

    def delete(self, meeting_id: str) -> Optional[Meeting]:
        with self.database.session() as session:
            row = session.get(MeetingRow, meeting_id)
            if row is None:
                return None
            meeting = _row_to_meeting(row)
            session.delete(row)

        logger.info(f"Deleted meeting {meeting_id}")
        return meeting

    def count(self) -> int:
        with self.database.session() as session:
            return session.execute(select(func.count()).select_from(MeetingRow)).scalar_one()
