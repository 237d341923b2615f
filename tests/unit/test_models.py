# File: tests/unit/test_models.py
"""
Unit tests for data models.
"""

import pytest
from datetime import datetime, timedelta, timezone

from conftest import at
from meeting_manager.calendar.models import ConflictRecord, Meeting, as_utc, isoformat


@pytest.mark.unit
class TestMeeting:
    """Test Meeting model."""

    def test_meeting_creation(self):
        meeting = Meeting(title="Sync", start_time=at(9), end_time=at(10))

        assert meeting.status == "scheduled"
        assert meeting.has_conflict is False
        assert meeting.attendees == []
        assert len(meeting.id) == 32
        assert meeting.duration_minutes() == 60

    def test_naive_times_become_utc(self):
        meeting = Meeting(title="Sync", start_time=datetime(2025, 12, 5, 9), end_time=datetime(2025, 12, 5, 10))
        assert meeting.start_time == at(9)

    def test_offset_times_normalised(self):
        plus_two = timezone(timedelta(hours=2))
        meeting = Meeting(title="Sync", start_time=datetime(2025, 12, 5, 11, tzinfo=plus_two),
                          end_time=datetime(2025, 12, 5, 12, tzinfo=plus_two))
        assert meeting.start_time == at(9)
        assert meeting.start_time.tzinfo == timezone.utc

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            Meeting(title="Bad", start_time=at(10), end_time=at(9))

    def test_copy_does_not_share_attendees(self):
        meeting = Meeting(title="Sync", start_time=at(9), end_time=at(10), attendees=["a@example.com"])
        duplicate = meeting.copy()
        duplicate.attendees.append("b@example.com")
        assert meeting.attendees == ["a@example.com"]

    def test_to_dict_is_camel_case(self):
        meeting = Meeting(id="abc", title="Sync", start_time=at(9), end_time=at(10),
                          has_conflict=True, conflict_details="details")
        data = meeting.to_dict()

        assert data["id"] == "abc"
        assert data["startTime"] == "2025-12-05T09:00:00Z"
        assert data["endTime"] == "2025-12-05T10:00:00Z"
        assert data["hasConflict"] is True
        assert data["conflictDetails"] == "details"
        assert data["createdAt"].endswith("Z")


@pytest.mark.unit
class TestConflictRecord:

    def test_to_dict(self):
        record = ConflictRecord(scenario="s", resolution="r", conflict_type="workload")
        data = record.to_dict()
        assert data["conflictType"] == "workload"
        assert data["intent"] == "advice"
        assert data["scenario"] == "s"


@pytest.mark.unit
class TestTimeHelpers:

    def test_isoformat_none(self):
        assert isoformat(None) is None

    def test_as_utc_naive(self):
        assert as_utc(datetime(2025, 12, 5, 9)) == at(9)
