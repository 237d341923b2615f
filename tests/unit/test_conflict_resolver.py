# File: tests/unit/test_conflict_resolver.py
"""
Unit tests for conflict mediation and its log.
"""

import pytest
from datetime import timedelta

from meeting_manager.calendar.models import ConflictRecord, utc_now
from meeting_manager.errors import ValidationError
from meeting_manager.mediator.conflict_resolver import (
    ConflictResolver,
    InMemoryConflictLog,
    SQLConflictLog,
    classify_conflict_type,
    classify_intent,
)

pytestmark = pytest.mark.unit


class TestClassification:
    """Test keyword heuristics."""

    @pytest.mark.parametrize("scenario,expected", [
        ("My manager double-booked me for two calls", "scheduling"),
        ("I have too much work and every deadline is tomorrow", "workload"),
        ("My coworker keeps interrupting me in standups", "interpersonal"),
        ("The coffee machine is broken", "other"),
    ])
    def test_conflict_type(self, scenario, expected):
        assert classify_conflict_type(scenario) == expected

    @pytest.mark.parametrize("scenario,expected", [
        ("Can you reschedule my 3pm?", "scheduling"),
        ("How should I talk to my teammate about this?", "advice"),
        ("My teammate took credit for my work.", "other"),
    ])
    def test_intent(self, scenario, expected):
        assert classify_intent(scenario) == expected


@pytest.fixture(params=["memory", "sql"])
def any_log(request, sql_database):
    if request.param == "memory":
        return InMemoryConflictLog()
    return SQLConflictLog(sql_database)


class TestConflictLog:

    def test_recent_is_newest_first(self, any_log):
        now = utc_now()
        any_log.append(ConflictRecord(scenario="first", resolution="r", created_at=now - timedelta(minutes=2)))
        any_log.append(ConflictRecord(scenario="second", resolution="r", created_at=now - timedelta(minutes=1)))
        any_log.append(ConflictRecord(scenario="third", resolution="r", created_at=now))

        assert [r.scenario for r in any_log.recent()] == ["third", "second", "first"]
        assert [r.scenario for r in any_log.recent(limit=1)] == ["third"]


class TestConflictResolver:

    def test_resolve_records_mediation(self, mock_llm, conflict_log):
        resolver = ConflictResolver(mock_llm, conflict_log)

        record = resolver.resolve("  My colleague and I disagree about code reviews. How do I handle it? ")

        assert record.scenario == "My colleague and I disagree about code reviews. How do I handle it?"
        assert "1." in record.resolution
        assert record.conflict_type == "interpersonal"
        assert record.intent == "advice"
        assert resolver.history() == [record]
        assert mock_llm.calls[-1]["system_prompt"].startswith("You are an empathetic")

    def test_empty_message_rejected(self, mock_llm, conflict_log):
        resolver = ConflictResolver(mock_llm, conflict_log)
        with pytest.raises(ValidationError, match="Message is required"):
            resolver.resolve("   ")
        assert mock_llm.calls == []
