# File: tests/integration/test_calendar_agent.py
"""
Integration tests for the calendar agent: intent decision -> scheduler ->
store -> reply -> session history.
"""

import json
import pytest

from conftest import iso, meeting_payload
from meeting_manager.errors import ExternalServiceError, StoreUnavailable, ValidationError

pytestmark = pytest.mark.integration


def create_args(title="Overlap", start=None, end=None, **extra):
    args = meeting_payload(title, start or iso(9, 10), end or iso(9, 20))
    args.update(extra)
    return args


class TestConflictConfirmation:
    """A conflicting create is held until the user confirms."""

    def test_conflicting_create_requires_confirmation(self, agent, mock_llm, store, standup):
        mock_llm.queue_decision("create_meeting", create_args())

        response = agent.handle("Book an overlap at 9:10", session_id="s1")

        result = response["result"]
        assert response["success"] is True
        assert response["action"] == "create_meeting"
        assert result["requiresConfirmation"] is True
        assert [c["id"] for c in result["conflicts"]] == [standup.id]
        assert result["conflicts"][0]["organizer"] == "alice@example.com"
        assert result["proposedMeeting"]["title"] == "Overlap"
        assert store.count() == 1
        assert "overlaps" in response["response"]

    def test_request_level_force_creates_once(self, agent, mock_llm, store, standup):
        mock_llm.queue_decision("create_meeting", create_args())
        agent.handle("Book an overlap at 9:10", session_id="s1")

        mock_llm.queue_decision("create_meeting", create_args())
        response = agent.handle("Yes, create it anyway", session_id="s1", force=True)

        result = response["result"]
        assert result["success"] is True
        assert result["hasConflict"] is True
        assert result["meeting"]["hasConflict"] is True
        assert store.count() == 2
        assert len([m for m in store.find() if m.title == "Overlap"]) == 1

    def test_tool_level_force_creates(self, agent, mock_llm, store, standup):
        mock_llm.queue_decision("create_meeting", create_args(force=True))

        response = agent.handle("Create it even though it overlaps", session_id="s1")

        assert response["result"]["meeting"]["title"] == "Overlap"
        assert store.count() == 2

    def test_free_slot_created_without_confirmation(self, agent, mock_llm, store, standup):
        mock_llm.queue_decision("create_meeting", create_args("Planning", iso(11), iso(12)))

        response = agent.handle("Plan at 11", session_id="s1")

        assert response["result"]["hasConflict"] is False
        assert "requiresConfirmation" not in response["result"]
        assert store.count() == 2


class TestOperations:
    """Each operation through the agent."""

    def test_get_meetings(self, agent, mock_llm, standup, design_review):
        mock_llm.queue_decision("get_meetings", {"limit": 1})

        response = agent.handle("What's on my calendar?")

        assert response["action"] == "get_meetings"
        assert response["result"]["count"] == 1
        assert response["result"]["meetings"][0]["title"] == "Standup"
        assert response["sessionId"] == "default"

    def test_update_recomputes_conflicts(self, agent, mock_llm, standup, design_review):
        mock_llm.queue_decision("update_meeting", {"meetingId": design_review.id,
                                                   "startTime": iso(14), "endTime": iso(15)})

        result = agent.handle("Move the design review to 2pm")["result"]

        assert result["success"] is True
        assert result["hasConflict"] is False
        assert result["meeting"]["conflictDetails"] is None

    def test_update_unknown_meeting(self, agent, mock_llm):
        mock_llm.queue_decision("update_meeting", {"meetingId": "missing", "title": "x"})

        result = agent.handle("Rename meeting missing")["result"]

        assert result == {"success": False, "error": "Meeting not found"}

    def test_delete(self, agent, mock_llm, store, standup):
        mock_llm.queue_decision("delete_meeting", {"meetingId": standup.id})

        result = agent.handle("Cancel the standup")["result"]

        assert result["deletedMeeting"]["id"] == standup.id
        assert store.count() == 0

    def test_delete_unknown(self, agent, mock_llm):
        mock_llm.queue_decision("delete_meeting", {"meetingId": "missing"})
        assert agent.handle("Delete it")["result"]["error"] == "Meeting not found"

    def test_invalid_interval_is_result_error(self, agent, mock_llm, store):
        mock_llm.queue_decision("create_meeting", create_args("Backwards", iso(10), iso(9)))

        result = agent.handle("Book something backwards")["result"]

        assert result == {"success": False, "error": "endTime must be after startTime"}
        assert store.count() == 0

    def test_unknown_operation(self, agent, mock_llm, store):
        mock_llm.queue_decision("book_flight", {"to": "Lisbon"})

        response = agent.handle("Book me a flight")

        assert response["success"] is True
        assert response["action"] == "book_flight"
        assert response["result"] == {"success": False, "error": "Unknown function: book_flight"}
        assert store.count() == 0

    def test_plain_reply(self, agent, mock_llm):
        mock_llm.queue_decision(None, text="Hi! How can I help?")

        response = agent.handle("hello")

        assert response == {"success": True, "response": "Hi! How can I help?", "action": "none",
                            "result": None, "sessionId": "default"}

    def test_keyword_flow_without_script(self, agent, store):
        query = ('Schedule "Retro" from 2025-12-05T16:00:00Z to 2025-12-05T17:00:00Z '
                 'organized by alice@example.com')

        response = agent.handle(query)

        assert response["action"] == "create_meeting"
        assert store.find()[0].title == "Retro"


class TestSessionHistory:
    """Conversation memory across turns."""

    def test_history_sent_on_next_turn(self, agent, mock_llm, standup):
        mock_llm.queue_decision("get_meetings", {})
        agent.handle("What's on today?", session_id="s1")

        mock_llm.queue_decision(None, text="It starts at 9.")
        agent.handle("When does it start?", session_id="s1")

        messages = mock_llm.calls[-1]["messages"]
        roles = [m["role"] for m in messages]
        assert roles == ["user", "assistant", "tool", "user"]
        assert json.loads(messages[2]["content"])["count"] == 1

    def test_history_capped(self, agent, mock_llm, sessions):
        for i in range(5):
            mock_llm.queue_decision("get_meetings", {})
            agent.handle(f"list {i}", session_id="s1")

        assert len(sessions.get("s1")) == 9

    def test_sessions_isolated_and_clearable(self, agent, mock_llm, sessions):
        mock_llm.queue_decision(None, text="hi")
        agent.handle("hello", session_id="a")
        mock_llm.queue_decision(None, text="hi")
        agent.handle("hello", session_id="b")

        assert agent.clear_history("a") == "a"

        assert sessions.get("a") == []
        assert len(sessions.get("b")) == 2


class TestFailures:
    """Errors that surface past the agent."""

    def test_empty_query_rejected(self, agent, mock_llm):
        with pytest.raises(ValidationError, match="Query is required"):
            agent.handle("   ")
        assert mock_llm.calls == []

    def test_intent_failure_propagates(self, agent, mock_llm, store):
        mock_llm.fail_next = True
        with pytest.raises(ExternalServiceError):
            agent.handle("list my meetings")
        assert store.count() == 0

    def test_summary_failure_keeps_committed_create(self, agent, mock_llm, store):
        mock_llm.queue_decision("create_meeting", create_args("Planning", iso(11), iso(12)))
        original = mock_llm.summarize_result

        def failing_summary(*args, **kwargs):
            raise ExternalServiceError("summary down")

        mock_llm.summarize_result = failing_summary
        try:
            response = agent.handle("Plan at 11")
        finally:
            mock_llm.summarize_result = original

        assert response["result"]["success"] is True
        assert response["response"] == "The create_meeting request completed."
        assert store.count() == 1

    def test_summary_failure_on_conflict_lists_titles(self, agent, mock_llm, store, standup, config,
                                                     monkeypatch):
        def failing_summary(*args, **kwargs):
            raise ExternalServiceError("summary down")

        monkeypatch.setattr(mock_llm, "summarize_result", failing_summary)
        mock_llm.queue_decision("create_meeting", create_args())

        response = agent.handle("Book an overlap at 9:10")

        assert response["result"]["requiresConfirmation"] is True
        assert '"Standup"' in response["response"]
        assert response["response"] != config.CONFIRMATION_HINT
        assert store.count() == 1

    def test_store_unavailable_propagates(self, agent, mock_llm, store):
        store.available = False
        mock_llm.queue_decision("get_meetings", {})
        with pytest.raises(StoreUnavailable):
            agent.handle("list my meetings")
