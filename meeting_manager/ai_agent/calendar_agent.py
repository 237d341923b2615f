"""
Calendar Agent - turns natural-language requests into calendar operations
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from config.settings import Config
from meeting_manager.ai_agent.llm_client import IntentDecision, LLMClient
from meeting_manager.ai_agent.mock_llm_client import MockLLMClient
from meeting_manager.ai_agent.operations import (
    CreateMeeting,
    DeleteMeeting,
    GetMeetings,
    NoOperation,
    Operation,
    UpdateMeeting,
    build_tool_schemas,
    parse_operation,
)
from meeting_manager.ai_agent.session_store import SessionStore, render_messages
from meeting_manager.calendar.models import isoformat, utc_now
from meeting_manager.errors import (
    ExternalServiceError,
    MeetingNotFound,
    UnknownOperation,
    ValidationError,
)
from meeting_manager.scheduler.meeting_scheduler import MeetingScheduler
from utils.logger import MeetingManagerLogger
from utils.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)


class AgentState(Enum):
    IDLE = "idle"
    INTERPRETING = "interpreting"
    EXECUTING = "executing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RESPONDING = "responding"


class CalendarAgent:
    """
    Conversational front end over the MeetingScheduler.

    One request makes at most two language-model calls: one to choose an
    operation and one to phrase the result. A create that overlaps existing
    meetings is held for confirmation unless ``force`` is given, either on the
    request or by the model once the user has confirmed.
    """

    def __init__(self, scheduler: MeetingScheduler, llm_client, sessions: SessionStore,
                 config: Config = None):
        self.config = config or Config()
        self.scheduler = scheduler
        self.llm_client = llm_client
        self.sessions = sessions
        self.tools = build_tool_schemas(self.config.REQUIRE_ORGANIZER)
        logger.info("CalendarAgent initialized")

    def _transition(self, session_id: str, state: AgentState):
        logger.debug(f"Agent [{session_id}] -> {state.name}")

    def handle(self, query: str, session_id: str = None, force: bool = False) -> Dict[str, Any]:
        """Process one user turn and return the agent response"""
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query is required")
        query = query.strip()
        session_id = session_id or self.config.DEFAULT_SESSION_ID
        start_time = datetime.now()

        self._transition(session_id, AgentState.INTERPRETING)
        history = self.sessions.get(session_id)
        messages = render_messages(history) + [{"role": "user", "content": query}]
        system_prompt = self.config.AGENT_SYSTEM_PROMPT.format(current_time=isoformat(utc_now()))

        decision = self.llm_client.choose_operation(system_prompt, messages, self.tools)

        if not decision.is_tool_call:
            self._transition(session_id, AgentState.RESPONDING)
            reply = (decision.text or "").strip()
            self.sessions.append(session_id, query, reply)
            response = {
                "success": True,
                "response": reply,
                "action": NoOperation.name,
                "result": None,
                "sessionId": session_id,
            }
            self._finish(session_id, query, response, start_time)
            return response

        MeetingLogger.log_agent_decision(session_id, decision.name, decision.arguments)
        result = self._execute(decision, force, session_id)

        self._transition(session_id, AgentState.RESPONDING)
        reply = self._respond(query, decision, result)
        self.sessions.append(session_id, query, reply,
                             tool_invocation=decision.to_invocation(), tool_result=result)

        response = {
            "success": True,
            "response": reply,
            "action": decision.name,
            "result": result,
            "sessionId": session_id,
        }
        self._finish(session_id, query, response, start_time)
        return response

    def _finish(self, session_id: str, query: str, response: Dict[str, Any], start_time: datetime):
        processing_time = (datetime.now() - start_time).total_seconds()
        MeetingLogger.log_request_summary(session_id, query, response["action"],
                                          response["result"], processing_time)
        MeetingManagerLogger.log_agent_exchange(session_id, query, response, processing_time)
        self._transition(session_id, AgentState.IDLE)

    def _respond(self, query: str, decision: IntentDecision, result: Dict[str, Any]) -> str:
        """Phrase the result for the user. The outcome is already committed."""
        try:
            reply = self.llm_client.summarize_result(query, decision, result)
        except ExternalServiceError as e:
            logger.warning(f"Could not summarize {decision.name} result: {e}")
            reply = ""
        return reply or self._fallback_reply(decision.name, result)

    @staticmethod
    def _fallback_reply(action: str, result: Dict[str, Any]) -> str:
        if result.get("requiresConfirmation"):
            titles = ", ".join(f'"{c["title"]}"' for c in result.get("conflicts", []))
            return (f"That time overlaps {titles}. Pick another time, or confirm "
                    "and I'll create it anyway.")
        if not result.get("success"):
            return f"The {action} request failed: {result.get('error')}"
        return f"The {action} request completed."

    def _execute(self, decision: IntentDecision, force: bool, session_id: str) -> Dict[str, Any]:
        """Run the chosen operation. Invalid input and unknown ids become result errors."""
        try:
            operation = parse_operation(decision.name, decision.arguments)
            return self._dispatch(operation, force, session_id)
        except UnknownOperation as e:
            logger.warning(f"❌ Model requested unknown operation: {e.name}")
            return {"success": False, "error": e.message}
        except (ValidationError, MeetingNotFound) as e:
            logger.info(f"❌ {decision.name} rejected: {e.message}")
            return {"success": False, "error": e.message}

    def _dispatch(self, operation: Operation, force: bool, session_id: str) -> Dict[str, Any]:
        if isinstance(operation, CreateMeeting):
            return self._create(operation, force, session_id)

        self._transition(session_id, AgentState.EXECUTING)

        if isinstance(operation, GetMeetings):
            meetings = self.scheduler.list_meetings(
                organizer=operation.organizer,
                status=operation.status,
                start_date=operation.start_date,
                end_date=operation.end_date,
                limit=operation.limit,
            )
            return {
                "success": True,
                "count": len(meetings),
                "meetings": [m.to_dict() for m in meetings],
            }

        if isinstance(operation, UpdateMeeting):
            outcome = self.scheduler.update_meeting(operation.meeting_id, operation.changes)
            return {
                "success": True,
                "meeting": outcome.meeting.to_dict(),
                "hasConflict": outcome.meeting.has_conflict,
                "conflicts": outcome.conflict_list(),
            }

        if isinstance(operation, DeleteMeeting):
            deleted = self.scheduler.delete_meeting(operation.meeting_id)
            return {"success": True, "deletedMeeting": deleted.to_dict()}

        if isinstance(operation, NoOperation):
            return {"success": True}

        raise TypeError(f"Unhandled operation: {operation!r}")

    def _create(self, operation: CreateMeeting, force: bool, session_id: str) -> Dict[str, Any]:
        override = force or operation.force
        outcome = self.scheduler.create_meeting(operation.payload,
                                                require_confirmation=not override)

        if outcome.requires_confirmation:
            self._transition(session_id, AgentState.AWAITING_CONFIRMATION)
            return {
                "success": True,
                "requiresConfirmation": True,
                "conflicts": outcome.conflict_list(),
                "proposedMeeting": outcome.proposed,
                "message": self.config.CONFIRMATION_HINT,
            }

        self._transition(session_id, AgentState.EXECUTING)
        if outcome.has_conflict:
            logger.info(f"⚠️  Created '{outcome.meeting.title}' despite "
                        f"{len(outcome.conflicts)} conflict(s)")
        return {
            "success": True,
            "meeting": outcome.meeting.to_dict(),
            "hasConflict": outcome.has_conflict,
            "conflicts": outcome.conflict_list(),
        }

    def clear_history(self, session_id: str = None) -> str:
        session_id = session_id or self.config.DEFAULT_SESSION_ID
        self.sessions.clear(session_id)
        return session_id


def create_llm_client(config: Config = None):
    """Build the language-model client selected by LLM_PROVIDER"""
    config = config or Config()
    if config.LLM_PROVIDER == "mock":
        return MockLLMClient()
    return LLMClient(config.DEFAULT_MODEL, config=config)
