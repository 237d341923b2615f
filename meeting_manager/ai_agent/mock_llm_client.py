"""
Mock LLM Client for testing without an external language model
"""
import logging
import re
from collections import deque
from typing import Dict, Any, List, Optional

from meeting_manager.ai_agent.llm_client import IntentDecision
from meeting_manager.errors import ExternalServiceError

logger = logging.getLogger(__name__)

ISO_PATTERN = r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2})?(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})?'
EMAIL_PATTERN = r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'
ID_PATTERN = r'\b[0-9a-f]{32}\b'


class MockLLMClient:
    """Offline stand-in for LLMClient.

    Decisions queued with ``queue_decision`` are returned first, in order.
    Otherwise simple keyword rules read the latest user turn.
    """

    def __init__(self, model_name: str = None):
        self.model_name = model_name or "mock-llm"
        self.calls: List[Dict[str, Any]] = []
        self.fail_next = False
        self._decisions = deque()
        self._call_counter = 0
        logger.info(f"Initialized Mock LLM client: {self.model_name}")

    def _next_call_id(self) -> str:
        self._call_counter += 1
        return f"call_mock_{self._call_counter}"

    def _record(self, method: str, **payload):
        self.calls.append({"method": method, **payload})
        if self.fail_next:
            self.fail_next = False
            raise ExternalServiceError("Mock language model failure")

    def queue_decision(self, name: Optional[str], arguments: Dict[str, Any] = None,
                       text: str = None):
        """Script the next operation choice"""
        call_id = self._next_call_id() if name else None
        self._decisions.append(IntentDecision(name=name, arguments=dict(arguments or {}),
                                              call_id=call_id, text=text))

    def choose_operation(self, system_prompt: str, messages: List[Dict[str, Any]],
                         tools: List[Dict[str, Any]]) -> IntentDecision:
        self._record("choose_operation", system_prompt=system_prompt,
                     messages=list(messages), tools=tools)

        if self._decisions:
            decision = self._decisions.popleft()
            logger.info(f"🤖 MOCK: Scripted decision {decision.name or 'none'}")
            return decision

        query = next((m.get("content") or "" for m in reversed(messages)
                      if m.get("role") == "user"), "")
        decision = self._keyword_decision(query)
        logger.info(f"🤖 MOCK: Keyword decision {decision.name or 'none'}")
        return decision

    def _keyword_decision(self, query: str) -> IntentDecision:
        lowered = query.lower()
        meeting_ids = re.findall(ID_PATTERN, query)
        times = re.findall(ISO_PATTERN, query)
        emails = re.findall(EMAIL_PATTERN, query)

        if meeting_ids and re.search(r'\b(delete|remove|cancel)\b', lowered):
            return IntentDecision(name="delete_meeting", arguments={"meetingId": meeting_ids[0]},
                                  call_id=self._next_call_id())

        if meeting_ids and re.search(r'\b(move|reschedule|update|change|rename)\b', lowered):
            arguments: Dict[str, Any] = {"meetingId": meeting_ids[0]}
            if len(times) >= 2:
                arguments["startTime"], arguments["endTime"] = times[0], times[1]
            return IntentDecision(name="update_meeting", arguments=arguments,
                                  call_id=self._next_call_id())

        if len(times) >= 2 and re.search(r'\b(schedule|create|book|add|set up)\b', lowered):
            title_match = re.search(r'"([^"]+)"', query)
            arguments = {
                "title": title_match.group(1) if title_match else "Meeting",
                "startTime": times[0],
                "endTime": times[1],
            }
            if emails:
                arguments["organizer"] = emails[0]
                if len(emails) > 1:
                    arguments["attendees"] = emails[1:]
            if re.search(r'\b(anyway|regardless|force)\b', lowered):
                arguments["force"] = True
            return IntentDecision(name="create_meeting", arguments=arguments,
                                  call_id=self._next_call_id())

        if re.search(r'\b(show|list|what|which|my meetings|calendar)\b', lowered):
            arguments = {}
            if emails:
                arguments["organizer"] = emails[0]
            return IntentDecision(name="get_meetings", arguments=arguments,
                                  call_id=self._next_call_id())

        return IntentDecision(text="I can create, list, update, or delete meetings. "
                                   "What would you like to do?")

    def summarize_result(self, query: str, decision: IntentDecision,
                         result: Dict[str, Any]) -> str:
        self._record("summarize_result", query=query, decision=decision, result=result)

        if result.get("requiresConfirmation"):
            titles = ", ".join(c["title"] for c in result.get("conflicts", []))
            return (f"That time overlaps {len(result.get('conflicts', []))} meeting(s): {titles}. "
                    f"Should I pick another time or create it anyway?")
        if not result.get("success"):
            return f"Sorry, I couldn't do that: {result.get('error', 'unknown error')}"

        if decision.name == "create_meeting":
            meeting = result["meeting"]
            note = " It conflicts with existing meetings." if result.get("hasConflict") else ""
            return f"Created \"{meeting['title']}\" starting {meeting['startTime']}.{note}"
        if decision.name == "get_meetings":
            return f"You have {result.get('count', 0)} meeting(s)."
        if decision.name == "update_meeting":
            return f"Updated \"{result['meeting']['title']}\"."
        if decision.name == "delete_meeting":
            return f"Deleted \"{result['deletedMeeting']['title']}\"."
        return "Done."

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self._record("complete", system_prompt=system_prompt, user_prompt=user_prompt)
        return (
            "It sounds like both sides want to be heard. "
            "1. Describe what happened without judgement. "
            "2. Name the feelings and needs involved. "
            "3. Make one concrete, doable request."
        )

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "total_requests": len(self.calls),
            "failed_requests": 0,
        }
