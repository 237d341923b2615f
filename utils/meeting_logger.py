"""
Specialized logging utilities for conflict checks and agent decisions
"""
import logging
from datetime import datetime
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def _fmt(value: datetime) -> str:
    return value.strftime('%Y-%m-%d %H:%M UTC') if value else 'N/A'


class MeetingLogger:
    """Specialized logger for scheduling events"""

    @staticmethod
    def log_conflict_check(title: str, start_time: datetime, end_time: datetime,
                           conflicts: List[Any]):
        """Log the outcome of a conflict check for a candidate meeting"""
        logger.info(f"🔍 CONFLICT CHECK - {title or 'Untitled'}")
        logger.info(f"   ⏰ Candidate: {_fmt(start_time)} to {_fmt(end_time)}")

        if not conflicts:
            logger.info(f"   ✅ No overlapping scheduled meetings")
            return

        logger.info(f"   ⚠️  Overlapping meetings ({len(conflicts)}):")
        for i, meeting in enumerate(sorted(conflicts, key=lambda m: m.start_time), 1):
            logger.info(f"      {i}. {meeting.title} [{meeting.id}]")
            logger.info(f"         Time: {_fmt(meeting.start_time)} to {_fmt(meeting.end_time)}")

    @staticmethod
    def log_agent_decision(session_id: str, action: str, arguments: Dict[str, Any]):
        """Log which operation the intent service picked"""
        logger.info(f"🤖 AGENT DECISION [{session_id}]")
        logger.info(f"   🔧 Action: {action}")
        if arguments:
            shown = {k: v for k, v in arguments.items() if k != "description"}
            logger.info(f"   📋 Arguments: {shown}")

    @staticmethod
    def log_request_summary(session_id: str, query: str, action: str,
                            result: Dict[str, Any], processing_time: float):
        """Log a summary of one agent request"""
        logger.info(f"📋 AGENT REQUEST SUMMARY")
        logger.info(f"   🆔 Session: {session_id}")
        logger.info(f"   💬 Query: {query[:100]}")
        logger.info(f"   🔧 Action: {action}")
        logger.info(f"   ⏱️  Processing time: {processing_time:.2f} seconds")

        if not result:
            logger.info(f"   💭 STATUS: Conversational reply, no calendar change")
        elif result.get("requiresConfirmation"):
            logger.info(f"   ⏸️  STATUS: Awaiting confirmation "
                        f"({len(result.get('conflicts', []))} conflict(s))")
        elif result.get("success"):
            logger.info(f"   ✅ STATUS: Completed")
        else:
            logger.warning(f"   ❌ STATUS: {result.get('error', 'Failed')}")
        logger.info("=" * 60)
