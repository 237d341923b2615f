"""
Conversation history per session

History entries use a small, backend-neutral shape::

    {"role": "user" | "assistant" | "tool", "content": str | None,
     "tool_call": {"id", "name", "arguments"}   # assistant entries that invoked a tool
     "tool_call_id": str}                        # tool entries

Each store keeps only the most recent ``max_entries`` entries per session
(9 by default, about three user/assistant/tool exchanges). Older entries are
dropped silently.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select

from config.settings import Config
from meeting_manager.calendar.database import Database, HistoryRow

logger = logging.getLogger(__name__)


def build_entries(user_turn: str, assistant_turn: Optional[str] = None,
                  tool_invocation: Optional[Dict[str, Any]] = None,
                  tool_result: Any = None) -> List[Dict[str, Any]]:
    """Turn one exchange into history entries"""
    entries = [{"role": "user", "content": user_turn}]

    if tool_invocation:
        entries.append({
            "role": "assistant",
            "content": assistant_turn,
            "tool_call": {
                "id": tool_invocation["id"],
                "name": tool_invocation["name"],
                "arguments": tool_invocation.get("arguments") or {},
            },
        })
        entries.append({
            "role": "tool",
            "tool_call_id": tool_invocation["id"],
            "content": json.dumps(tool_result, default=str),
        })
    elif assistant_turn is not None:
        entries.append({"role": "assistant", "content": assistant_turn})

    return entries


def render_messages(history: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert history entries into chat-completion messages.

    Truncation can cut an assistant tool call away from its tool result; tool
    entries whose call is not in the rendered history are skipped.
    """
    messages = []
    open_calls = set()

    for entry in history:
        role = entry.get("role")
        if role == "tool":
            call_id = entry.get("tool_call_id")
            if call_id not in open_calls:
                continue
            messages.append({"role": "tool", "tool_call_id": call_id,
                             "content": entry.get("content") or ""})
        elif role == "assistant" and entry.get("tool_call"):
            call = entry["tool_call"]
            open_calls.add(call["id"])
            messages.append({
                "role": "assistant",
                "content": entry.get("content"),
                "tool_calls": [{
                    "id": call["id"],
                    "type": "function",
                    "function": {
                        "name": call["name"],
                        "arguments": json.dumps(call.get("arguments") or {}),
                    },
                }],
            })
        elif role in ("user", "assistant"):
            messages.append({"role": role, "content": entry.get("content") or ""})

    return messages


class SessionStore(ABC):
    """Bounded conversation history keyed by session id"""

    def __init__(self, max_entries: int = None):
        self.max_entries = max_entries or Config.MAX_HISTORY_ENTRIES

    @abstractmethod
    def get(self, session_id: str) -> List[Dict[str, Any]]:
        """Return the session history, creating an empty one if absent"""

    @abstractmethod
    def append(self, session_id: str, user_turn: str, assistant_turn: Optional[str] = None,
               tool_invocation: Optional[Dict[str, Any]] = None,
               tool_result: Any = None) -> List[Dict[str, Any]]:
        """Record an exchange and return the truncated history"""

    @abstractmethod
    def clear(self, session_id: str) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """Process-local history map.

    With ``ttl_seconds`` a session idle for longer than the TTL starts over
    with an empty history on next use.
    """

    def __init__(self, max_entries: int = None, ttl_seconds: int = None):
        super().__init__(max_entries)
        ttl = Config.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._ttl = timedelta(seconds=ttl) if ttl else None
        self._sessions: Dict[str, List[Dict[str, Any]]] = {}
        self._last_used: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def _is_expired(self, session_id: str, now: datetime) -> bool:
        if self._ttl is None:
            return False
        last_used = self._last_used.get(session_id)
        return last_used is not None and now - last_used > self._ttl

    def _history(self, session_id: str) -> List[Dict[str, Any]]:
        now = datetime.now(timezone.utc)
        if self._is_expired(session_id, now):
            logger.info(f"Session {session_id} expired, starting fresh history")
            self._sessions.pop(session_id, None)
        self._last_used[session_id] = now
        return self._sessions.setdefault(session_id, [])

    def get(self, session_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(entry) for entry in self._history(session_id)]

    def append(self, session_id: str, user_turn: str, assistant_turn: Optional[str] = None,
               tool_invocation: Optional[Dict[str, Any]] = None,
               tool_result: Any = None) -> List[Dict[str, Any]]:
        entries = build_entries(user_turn, assistant_turn, tool_invocation, tool_result)
        with self._lock:
            history = self._history(session_id)
            history.extend(entries)
            if len(history) > self.max_entries:
                del history[:len(history) - self.max_entries]
            return [dict(entry) for entry in history]

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
            self._last_used.pop(session_id, None)
        logger.info(f"Session {session_id} cleared")

    def purge_expired(self) -> int:
        """Drop every expired session and return how many were dropped"""
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [sid for sid in self._sessions if self._is_expired(sid, now)]
            for session_id in expired:
                self._sessions.pop(session_id, None)
                self._last_used.pop(session_id, None)
        return len(expired)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)


class SQLSessionStore(SessionStore):
    """History kept in the shared database so several API instances see one conversation"""

    def __init__(self, database: Database, max_entries: int = None):
        super().__init__(max_entries)
        self.database = database

    @staticmethod
    def _row_to_entry(row: HistoryRow) -> Dict[str, Any]:
        entry = {"role": row.role, "content": row.content}
        if row.tool_call:
            entry["tool_call"] = row.tool_call
        if row.tool_call_id:
            entry["tool_call_id"] = row.tool_call_id
        return entry

    def _load(self, session, session_id: str) -> List[Dict[str, Any]]:
        rows = session.execute(
            select(HistoryRow)
            .where(HistoryRow.session_id == session_id)
            .order_by(HistoryRow.id.asc())
        ).scalars().all()
        return [self._row_to_entry(row) for row in rows]

    def get(self, session_id: str) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            return self._load(session, session_id)

    def append(self, session_id: str, user_turn: str, assistant_turn: Optional[str] = None,
               tool_invocation: Optional[Dict[str, Any]] = None,
               tool_result: Any = None) -> List[Dict[str, Any]]:
        entries = build_entries(user_turn, assistant_turn, tool_invocation, tool_result)
        with self.database.session() as session:
            for entry in entries:
                session.add(HistoryRow(
                    session_id=session_id,
                    role=entry["role"],
                    content=entry.get("content"),
                    tool_call=entry.get("tool_call"),
                    tool_call_id=entry.get("tool_call_id"),
                ))
            session.flush()

            stale_ids = session.execute(
                select(HistoryRow.id)
                .where(HistoryRow.session_id == session_id)
                .order_by(HistoryRow.id.desc())
                .offset(self.max_entries)
            ).scalars().all()
            if stale_ids:
                session.execute(delete(HistoryRow).where(HistoryRow.id.in_(stale_ids)))

            return self._load(session, session_id)

    def clear(self, session_id: str) -> None:
        with self.database.session() as session:
            session.execute(delete(HistoryRow).where(HistoryRow.session_id == session_id))
        logger.info(f"Session {session_id} cleared")


def create_session_store(config: Config = None, database: Database = None) -> SessionStore:
    """Build the session store selected by SESSION_BACKEND"""
    config = config or Config()
    if config.SESSION_BACKEND == "sql":
        return SQLSessionStore(database or Database(config.DATABASE_URL),
                               max_entries=config.MAX_HISTORY_ENTRIES)
    return InMemorySessionStore(max_entries=config.MAX_HISTORY_ENTRIES,
                                ttl_seconds=config.SESSION_TTL_SECONDS)
