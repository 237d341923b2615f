"""
Conflict Resolver - mediation advice for workplace conflicts, kept as an
append-only log
"""
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import List

from sqlalchemy import select

from config.settings import Config
from meeting_manager.calendar.database import ConflictRow, Database
from meeting_manager.calendar.models import ConflictRecord, as_utc
from meeting_manager.errors import ValidationError

logger = logging.getLogger(__name__)

# Checked in order; the first tag with a matching keyword wins
CONFLICT_TYPE_KEYWORDS = [
    ("scheduling", ["double-booked", "double booked", "overlap", "schedule", "reschedul",
                    "calendar", "meeting time", "same time", "time slot"]),
    ("workload", ["workload", "deadline", "overtime", "too much work", "burnout",
                  "overloaded", "tasks", "responsibilit"]),
    ("interpersonal", ["argue", "argument", "disagree", "coworker", "co-worker", "colleague",
                       "manager", "boss", "teammate", "rude", "yelled", "ignored", "friend",
                       "partner", "roommate"]),
]

SCHEDULING_INTENT = r'\b(reschedule|move|book|find (a )?time|when can|free slot)\b'
ADVICE_INTENT = r'(\?|\b(how|should|advice|help|what do|what can|handle|deal with)\b)'


def classify_conflict_type(scenario: str) -> str:
    lowered = scenario.lower()
    for tag, keywords in CONFLICT_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return tag
    return "other"


def classify_intent(scenario: str) -> str:
    """Whether the user wants calendar changes or mediation advice"""
    lowered = scenario.lower()
    if re.search(SCHEDULING_INTENT, lowered):
        return "scheduling"
    if re.search(ADVICE_INTENT, lowered):
        return "advice"
    return "other"


class ConflictLog(ABC):
    """Append-only storage for mediated scenarios"""

    @abstractmethod
    def append(self, record: ConflictRecord) -> ConflictRecord:
        ...

    @abstractmethod
    def recent(self, limit: int = 20) -> List[ConflictRecord]:
        """Newest first"""


class InMemoryConflictLog(ConflictLog):

    def __init__(self):
        self._records: List[ConflictRecord] = []
        self._lock = threading.Lock()

    def append(self, record: ConflictRecord) -> ConflictRecord:
        with self._lock:
            self._records.append(record)
        return record

    def recent(self, limit: int = 20) -> List[ConflictRecord]:
        with self._lock:
            return list(reversed(self._records))[:limit]


class SQLConflictLog(ConflictLog):

    def __init__(self, database: Database):
        self.database = database

    def append(self, record: ConflictRecord) -> ConflictRecord:
        with self.database.session() as session:
            session.add(ConflictRow(
                id=record.id,
                scenario=record.scenario,
                resolution=record.resolution,
                intent=record.intent,
                conflict_type=record.conflict_type,
                created_at=record.created_at,
            ))
        return record

    def recent(self, limit: int = 20) -> List[ConflictRecord]:
        with self.database.session() as session:
            rows = session.execute(
                select(ConflictRow).order_by(ConflictRow.created_at.desc()).limit(limit)
            ).scalars().all()
            return [
                ConflictRecord(
                    id=row.id,
                    scenario=row.scenario,
                    resolution=row.resolution,
                    intent=row.intent,
                    conflict_type=row.conflict_type,
                    created_at=as_utc(row.created_at),
                )
                for row in rows
            ]


class ConflictResolver:
    """Asks the language model for a mediation and records the exchange"""

    def __init__(self, llm_client, log: ConflictLog, config: Config = None):
        self.config = config or Config()
        self.llm_client = llm_client
        self.log = log

    def resolve(self, scenario: str) -> ConflictRecord:
        if not isinstance(scenario, str) or not scenario.strip():
            raise ValidationError("Message is required")
        scenario = scenario.strip()

        resolution = self.llm_client.complete(self.config.MEDIATOR_PROMPT, scenario)
        record = ConflictRecord(
            scenario=scenario,
            resolution=resolution,
            intent=classify_intent(scenario),
            conflict_type=classify_conflict_type(scenario),
        )
        self.log.append(record)
        logger.info(f"🕊️  Mediated {record.conflict_type} conflict ({record.intent}) [{record.id}]")
        return record

    def history(self, limit: int = 20) -> List[ConflictRecord]:
        return self.log.recent(limit)
