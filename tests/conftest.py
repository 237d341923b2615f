# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides stores, the scheduler, a scripted LLM and a Flask test client.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path
import sys

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Config
from meeting_manager.ai_agent.calendar_agent import CalendarAgent
from meeting_manager.ai_agent.mock_llm_client import MockLLMClient
from meeting_manager.ai_agent.session_store import InMemorySessionStore
from meeting_manager.api.flask_server import MeetingManagerAPI
from meeting_manager.calendar.database import Database
from meeting_manager.calendar.mock_meeting_store import InMemoryMeetingStore
from meeting_manager.mediator.conflict_resolver import InMemoryConflictLog
from meeting_manager.scheduler.meeting_scheduler import MeetingScheduler


# ==================== Time Helpers ====================

def at(hour, minute=0, day=5):
    """UTC instant on 2025-12-<day>."""
    return datetime(2025, 12, day, hour, minute, tzinfo=timezone.utc)


def iso(hour, minute=0, day=5):
    """ISO 8601 string with a trailing Z."""
    return at(hour, minute, day).isoformat().replace("+00:00", "Z")


def meeting_payload(title, start, end, organizer="alice@example.com", **extra):
    """camelCase create payload."""
    payload = {"title": title, "startTime": start, "endTime": end, "organizer": organizer}
    payload.update(extra)
    return payload


# ==================== Configuration Fixtures ====================

@pytest.fixture
def config():
    """Config with in-memory backends and a required organizer."""
    cfg = Config()
    cfg.STORE_BACKEND = "memory"
    cfg.SESSION_BACKEND = "memory"
    cfg.LLM_PROVIDER = "mock"
    cfg.REQUIRE_ORGANIZER = True
    cfg.SESSION_TTL_SECONDS = 0
    cfg.MAX_HISTORY_ENTRIES = 9
    return cfg


# ==================== Storage Fixtures ====================

@pytest.fixture
def store():
    """Empty in-memory meeting store."""
    return InMemoryMeetingStore()


@pytest.fixture
def sql_database():
    """Private in-memory SQLite database."""
    database = Database("sqlite://")
    yield database
    database.dispose()


@pytest.fixture
def sessions():
    """In-memory session store capped at 9 entries."""
    return InMemorySessionStore(max_entries=9, ttl_seconds=0)


@pytest.fixture
def conflict_log():
    return InMemoryConflictLog()


# ==================== Service Fixtures ====================

@pytest.fixture
def scheduler(store, config):
    return MeetingScheduler(store, config)


@pytest.fixture
def mock_llm():
    """Offline LLM with scriptable decisions."""
    return MockLLMClient()


@pytest.fixture
def agent(scheduler, mock_llm, sessions, config):
    return CalendarAgent(scheduler, mock_llm, sessions, config)


@pytest.fixture
def api(store, sessions, mock_llm, conflict_log, config):
    """API wired to in-memory backends."""
    server = MeetingManagerAPI(
        store=store,
        sessions=sessions,
        llm_client=mock_llm,
        conflict_log=conflict_log,
        config=config,
    )
    server.app.config["TESTING"] = True
    return server


@pytest.fixture
def client(api):
    """Flask test client."""
    return api.app.test_client()


# ==================== Meeting Fixtures ====================

@pytest.fixture
def standup(scheduler):
    """M1: 09:00-09:30."""
    return scheduler.create_meeting(meeting_payload("Standup", iso(9), iso(9, 30))).meeting


@pytest.fixture
def design_review(scheduler, standup):
    """M2: 09:15-10:00, overlaps the standup."""
    return scheduler.create_meeting(meeting_payload("Design review", iso(9, 15), iso(10))).meeting
