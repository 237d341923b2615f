"""
Configuration settings for the Meeting Manager API
"""
import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Language model (OpenAI-compatible endpoint)
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")  # openai | mock
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
    DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
    LLM_MAX_RETRIES = 0  # callers resubmit on failure
    TEMPERATURE = 0.2

    # Persistence
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///meetings.db")
    STORE_BACKEND = os.getenv("STORE_BACKEND", "sql")  # sql | memory

    # Conversation sessions
    SESSION_BACKEND = os.getenv("SESSION_BACKEND", "memory")  # memory | sql
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "0"))  # 0 = never expire
    MAX_HISTORY_ENTRIES = int(os.getenv("MAX_HISTORY_ENTRIES", "9"))
    DEFAULT_SESSION_ID = "default"

    # Meetings
    MEETING_STATUSES = ["scheduled", "cancelled", "completed"]
    DEFAULT_STATUS = "scheduled"
    DEFAULT_QUERY_LIMIT = 50
    REQUIRE_ORGANIZER = _env_bool("REQUIRE_ORGANIZER", "true")

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("PORT", os.getenv("API_PORT", "3000")))
    API_VERSION = "2.0.0"

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None

    AGENT_SYSTEM_PROMPT = """You are a helpful calendar management AI agent. You can help users create, view, update, and delete meetings.

When users ask about their calendar:
- Parse dates and times from natural language (convert to ISO 8601 format in UTC)
- Understand relative times (e.g., "tomorrow at 2pm", "next Monday")
- Resolve references like "it" or "that meeting" using the earlier conversation
- Extract meeting details from conversational requests
- Use the provided functions to interact with the calendar system
- If a new meeting conflicts with existing ones, tell the user and ask whether to pick another time or create it anyway
- Only set "force" to true when the user has explicitly confirmed creating a conflicting meeting
- Always confirm the action taken and provide relevant details

Current date/time context: {current_time}"""

    SUMMARY_PROMPT = "You are a helpful calendar management AI agent. Provide a clear, friendly response about what action was taken."

    CONFIRMATION_HINT = (
        "This meeting overlaps existing meetings. Ask the user to choose a different "
        "time or to confirm that it should be created anyway."
    )

    MEDIATOR_PROMPT = (
        "You are an empathetic, expert conflict mediator. Read the user's conflict scenario. "
        "Provide a calm, objective analysis and 3 actionable steps to resolve the conflict "
        "using 'Non-Violent Communication' techniques."
    )

    def get_model_config(self, model_name: str = None) -> Dict[str, object]:
        """Get client configuration for the chat-completions endpoint"""
        return {
            "model": model_name or self.DEFAULT_MODEL,
            "api_key": self.OPENAI_API_KEY,
            "base_url": self.OPENAI_BASE_URL,
            "timeout": self.LLM_TIMEOUT,
            "max_retries": self.LLM_MAX_RETRIES,
            "temperature": self.TEMPERATURE,
        }

    @classmethod
    def validate(cls) -> List[str]:
        """Return a list of configuration problems for the selected backends"""
        problems = []
        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            problems.append("Missing OPENAI_API_KEY")
        if cls.LLM_PROVIDER not in ("openai", "mock"):
            problems.append(f"Unknown LLM_PROVIDER: {cls.LLM_PROVIDER}")
        if cls.STORE_BACKEND == "sql" and not cls.DATABASE_URL:
            problems.append("Missing DATABASE_URL")
        if cls.SESSION_BACKEND not in ("memory", "sql"):
            problems.append(f"Unknown SESSION_BACKEND: {cls.SESSION_BACKEND}")
        if cls.MAX_HISTORY_ENTRIES < 1:
            problems.append("MAX_HISTORY_ENTRIES must be positive")
        return problems
