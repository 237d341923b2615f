# File: tests/unit/test_llm_client.py
"""
Unit tests for the LLM client, using a stubbed OpenAI client.
"""

import json
import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock

from openai import OpenAIError

from config.settings import Config
from meeting_manager.ai_agent.calendar_agent import create_llm_client
from meeting_manager.ai_agent.llm_client import IntentDecision, LLMClient
from meeting_manager.ai_agent.mock_llm_client import MockLLMClient
from meeting_manager.errors import ExternalServiceError

pytestmark = pytest.mark.unit


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(name, arguments, call_id="call_1"):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def openai_client():
    return MagicMock()


@pytest.fixture
def llm(openai_client):
    return LLMClient(model_name="gpt-4o-mini", client=openai_client)


class TestChooseOperation:
    """Test intent decisions from chat completions."""

    def test_plain_text_reply(self, llm, openai_client):
        openai_client.chat.completions.create.return_value = completion(content="Hello!")

        decision = llm.choose_operation("system", [{"role": "user", "content": "hi"}], tools=[])

        assert decision.is_tool_call is False
        assert decision.text == "Hello!"

    def test_tool_call(self, llm, openai_client):
        openai_client.chat.completions.create.return_value = completion(
            tool_calls=[tool_call("delete_meeting", json.dumps({"meetingId": "abc"}))]
        )

        decision = llm.choose_operation("system", [{"role": "user", "content": "delete abc"}],
                                        tools=[{"type": "function"}])

        assert decision == IntentDecision(name="delete_meeting", arguments={"meetingId": "abc"},
                                          call_id="call_1", text=None)
        request = openai_client.chat.completions.create.call_args.kwargs
        assert request["model"] == "gpt-4o-mini"
        assert request["tool_choice"] == "auto"
        assert request["messages"][0] == {"role": "system", "content": "system"}

    def test_malformed_arguments(self, llm, openai_client):
        openai_client.chat.completions.create.return_value = completion(
            tool_calls=[tool_call("create_meeting", "{not json")]
        )
        with pytest.raises(ExternalServiceError):
            llm.choose_operation("system", [], tools=[])

    def test_api_failure_raises_external_service_error(self, llm, openai_client):
        openai_client.chat.completions.create.side_effect = OpenAIError("connection refused")

        with pytest.raises(ExternalServiceError):
            llm.choose_operation("system", [], tools=[])
        assert llm.get_stats()["failed_requests"] == 1


class TestInjectedConfig:
    """Per-instance config reaches the client."""

    def test_overrides_are_used(self, openai_client):
        cfg = Config()
        cfg.DEFAULT_MODEL = "local-model"
        cfg.TEMPERATURE = 0.7
        cfg.LLM_TIMEOUT = 5.0
        openai_client.chat.completions.create.return_value = completion(content="ok")

        llm = LLMClient(client=openai_client, config=cfg)
        llm.complete("system", "user")

        assert llm.model_config["timeout"] == 5.0
        request = openai_client.chat.completions.create.call_args.kwargs
        assert request["model"] == "local-model"
        assert request["temperature"] == 0.7

    def test_factory_passes_config(self):
        cfg = Config()
        cfg.LLM_PROVIDER = "openai"
        cfg.OPENAI_API_KEY = "sk-test"
        cfg.OPENAI_BASE_URL = "http://localhost:8000/v1"
        cfg.LLM_TIMEOUT = 12.0

        llm = create_llm_client(cfg)

        assert isinstance(llm, LLMClient)
        assert llm.config is cfg
        assert llm.model_config["base_url"] == "http://localhost:8000/v1"
        assert llm.model_config["timeout"] == 12.0


class TestSummarizeAndComplete:

    def test_summarize_sends_tool_result(self, llm, openai_client):
        openai_client.chat.completions.create.return_value = completion(content=" Done! ")
        decision = IntentDecision(name="get_meetings", arguments={}, call_id="call_7")

        reply = llm.summarize_result("list", decision, {"success": True, "count": 0})

        assert reply == "Done!"
        messages = openai_client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[2]["tool_calls"][0]["id"] == "call_7"
        assert messages[3] == {"role": "tool", "tool_call_id": "call_7",
                               "content": json.dumps({"success": True, "count": 0})}

    def test_complete_rejects_empty_reply(self, llm, openai_client):
        openai_client.chat.completions.create.return_value = completion(content="")
        with pytest.raises(ExternalServiceError):
            llm.complete("system", "user")


class TestMockLLMClient:
    """Test the offline client's scripted and keyword behaviour."""

    def test_scripted_decisions_first(self):
        mock = MockLLMClient()
        mock.queue_decision("get_meetings", {})

        decision = mock.choose_operation("system", [{"role": "user", "content": "hello"}], [])

        assert decision.name == "get_meetings"
        assert decision.call_id

    def test_keyword_create(self):
        mock = MockLLMClient()
        query = 'Schedule "Sync" from 2025-12-05T09:00:00Z to 2025-12-05T10:00:00Z with alice@example.com'

        decision = mock.choose_operation("system", [{"role": "user", "content": query}], [])

        assert decision.name == "create_meeting"
        assert decision.arguments["title"] == "Sync"
        assert decision.arguments["organizer"] == "alice@example.com"
        assert decision.arguments["endTime"] == "2025-12-05T10:00:00Z"

    def test_keyword_fallback_is_text(self):
        decision = MockLLMClient().choose_operation("system", [{"role": "user", "content": "hello"}], [])
        assert decision.is_tool_call is False

    def test_fail_next(self):
        mock = MockLLMClient()
        mock.fail_next = True
        with pytest.raises(ExternalServiceError):
            mock.complete("system", "user")
        assert mock.complete("system", "user")
