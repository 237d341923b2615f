"""
LLM client for the Meeting Manager agent
"""
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from openai import OpenAI, OpenAIError

from config.settings import Config
from meeting_manager.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class IntentDecision:
    """What the model chose to do with a user turn"""
    name: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    call_id: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_tool_call(self) -> bool:
        return bool(self.name)

    def to_assistant_message(self) -> Dict[str, Any]:
        """The assistant message that carried this decision"""
        message: Dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.is_tool_call:
            message["tool_calls"] = [{
                "id": self.call_id,
                "type": "function",
                "function": {"name": self.name, "arguments": json.dumps(self.arguments)},
            }]
        return message

    def to_invocation(self) -> Optional[Dict[str, Any]]:
        """Tool invocation record for the session history"""
        if not self.is_tool_call:
            return None
        return {"id": self.call_id, "name": self.name, "arguments": self.arguments}


class LLMClient:
    """Chat-completions client with function calling.

    Requests are not retried; a failed call surfaces as ExternalServiceError
    and the caller resubmits.
    """

    def __init__(self, model_name: str = None, client: OpenAI = None, config: Config = None):
        self.config = config or Config()
        self.model_name = model_name or self.config.DEFAULT_MODEL
        self.model_config = self.config.get_model_config(self.model_name)

        self.client = client or OpenAI(
            api_key=self.model_config["api_key"] or "NULL",
            base_url=self.model_config["base_url"],
            timeout=self.model_config["timeout"],
            max_retries=self.model_config["max_retries"],
        )
        self.temperature = self.model_config["temperature"]

        self._total_requests = 0
        self._failed_requests = 0

        logger.info(f"Initialized LLM client: {self.model_name}")

    def _chat(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]] = None):
        """Send one chat-completions request and return the first message"""
        self._total_requests += 1
        request = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        try:
            start_time = time.time()
            response = self.client.chat.completions.create(**request)
            logger.info(f"LLM response ({self.model_name}): {time.time() - start_time:.2f}s")
        except OpenAIError as e:
            self._failed_requests += 1
            logger.error(f"LLM request failed: {e}")
            raise ExternalServiceError(f"Language model request failed: {e}") from e

        if not response.choices:
            self._failed_requests += 1
            raise ExternalServiceError("Language model returned no choices")
        return response.choices[0].message

    def choose_operation(self, system_prompt: str, messages: List[Dict[str, Any]],
                         tools: List[Dict[str, Any]]) -> IntentDecision:
        """Ask the model which calendar operation (if any) answers the conversation"""
        message = self._chat([{"role": "system", "content": system_prompt}, *messages], tools)

        tool_calls = message.tool_calls or []
        if not tool_calls:
            return IntentDecision(text=message.content)

        if len(tool_calls) > 1:
            logger.warning(f"Model requested {len(tool_calls)} tool calls, using the first")

        call = tool_calls[0]
        try:
            arguments = json.loads(call.function.arguments or "{}")
        except json.JSONDecodeError as e:
            raise ExternalServiceError("Language model returned malformed tool arguments") from e
        if not isinstance(arguments, dict):
            raise ExternalServiceError("Language model returned malformed tool arguments")

        return IntentDecision(
            name=call.function.name,
            arguments=arguments,
            call_id=call.id,
            text=message.content,
        )

    def summarize_result(self, query: str, decision: IntentDecision,
                         result: Dict[str, Any]) -> str:
        """Turn a tool result into a reply for the user"""
        messages = [
            {"role": "system", "content": self.config.SUMMARY_PROMPT},
            {"role": "user", "content": query},
            decision.to_assistant_message(),
            {"role": "tool", "tool_call_id": decision.call_id,
             "content": json.dumps(result, default=str)},
        ]
        message = self._chat(messages)
        return (message.content or "").strip()

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Plain system + user completion"""
        message = self._chat([
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ])
        content = (message.content or "").strip()
        if not content:
            raise ExternalServiceError("Language model returned an empty response")
        return content

    def health_check(self) -> bool:
        """Check the endpoint answers and lists the configured model"""
        try:
            models = [model.id for model in self.client.models.list()]
        except OpenAIError as e:
            logger.error(f"LLM health check failed: {e}")
            return False
        if self.model_name not in models:
            logger.warning(f"Model {self.model_name} not listed by the endpoint")
        return True

    def get_stats(self) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "total_requests": self._total_requests,
            "failed_requests": self._failed_requests,
        }
