"""LLM client — chat completions and tool-routing analysis via OpenAI."""
import json
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from openai import AsyncOpenAI

from . import telemetry
from .errors import LLMError, RoutingParseError

logger = logging.getLogger(__name__)

ROUTING_PROMPT = """You are a tool router for a chat bot. Analyze the user's message and decide whether one of the available tools is needed to answer it.
Today's date: {current_date}

Available tools:
{tool_list}

Rules:
- Use at most one tool. If no tool fits, answer the user directly in "response".
- Only use parameter names listed for the chosen tool. Omit optional parameters you don't need.
- Resolve relative dates ("tomorrow", "on Friday", "next Monday") to absolute YYYY-MM-DD dates using today's date.

Respond with a single JSON object and nothing else:
{
  "shouldUseTool": true or false,
  "toolName": "tool name if a tool is needed, otherwise null",
  "toolParameters": { ... },
  "response": "direct answer if no tool is needed, otherwise null"
}

Examples:
- "weather in Paris" → {"shouldUseTool": true, "toolName": "weather", "toolParameters": {"location": "Paris", "units": "metric"}, "response": null}
- "hello!" → {"shouldUseTool": false, "toolName": null, "toolParameters": {}, "response": "Hi! How can I help you today?"}"""

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass
class RoutingDecision:
    should_use_tool: bool
    tool_name: Optional[str] = None
    tool_parameters: Dict[str, Any] = field(default_factory=dict)
    response: Optional[str] = None


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if present."""
    text = raw.strip()
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


def parse_routing_decision(raw: str) -> RoutingDecision:
    try:
        payload = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise RoutingParseError(f"Routing output is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise RoutingParseError("Routing output is not a JSON object")
    should_use_tool = payload.get("shouldUseTool")
    if not isinstance(should_use_tool, bool):
        raise RoutingParseError("Routing output has no boolean shouldUseTool")

    response = payload.get("response")
    if response is not None and not isinstance(response, str):
        response = str(response)

    if not should_use_tool:
        return RoutingDecision(should_use_tool=False, response=response or None)

    tool_name = payload.get("toolName")
    if not isinstance(tool_name, str) or not tool_name.strip():
        raise RoutingParseError("Routing output requests a tool without toolName")
    tool_parameters = payload.get("toolParameters") or {}
    if not isinstance(tool_parameters, dict):
        raise RoutingParseError("toolParameters must be a JSON object")

    return RoutingDecision(
        should_use_tool=True,
        tool_name=tool_name.strip(),
        tool_parameters=tool_parameters,
        response=response or None,
    )


def _as_int(value: Any) -> int:
    return value if isinstance(value, int) else 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LLMClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._clock = clock
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # No retries: a failed call surfaces immediately as a fallback reply.
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, json_mode: bool = False) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        t0 = time.monotonic()
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                **kwargs,
            )
        except Exception as e:
            logger.error(f"OpenAI call failed: {type(e).__name__}: {e}")
            raise LLMError("Failed to get LLM response") from e

        usage = getattr(response, "usage", None)
        telemetry.log_llm_call(
            self.model,
            _as_int(getattr(usage, "prompt_tokens", 0)),
            _as_int(getattr(usage, "completion_tokens", 0)),
            (time.monotonic() - t0) * 1000.0,
        )

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    def routing_prompt(self, tool_list: str) -> str:
        now = self._clock()
        current_date = now.strftime("%Y-%m-%d (%A)")
        return ROUTING_PROMPT.replace("{current_date}", current_date).replace("{tool_list}", tool_list)

    async def analyze_for_tool_use(self, message: str, tool_list: str) -> RoutingDecision:
        """Ask the model whether ``message`` needs a tool.

        Raises LLMError if the call fails and RoutingParseError if the
        answer is not a valid routing document.
        """
        raw = await self.complete(message, system_prompt=self.routing_prompt(tool_list), json_mode=True)
        logger.debug(f"Routing raw: {raw[:200]}")
        return parse_routing_decision(raw)
