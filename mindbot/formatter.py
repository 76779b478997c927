"""Response formatter — turns raw tool data into a conversational reply."""
import json
import logging
from typing import Any

from . import telemetry
from .llm import LLMClient

logger = logging.getLogger(__name__)

FORMAT_PROMPT = """You are a helpful assistant. The user asked: "{query}"

We used the {tool_name} tool to gather information. Here's what we found:
{data}

Please provide a natural, conversational response that incorporates this information to answer the user's question. Be concise and helpful."""


def render_data(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def fallback_text(tool_name: str, data: Any) -> str:
    return f"Here's what I found using the {tool_name} tool:\n{render_data(data)}"


class ResponseFormatter:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def format(self, original_query: str, tool_name: str, data: Any) -> str:
        """Never raises; falls back to the raw data when the model call fails."""
        prompt = FORMAT_PROMPT.format(query=original_query, tool_name=tool_name, data=render_data(data))
        try:
            reply = await self.llm.complete(prompt)
        except Exception as e:
            logger.warning(f"Formatting via LLM failed, using raw data: {e}")
            reply = ""

        if not reply:
            telemetry.log_formatting(tool_name, fallback=True)
            return fallback_text(tool_name, data)
        telemetry.log_formatting(tool_name, fallback=False)
        return reply
