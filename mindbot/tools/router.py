"""LLM tool router — decides whether a message needs a tool, and which one.

``route`` never raises: model failures, malformed output and references to
unregistered tools all turn into a direct-response decision.
"""
import logging

from .. import telemetry
from ..context import update_context
from ..errors import LLMError, RoutingParseError
from ..llm import LLMClient, RoutingDecision
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "I'll help you with your question."


class ToolRouter:
    def __init__(self, llm: LLMClient, registry: ToolRegistry):
        self.llm = llm
        self.registry = registry

    async def route(self, text: str) -> RoutingDecision:
        decision = await self._analyze(text)

        if decision.should_use_tool:
            tool = self.registry.get(decision.tool_name)
            if tool is None:
                logger.warning(f"Router chose unknown tool {decision.tool_name!r}")
                decision = RoutingDecision(
                    should_use_tool=False,
                    response=f'Tool "{decision.tool_name}" not found. Let me help you directly.',
                )
            else:
                # Canonical casing from the registry
                decision.tool_name = tool.name
                update_context(tool_used=tool.name)

        telemetry.log_routing_decision(decision.should_use_tool, decision.tool_name)
        return decision

    async def _analyze(self, text: str) -> RoutingDecision:
        try:
            return await self.llm.analyze_for_tool_use(text, self.registry.descriptions_for_llm())
        except RoutingParseError as e:
            logger.warning(f"Routing output unusable, answering directly: {e}")
        except LLMError as e:
            logger.warning(f"Routing call failed, answering directly: {e}")
        except Exception as e:
            logger.error(f"Unexpected routing failure: {e}", exc_info=True)
        return RoutingDecision(should_use_tool=False, response=FALLBACK_RESPONSE)
