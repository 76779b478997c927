"""Message pipeline: rate check → tool routing → tool execution → response formatting.

``MessagePipeline.handle`` is the single entry point used by transports. It
always returns reply text; every failure along the way ends in a message for
the user rather than an exception.
"""
import logging
from typing import Optional

from . import telemetry
from .context import request_duration_ms, request_scope
from .formatter import ResponseFormatter
from .llm import LLMClient
from .rate_limiter import RateLimiter
from .tools import ToolInput, ToolRegistry, ToolRouter, execute_tool

logger = logging.getLogger(__name__)

QUOTA_EXCEEDED_REPLY = "Daily message limit reached. Please try again tomorrow."
NO_RESPONSE_REPLY = "I couldn't process your request."
ERROR_REPLY = "Sorry, an error occurred while processing your message."


class MessagePipeline:
    def __init__(
        self,
        rate_limiter: RateLimiter,
        registry: ToolRegistry,
        llm: LLMClient,
        router: Optional[ToolRouter] = None,
        formatter: Optional[ResponseFormatter] = None,
    ):
        self.rate_limiter = rate_limiter
        self.registry = registry
        self.router = router or ToolRouter(llm, registry)
        self.formatter = formatter or ResponseFormatter(llm)

    async def handle(self, text: str, user_id: str, message_type: str = "text",
                     request_id: Optional[str] = None) -> str:
        """Process one incoming message and return the reply text."""
        with request_scope(user_id=str(user_id), message_type=message_type, request_id=request_id) as ctx:
            try:
                reply = await self._process(text, str(user_id), message_type)
            except Exception as e:
                logger.error(f"Message handling failed: {e}", exc_info=True)
                reply = ERROR_REPLY
            logger.info(f"Request {ctx.request_id} done in {request_duration_ms():.0f}ms (tool={ctx.tool_used})")
            return reply

    async def _process(self, text: str, user_id: str, message_type: str) -> str:
        telemetry.log_user_message(message_type, len(text))

        if not await self.rate_limiter.check_and_increment(user_id):
            logger.info(f"Quota exhausted for {user_id}")
            return QUOTA_EXCEEDED_REPLY

        decision = await self.router.route(text)
        if not decision.should_use_tool:
            return decision.response or NO_RESPONSE_REPLY

        result = await execute_tool(
            self.registry,
            decision.tool_name,
            ToolInput(query=text, parameters=decision.tool_parameters),
        )
        if not result.success:
            return f"Error using tool: {result.error}"

        return await self.formatter.format(text, decision.tool_name, result.data)
