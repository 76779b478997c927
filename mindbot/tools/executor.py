"""Tool executor — dispatches a routed tool call under the ToolOutput contract."""
import functools
import logging
import time

from .. import telemetry
from ..context import update_context
from .registry import ToolInput, ToolOutput, ToolRegistry

logger = logging.getLogger(__name__)


def with_execution_logging(execute):
    """Decorate a Tool.execute method with timing/outcome logging.

    Any exception escaping the wrapped call is converted into a generic
    failure output, so the decorated method never raises.
    """
    @functools.wraps(execute)
    async def wrapper(self, tool_input: ToolInput) -> ToolOutput:
        t0 = time.monotonic()
        try:
            result = await execute(self, tool_input)
        except Exception as e:
            logger.error(f"Tool {self.name} raised: {e}", exc_info=True)
            result = ToolOutput.fail(f"The {self.name} tool failed unexpectedly. Please try again.")
        elapsed_ms = (time.monotonic() - t0) * 1000.0
        telemetry.log_tool_execution(self.name, elapsed_ms, result.success, result.error)
        return result

    return wrapper


async def execute_tool(registry: ToolRegistry, tool_name: str, tool_input: ToolInput) -> ToolOutput:
    """Execute a registered tool by name."""
    tool = registry.get(tool_name)
    if not tool:
        logger.warning(f"Unknown tool: {tool_name}")
        return ToolOutput.fail(f'Tool "{tool_name}" is not available.')

    update_context(tool_used=tool.name)
    arg_str = ", ".join(f"{k}={v!r}" for k, v in tool_input.parameters.items())
    logger.info(f"Executing tool: {tool.name}({arg_str})")

    try:
        result = await tool.execute(tool_input)
    except Exception as e:
        logger.error(f"Tool {tool.name} failed: {e}", exc_info=True)
        result = ToolOutput.fail(f"The {tool.name} tool failed unexpectedly. Please try again.")

    if not isinstance(result, ToolOutput):
        logger.error(f"Tool {tool.name} returned {type(result).__name__}, expected ToolOutput")
        result = ToolOutput.fail(f"The {tool.name} tool returned an invalid result.")
    return result
