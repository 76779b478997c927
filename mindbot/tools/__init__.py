"""Tool system — registry, router, executor."""
from .registry import Tool, ToolDescriptor, ToolInput, ToolOutput, ToolParam, ToolRegistry
from .router import ToolRouter
from .executor import execute_tool, with_execution_logging
from .builtin import BookProgressTool, SearchTool, WeatherTool


def build_default_registry(settings) -> ToolRegistry:
    """Registry with the builtin tools, configured from ``settings``."""
    registry = ToolRegistry()
    registry.register(WeatherTool(api_key=settings.weather_api_key, timeout=settings.tool_http_timeout_s))
    registry.register(SearchTool(
        api_key=settings.search_api_key,
        engine_id=settings.search_engine_id,
        timeout=settings.tool_http_timeout_s,
    ))
    registry.register(BookProgressTool(url=settings.book_progress_url, timeout=settings.tool_http_timeout_s))
    return registry


__all__ = [
    "Tool", "ToolDescriptor", "ToolInput", "ToolOutput", "ToolParam", "ToolRegistry",
    "ToolRouter", "execute_tool", "with_execution_logging", "build_default_registry",
    "WeatherTool", "SearchTool", "BookProgressTool",
]
