"""Builtin tools."""
from .weather import WeatherTool
from .search import SearchTool
from .book_progress import BookProgressTool

__all__ = ["WeatherTool", "SearchTool", "BookProgressTool"]
