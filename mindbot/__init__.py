"""MindBot — rate-limited, LLM-routed chat assistant with external data tools."""

__version__ = "0.1.0"
