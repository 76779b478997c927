"""Tests for tools/registry.py — lookup, catalogue rendering, parameter validation."""
import pytest

from mindbot.errors import ToolValidationError
from mindbot.tools import build_default_registry
from mindbot.config import Settings
from mindbot.tools.registry import Tool, ToolInput, ToolOutput, ToolParam, ToolRegistry


class EchoTool(Tool):
    name = "Echo"
    description = "Echo the query back"
    params = (
        ToolParam("text"),
        ToolParam("mode", required=False, default="plain", enum=("plain", "loud")),
        ToolParam("times", type="integer", required=False, default=1),
    )

    async def execute(self, tool_input: ToolInput) -> ToolOutput:
        return ToolOutput.ok({"query": tool_input.query})


class OtherEcho(Tool):
    name = "echo"
    description = "Duplicate under different case"


class TestRegistry:
    def test_register_and_get_case_insensitive(self):
        registry = ToolRegistry()
        tool = EchoTool()
        registry.register(tool)
        assert registry.get("echo") is tool
        assert registry.get("ECHO") is tool
        assert registry.get("missing") is None
        assert registry.get("") is None

    def test_duplicate_name_rejected(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        with pytest.raises(ValueError):
            registry.register(OtherEcho())

    def test_all(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        assert [t.name for t in registry.all()] == ["Echo"]

    def test_describe_all(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        (desc,) = registry.describe_all()
        assert desc.name == "Echo"
        assert desc.description == "Echo the query back"
        assert desc.parameters == {
            "text": "string",
            "mode": "optional enum[plain, loud]",
            "times": "optional integer",
        }

    def test_descriptions_for_llm(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        text = registry.descriptions_for_llm()
        assert text.startswith("- Echo: Echo the query back")
        assert "mode: optional enum[plain, loud]" in text

    def test_tool_without_params(self):
        registry = ToolRegistry()
        registry.register(OtherEcho())
        assert "params: none" in registry.descriptions_for_llm()

    def test_default_registry(self):
        registry = build_default_registry(Settings())
        names = sorted(t.name for t in registry.all())
        assert names == ["book_progress", "search", "weather"]
        weather = {d.name: d for d in registry.describe_all()}["weather"]
        assert weather.parameters == {
            "location": "string",
            "units": "optional enum[metric, imperial]",
            "date": "optional string",
        }


class TestValidateParameters:
    def test_defaults_applied(self):
        assert EchoTool().validate_parameters({"text": "hi"}) == {"text": "hi", "mode": "plain", "times": 1}

    def test_none_parameters(self):
        with pytest.raises(ToolValidationError, match="Missing required parameter: text"):
            EchoTool().validate_parameters(None)

    def test_bad_enum(self):
        with pytest.raises(ToolValidationError, match="must be one of"):
            EchoTool().validate_parameters({"text": "hi", "mode": "whisper"})

    def test_wrong_type(self):
        with pytest.raises(ToolValidationError, match="integer"):
            EchoTool().validate_parameters({"text": "hi", "times": "3"})

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ToolValidationError):
            EchoTool().validate_parameters({"text": "hi", "times": True})

    def test_unknown_parameters_ignored(self):
        cleaned = EchoTool().validate_parameters({"text": "hi", "colour": "red"})
        assert "colour" not in cleaned


class TestToolOutput:
    def test_ok(self):
        out = ToolOutput.ok({"a": 1})
        assert out.success is True
        assert out.data == {"a": 1}
        assert out.error is None

    def test_fail(self):
        out = ToolOutput.fail("boom")
        assert out.success is False
        assert out.data is None
        assert out.error == "boom"
