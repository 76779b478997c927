"""Tests for formatter.py."""
import pytest

from mindbot.formatter import ResponseFormatter, fallback_text

DATA = {"temperature": 18, "description": "light rain", "location": "Paris"}


class TestResponseFormatter:
    @pytest.mark.asyncio
    async def test_success(self, llm, openai_client, completion):
        openai_client.chat.completions.create.return_value = completion("It's 18°C with light rain in Paris.")

        reply = await ResponseFormatter(llm).format("weather in Paris", "weather", DATA)

        assert reply == "It's 18°C with light rain in Paris."
        prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
        assert 'The user asked: "weather in Paris"' in prompt
        assert "We used the weather tool" in prompt
        assert '"description": "light rain"' in prompt

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back(self, llm, openai_client):
        openai_client.chat.completions.create.side_effect = RuntimeError("503")

        reply = await ResponseFormatter(llm).format("weather in Paris", "weather", DATA)

        assert reply.startswith("Here's what I found using the weather tool:\n")
        assert '"location": "Paris"' in reply

    @pytest.mark.asyncio
    async def test_empty_reply_falls_back(self, llm, openai_client, completion):
        openai_client.chat.completions.create.return_value = completion("")
        reply = await ResponseFormatter(llm).format("q", "search", {"results": []})
        assert reply == fallback_text("search", {"results": []})

    def test_fallback_keeps_unicode(self):
        assert "Zürich" in fallback_text("weather", {"location": "Zürich"})

    @pytest.mark.asyncio
    async def test_data_with_placeholder_text_is_kept_verbatim(self, llm, openai_client, completion):
        openai_client.chat.completions.create.return_value = completion("ok")
        data = {"snippet": "literal {query} token", "title": "{tool_name} and {data}"}

        await ResponseFormatter(llm).format("USERQ", "search", data)

        prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
        assert '"snippet": "literal {query} token"' in prompt
        assert '"title": "{tool_name} and {data}"' in prompt
        assert prompt.count("USERQ") == 1
