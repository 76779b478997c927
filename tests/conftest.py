"""Shared fixtures: temp-file SQLite store, controllable clock, mocked OpenAI client."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mindbot.database import create_engine_and_factory, init_db
from mindbot.llm import LLMClient
from mindbot.storage import RateLimitStore

NOW = datetime(2026, 3, 14, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def store(tmp_path):
    engine, factory = create_engine_and_factory(f"sqlite+aiosqlite:///{tmp_path / 'rate_limits.db'}")
    await init_db(engine)
    yield RateLimitStore(factory)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock(NOW)


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 12
    response.usage.completion_tokens = 7
    return response


@pytest.fixture
def completion():
    """Factory for fake chat.completions.create responses."""
    return _completion


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def llm(openai_client, clock):
    client = LLMClient(api_key="sk-test", model="gpt-4o-mini", clock=clock)
    client._client = openai_client
    return client
