"""Tests for config.py helpers."""
from mindbot.config import Settings, _sanitize_ascii, _split_ids


def test_split_ids():
    assert _split_ids("") == []
    assert _split_ids("203907755") == ["203907755"]
    assert _split_ids(" 1, 2 ,,3 ") == ["1", "2", "3"]


def test_sanitize_ascii():
    assert _sanitize_ascii(" sk-abc​ ") == "sk-abc"


def test_overrides():
    cfg = Settings(default_daily_limit=3, privileged_user_ids=["7"], weather_api_key="k")
    assert cfg.default_daily_limit == 3
    assert cfg.privileged_user_ids == ["7"]
