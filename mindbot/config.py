from pydantic import BaseModel
import os
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode('ascii', errors='ignore').decode('ascii').strip()


def _split_ids(val: str) -> List[str]:
    return [part.strip() for part in val.split(",") if part.strip()]


class Settings(BaseModel):
    # HTTP entry point
    http_host: str = os.getenv("MINDBOT_HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("MINDBOT_HTTP_PORT", "8000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # OpenAI chat model (routing + response formatting)
    openai_api_key: str = _sanitize_ascii(os.getenv("OPENAI_API_KEY", ""))
    openai_base_url: str = _sanitize_ascii(os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    openai_chat_model: str = _sanitize_ascii(os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"))
    llm_temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    llm_max_tokens: int = int(os.getenv("LLM_MAX_TOKENS", "1000"))
    llm_timeout_s: float = float(os.getenv("LLM_TIMEOUT", "30"))

    # Rate limiting. SQLite only (sqlite+aiosqlite:///...)
    database_url: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'mindbot.db'}",
    )
    default_daily_limit: int = int(os.getenv("DEFAULT_DAILY_MESSAGE_LIMIT", "10"))
    # User ids exempt from the daily quota, comma separated. Empty disables the bypass.
    privileged_user_ids: List[str] = _split_ids(os.getenv("PRIVILEGED_USER_IDS", ""))

    # Tools
    tool_http_timeout_s: float = float(os.getenv("TOOL_HTTP_TIMEOUT", "10"))
    weather_api_key: str = _sanitize_ascii(os.getenv("WEATHER_API_KEY", ""))
    search_api_key: str = _sanitize_ascii(os.getenv("SEARCH_API_KEY", ""))
    search_engine_id: str = _sanitize_ascii(os.getenv("SEARCH_ENGINE_ID", ""))
    book_progress_url: str = os.getenv("BOOK_PROGRESS_URL", "https://www.jim-butcher.com/")


settings = Settings()

# Log config for debugging
_oai_key = '***' + settings.openai_api_key[-4:] if len(settings.openai_api_key) > 4 else 'EMPTY'
logger.info(f"Config: LLM → {settings.openai_base_url}, model={settings.openai_chat_model} (key={_oai_key})")
logger.info(f"Config: daily limit={settings.default_daily_limit}, db={settings.database_url}")
if settings.privileged_user_ids:
    logger.warning(f"Config: quota bypass enabled for user ids {settings.privileged_user_ids}")
