"""HTTP entry point: hands incoming messages to the MessagePipeline."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from .config import Settings, settings
from .context import generate_request_id
from .database import create_engine_and_factory, init_db
from .llm import LLMClient
from .pipeline import MessagePipeline
from .rate_limiter import RateLimiter
from .storage import RateLimitStore
from .tools import build_default_registry

logger = logging.getLogger(__name__)


class MessageIn(BaseModel):
    user_id: str
    text: str
    message_type: str = "text"


class MessageOut(BaseModel):
    reply: str
    request_id: Optional[str] = None


def build_pipeline(cfg: Settings, store: RateLimitStore) -> MessagePipeline:
    """Wire the services for one process."""
    llm = LLMClient(
        api_key=cfg.openai_api_key,
        base_url=cfg.openai_base_url,
        model=cfg.openai_chat_model,
        temperature=cfg.llm_temperature,
        max_tokens=cfg.llm_max_tokens,
        timeout=cfg.llm_timeout_s,
    )
    limiter = RateLimiter(
        store,
        default_daily_limit=cfg.default_daily_limit,
        privileged_user_ids=cfg.privileged_user_ids,
    )
    return MessagePipeline(limiter, build_default_registry(cfg), llm)


def create_app(pipeline: Optional[MessagePipeline] = None, cfg: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if pipeline is not None:
            app.state.pipeline = pipeline
            yield
            return
        engine, session_factory = create_engine_and_factory(cfg.database_url)
        await init_db(engine)
        app.state.pipeline = build_pipeline(cfg, RateLimitStore(session_factory))
        logger.info("MindBot pipeline ready")
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(title="MindBot", lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.post("/api/messages", response_model=MessageOut)
    async def post_message(msg: MessageIn, request: Request):
        if not msg.text.strip():
            raise HTTPException(status_code=400, detail="text must not be empty")
        request_id = generate_request_id()
        reply = await request.app.state.pipeline.handle(
            msg.text, msg.user_id, message_type=msg.message_type, request_id=request_id,
        )
        return MessageOut(reply=reply, request_id=request_id)

    return app


app = create_app()
