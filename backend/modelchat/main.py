"""
FastAPI backend for the model chat application.
Store and inference clients are built once in the lifespan and injected into the message service.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pythonjsonlogger import jsonlogger

from modelchat.api import chat, models
from modelchat.config import get_settings
from modelchat.db import open_store
from modelchat.services import MessageService, ResponseGenerator, build_gemini_model

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    """Configure root logger: JSON format to stderr, level from settings (e.g. LOG_LEVEL=INFO)."""
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(lineno)s  %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _log_routes(app: FastAPI) -> None:
    """Log all registered routes at startup."""
    logger.info("Registered routes:")
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            for method in sorted(route.methods - {"HEAD", "OPTIONS"}):
                logger.info(f"  {method} {route.path}")


def build_generator(settings) -> ResponseGenerator:
    llm = None
    if settings.google_ai_api_key:
        llm = build_gemini_model(
            settings.real_model_tag,
            settings.google_ai_api_key,
            settings.inference_timeout_seconds,
        )
        logger.info("Google AI initialized for %s", settings.real_model_tag)
    else:
        logger.warning("GOOGLE_AI_API_KEY not set - using simulated responses for all models")
    return ResponseGenerator(settings.real_model_tag, llm, settings.inference_timeout_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "message_service", None) is not None:
        # Injected by the caller; nothing to own
        yield
        return
    settings = get_settings()
    _setup_logging(settings.log_level)
    store = await open_store(settings)
    generator = build_generator(settings)
    logger.info(
        "Replies for %s: %s",
        generator.real_model_tag,
        "Gemini" if generator.has_real_backend else "simulated",
    )
    app.state.message_service = MessageService(store.catalog, store.conversations, generator)
    _log_routes(app)
    try:
        yield
    finally:
        app.state.message_service = None
        store.close()


def create_app(message_service: MessageService | None = None) -> FastAPI:
    app = FastAPI(
        title="Model Chat API",
        description="Chat with catalog models; conversations persisted in MongoDB",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.message_service = message_service

    app.include_router(models.router, prefix="/api/models", tags=["models"])
    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])

    @app.get("/health")
    async def health():
        """Health check for Docker/orchestration."""
        return {"status": "ok"}

    return app


app = create_app()
