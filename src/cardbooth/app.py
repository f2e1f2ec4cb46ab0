"""FastAPI application factory for cardbooth."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cardbooth.api import events as event_routes
from cardbooth.api import frontend as frontend_routes
from cardbooth.api import routes as api_routes
from cardbooth.config import load_config, settings
from cardbooth.errors import CardboothError, ErrorCode
from cardbooth.generator import ContentGenerator, OllamaClient
from cardbooth.notifications import QueueNotifier
from cardbooth.queue import PrintQueue
from cardbooth.rendering import CardRenderer
from cardbooth.sessions import InputSessionStore
from cardbooth.sweeper import Sweeper

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


async def handle_cardbooth_error(request: Request, exc: CardboothError) -> JSONResponse:
    """Render core errors as the stable error envelope."""
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are reported as INVALID_INPUT without pydantic internals."""
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=_error_body(ErrorCode.INVALID_INPUT, "Invalid request body"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Loading configuration from {settings.config_file}")
    config = load_config(settings.config_file)

    notifier = QueueNotifier()
    queue = PrintQueue(
        job_ttl_seconds=settings.print_job_ttl_seconds,
        claim_ttl_seconds=settings.print_claim_ttl_seconds,
        notifier=notifier,
    )
    sessions = InputSessionStore(ttl_seconds=settings.input_session_ttl_seconds)
    backend = OllamaClient(
        base_url=settings.ollama_url,
        model=settings.ollama_model,
        timeout_seconds=settings.ollama_timeout_seconds,
        health_timeout_seconds=settings.ollama_health_timeout_seconds,
    )
    generator = ContentGenerator(backend, language=config.output_language)
    renderer = CardRenderer(
        width=config.card_width_px,
        height=config.card_height_px,
        font_path=config.font_path,
        bold_font_path=config.bold_font_path,
    )
    sweeper = Sweeper(queue, sessions, interval_seconds=settings.sweep_interval_seconds)

    # Set state for routes
    api_routes.set_app_state(
        queue,
        sessions,
        generator,
        renderer,
        backend=backend,
        public_base_url=config.public_base_url,
    )
    event_routes.set_app_state(queue)
    frontend_routes.set_app_state(config.static_dir)

    await sweeper.start()
    logger.info(f"cardbooth startup complete (model {settings.ollama_model} at {settings.ollama_url})")

    yield

    # Shutdown
    logger.info("cardbooth shutting down")
    await sweeper.stop()
    await backend.close()
    logger.info("cardbooth shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="cardbooth",
        description="Kiosk broker for AI-generated cards and their print queue",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(CardboothError, handle_cardbooth_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    app.include_router(api_routes.router)
    app.include_router(event_routes.router)
    # Catch-all front-end router goes last
    app.include_router(frontend_routes.router)

    return app


# Default app instance for uvicorn
app = create_app()
