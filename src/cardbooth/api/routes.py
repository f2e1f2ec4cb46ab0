"""REST API routes for cardbooth."""

import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cardbooth.errors import (
    AlreadyUsedError,
    CardboothError,
    GenerationError,
    InvalidInputError,
    NotFoundError,
    PrintQueueError,
    ServiceUnavailableError,
)
from cardbooth.models.card import GeneratedCardRecord, Question
from cardbooth.rendering import RenderError, render_qr_png

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

# These will be set by the app during startup
_app_state: dict[str, Any] = {}


def set_app_state(
    queue: Any,
    sessions: Any,
    generator: Any,
    renderer: Any,
    backend: Any = None,
    public_base_url: str | None = None,
) -> None:
    """Set application state references for the routes."""
    _app_state["queue"] = queue
    _app_state["sessions"] = sessions
    _app_state["generator"] = generator
    _app_state["renderer"] = renderer
    _app_state["backend"] = backend
    _app_state["public_base_url"] = public_base_url


def _require(name: str) -> Any:
    component = _app_state.get(name)
    if component is None:
        logger.error(f"{name} not initialized")
        raise ServiceUnavailableError()
    return component


# Request and response models


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the kiosk front-end."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BackendHealth(BaseModel):
    ok: bool


class HealthResponse(BaseModel):
    ok: bool = True
    ollama: BackendHealth


class SessionCreatedResponse(CamelModel):
    token: str
    expires_at: int  # epoch milliseconds


class QuestionSetResponse(CamelModel):
    session_id: str
    questions: list[Question]


class SessionStatusResponse(BaseModel):
    status: str
    keywords: list[str] | None = None


class OkResponse(BaseModel):
    ok: bool = True


class AnswersRequest(BaseModel):
    name: Any = None
    answers: Any = None


class GenerateRequest(BaseModel):
    keywords: Any = None


class GenerateResponse(CamelModel):
    card_id: str
    card_data: GeneratedCardRecord
    card_image_base64: str


class PrintRequest(BaseModel):
    image: Any = None
    meta: Any = None


class PrintQueuedResponse(CamelModel):
    job_id: str


class PrintJobResponse(CamelModel):
    job_id: str
    image_base64: str
    meta: dict[str, Any]


class PrintDoneRequest(BaseModel):
    status: Any = None
    message: Any = None


# Endpoints


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report service liveness and whether the model backend is reachable."""
    backend = _app_state.get("backend")
    backend_ok = await backend.is_healthy() if backend else False
    return HealthResponse(ollama=BackendHealth(ok=backend_ok))


@router.post("/input/session", response_model=SessionCreatedResponse)
async def create_input_session() -> SessionCreatedResponse:
    """Generate questions and open a single-use answer session for them."""
    generator = _require("generator")
    sessions = _require("sessions")
    try:
        question_set = await generator.generate_questions()
    except GenerationError as e:
        logger.error(f"/api/input/session failed: {e.__cause__}")
        raise GenerationError("Failed to generate questions") from e

    token, expires_at = sessions.create(question_set)
    return SessionCreatedResponse(token=token, expires_at=int(expires_at.timestamp() * 1000))


@router.get("/input/session/{token}", response_model=QuestionSetResponse)
async def get_input_session(token: str) -> QuestionSetResponse:
    """Fetch the questions for an unanswered session."""
    session = _require("sessions").get(token)
    if session is None:
        raise NotFoundError("Session not found")
    if session.is_answered:
        raise AlreadyUsedError()
    return QuestionSetResponse(session_id=session.session_id, questions=session.questions)


@router.get("/input/session/{token}/status", response_model=SessionStatusResponse, response_model_exclude_none=True)
async def get_input_session_status(token: str) -> SessionStatusResponse:
    """Poll whether a session has been answered yet."""
    session = _require("sessions").get(token)
    if session is None:
        raise NotFoundError("Session not found")
    if session.is_answered:
        return SessionStatusResponse(status="answered", keywords=session.keywords or [])
    return SessionStatusResponse(status="pending")


@router.post("/input/session/{token}/answers", response_model=OkResponse)
async def submit_input_answers(token: str, request: AnswersRequest | None = None) -> OkResponse:
    """Submit the one allowed set of answers for a session."""
    request = request or AnswersRequest()
    _require("sessions").submit_answers(token, request.name, request.answers)
    return OkResponse()


@router.get(
    "/input/session/{token}/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}, "description": "QR code linking to the answer form"}},
)
async def get_input_session_qr(token: str, request: Request) -> Response:
    """Render a QR code that opens the answer form for a session."""
    if _require("sessions").get(token) is None:
        raise NotFoundError("Session not found")
    base_url = _app_state.get("public_base_url") or str(request.base_url)
    answer_url = f"{base_url.rstrip('/')}/answer/{token}"
    return Response(content=render_qr_png(answer_url), media_type="image/png")


@router.post("/generate", response_model=GenerateResponse)
async def generate_card(request: GenerateRequest) -> GenerateResponse:
    """Generate card data from keywords and render the card image."""
    keywords: list[str] = []
    if isinstance(request.keywords, list):
        keywords = [str(k).strip() for k in request.keywords if k is not None]
        keywords = [k for k in keywords if k]
    if not keywords:
        raise InvalidInputError("keywords required")

    generator = _require("generator")
    renderer = _require("renderer")
    try:
        card = await generator.generate_card(keywords)
        image_base64 = renderer.render_base64(card)
    except GenerationError as e:
        logger.error(f"/api/generate failed: {e.__cause__}")
        raise
    except RenderError as e:
        logger.error(f"/api/generate failed: {e}")
        raise GenerationError() from e

    return GenerateResponse(card_id=str(uuid4()), card_data=card, card_image_base64=image_base64)


@router.get("/questions", response_model=QuestionSetResponse)
async def generate_questions() -> QuestionSetResponse:
    """Generate a question set without opening a session."""
    try:
        question_set = await _require("generator").generate_questions()
    except GenerationError as e:
        logger.error(f"/api/questions failed: {e.__cause__}")
        raise
    return QuestionSetResponse(session_id=question_set.session_id, questions=question_set.questions)


@router.post("/print", response_model=PrintQueuedResponse)
async def enqueue_print(request: PrintRequest) -> PrintQueuedResponse:
    """Queue a rendered card for the next available print station."""
    if not isinstance(request.image, str) or not request.image:
        raise InvalidInputError("image required")
    meta = request.meta if isinstance(request.meta, dict) else {}
    try:
        job_id = _require("queue").enqueue(request.image, meta)
    except CardboothError:
        raise
    except Exception as e:
        logger.error(f"/api/print failed: {e}")
        raise PrintQueueError() from e
    return PrintQueuedResponse(job_id=job_id)


@router.get(
    "/print/next",
    response_model=PrintJobResponse,
    responses={204: {"description": "No job available"}},
)
async def claim_next_print(clientId: str = "unknown") -> PrintJobResponse | Response:  # noqa: N803
    """Claim the oldest unclaimed job for a print station."""
    job = _require("queue").claim_next(clientId or "unknown")
    if job is None:
        return Response(status_code=204)
    return PrintJobResponse(job_id=str(job.id), image_base64=job.image, meta=job.meta)


@router.post("/print/{job_id}/done", response_model=OkResponse)
async def report_print_done(job_id: str, request: PrintDoneRequest | None = None) -> OkResponse:
    """Report a station's terminal outcome for a claimed job."""
    request = request or PrintDoneRequest()
    message = None if request.message is None else str(request.message)
    status = request.status if isinstance(request.status, str) else ""
    _require("queue").report_outcome(job_id, status, message)
    return OkResponse()


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def unknown_endpoint(path: str) -> None:
    """Unknown API paths get the JSON error envelope instead of the front-end."""
    raise NotFoundError("endpoint not found")
