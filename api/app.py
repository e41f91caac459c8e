import os, threading, uuid, time, logging
from typing import Any, Dict, List, Optional, Tuple
from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

from catalog.models import LayoutCandidate, Placement, RoomBundle, User
from board.board import CollaborationBoard
from evaluation.validators import collect_violations
from evaluation.violations import LayoutViolation
from suggest.errors import MalformedSuggestion, NoContextAvailable, SourceUnavailable
from suggest.pipeline import PipelineError
from suggest.sources import source_from_env

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("dormcraft_api")

# Simple API key auth
API_KEYS = set(filter(None, os.environ.get("API_KEYS", "testkey").split(",")))


def _get_api_key(request: Request) -> str:
    api_key = request.headers.get("X-API-Key")
    if not api_key or api_key not in API_KEYS:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Invalid API key"},
        )
    return api_key


# Prometheus metrics
PROM_REGISTRY = CollectorRegistry()
REQUEST_COUNT = Counter(
    "request_total", "Total HTTP requests", ["method", "endpoint", "http_status"],
    registry=PROM_REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Latency of HTTP requests", ["endpoint"],
    registry=PROM_REGISTRY,
)
ERROR_COUNT = Counter(
    "request_errors_total", "Total HTTP errors",
    registry=PROM_REGISTRY,
)
LAYOUT_OUTCOMES = Counter(
    "layout_outcomes_total", "Layout admissions by origin and result", ["origin", "result"],
    registry=PROM_REGISTRY,
)


class Metadata(BaseModel):
    processing_time: float


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None
    metadata: Metadata


class CreateBoardRequest(RoomBundle):
    board_id: Optional[str] = Field(default=None, min_length=1)


class BoardSummary(BaseModel):
    board_id: str
    room_id: str
    users: List[str]
    layout_ids: List[str]
    comment_count: int
    share_link: str


class JoinRequest(BaseModel):
    name: str = Field(min_length=1)


class CommentRequest(BaseModel):
    user: str = Field(min_length=1)
    text: str = Field(min_length=1)


class SubmitLayoutRequest(BaseModel):
    creator: str = Field(min_length=1)
    placements: List[Placement]


class SuggestResponse(BaseModel):
    layout: LayoutCandidate
    rationale: Optional[str] = None


class ValidateRequest(RoomBundle):
    placements: List[Placement]


class ValidateResponse(BaseModel):
    valid: bool
    violations: List[Dict[str, Any]]


app = FastAPI(title="DormCraft Board API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.perf_counter()
    request.state.start_time = start_time
    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        status_code = 500
        ERROR_COUNT.inc()
        logger.exception("Unhandled exception during request: %s", exc)
        raise
    finally:
        duration = time.perf_counter() - start_time
        endpoint = request.url.path
        REQUEST_COUNT.labels(request.method, endpoint, status_code).inc()
        REQUEST_LATENCY.labels(endpoint).observe(duration)
        logger.info(
            "%s %s -> %s in %.3fs",
            request.method,
            endpoint,
            status_code,
            duration,
        )
    return response


_boards: Dict[str, CollaborationBoard] = {}
_lock = threading.Lock()

# simple in-memory rate limiter: requests per API key per minute
RATE_LIMIT = int(os.environ.get("RATE_LIMIT", "60"))
_WINDOW_SECONDS = 60
_request_counts: Dict[str, Tuple[float, int]] = {}


def _rate_limited_key(api_key: str = Depends(_get_api_key)) -> str:
    now = time.time()
    window_start, count = _request_counts.get(api_key, (now, 0))
    if now - window_start >= _WINDOW_SECONDS:
        window_start, count = now, 0
    if count >= RATE_LIMIT:
        raise HTTPException(
            status_code=429,
            detail={"code": "rate_limit_exceeded", "message": "Too many requests"},
        )
    _request_counts[api_key] = (window_start, count + 1)
    return api_key


def _get_board(board_id: str) -> CollaborationBoard:
    board = _boards.get(board_id)
    if board is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": f"Board {board_id} not found"},
        )
    return board


_ERROR_STATUS = {
    NoContextAvailable: 409,
    SourceUnavailable: 502,
    MalformedSuggestion: 422,
}


def _pipeline_error(exc: PipelineError) -> HTTPException:
    if isinstance(exc, LayoutViolation):
        return HTTPException(status_code=422, detail=exc.to_dict())
    status = _ERROR_STATUS.get(type(exc), 500)
    details: Optional[Dict[str, Any]] = None
    if isinstance(exc, MalformedSuggestion):
        details = {"reason": exc.reason, "raw_response": exc.raw_text}
    return HTTPException(
        status_code=status,
        detail={"code": exc.code, "message": str(exc), "details": details},
    )


@app.get("/health")
def health():
    return {"ok": True}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning("HTTPException %s: %s", exc.status_code, exc.detail)
    detail = exc.detail
    if isinstance(detail, dict):
        content = dict(detail)
    else:
        content = {"code": "error", "message": str(detail)}
    processing_time = time.perf_counter() - getattr(
        request.state, "start_time", time.perf_counter()
    )
    content["metadata"] = {"processing_time": processing_time}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    processing_time = time.perf_counter() - getattr(
        request.state, "start_time", time.perf_counter()
    )
    return JSONResponse(
        status_code=500,
        content={
            "code": "internal_error",
            "message": "Internal server error",
            "metadata": {"processing_time": processing_time},
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error: %s", exc)
    processing_time = time.perf_counter() - getattr(
        request.state, "start_time", time.perf_counter()
    )
    return JSONResponse(
        status_code=422,
        content={
            "code": "validation_error",
            "message": "Invalid request",
            "details": jsonable_errors(exc),
            "metadata": {"processing_time": processing_time},
        },
    )


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    # ``ctx`` may hold the raw exception raised by a model validator
    return [
        {k: (str(v) if k == "ctx" else v) for k, v in err.items()}
        for err in exc.errors()
    ]


@app.get("/metrics")
def metrics():
    return Response(generate_latest(PROM_REGISTRY), media_type=CONTENT_TYPE_LATEST)


@app.post(
    "/boards",
    response_model=BoardSummary,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def create_board(req: CreateBoardRequest, api_key: str = Depends(_rate_limited_key)):
    board_id = req.board_id or uuid.uuid4().hex
    bundle = RoomBundle(room=req.room, furniture=req.furniture)
    with _lock:
        if board_id in _boards:
            raise HTTPException(
                status_code=409,
                detail={"code": "conflict", "message": f"Board {board_id} already exists"},
            )
        board = CollaborationBoard(board_id, bundle, source_from_env())
        _boards[board_id] = board
    logger.info("Created board %s for room %s", board_id, bundle.room.id)
    return BoardSummary(**board.summary())


@app.get("/boards/{board_id}", response_model=BoardSummary, responses={404: {"model": ErrorResponse}})
def get_board(board_id: str, api_key: str = Depends(_rate_limited_key)):
    return BoardSummary(**_get_board(board_id).summary())


@app.post("/boards/{board_id}/users", response_model=BoardSummary, responses={404: {"model": ErrorResponse}})
def join_board(board_id: str, req: JoinRequest, api_key: str = Depends(_rate_limited_key)):
    board = _get_board(board_id)
    board.join(User(name=req.name))
    return BoardSummary(**board.summary())


@app.post("/boards/{board_id}/comments", responses={404: {"model": ErrorResponse}})
def post_comment(board_id: str, req: CommentRequest, api_key: str = Depends(_rate_limited_key)):
    board = _get_board(board_id)
    entry = board.comment(User(name=req.user), req.text)
    return entry.model_dump()


@app.get("/boards/{board_id}/layouts", response_model=List[LayoutCandidate])
def list_layouts(board_id: str, api_key: str = Depends(_rate_limited_key)):
    return _get_board(board_id).current_layouts()


@app.post(
    "/boards/{board_id}/layouts",
    response_model=LayoutCandidate,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def submit_layout(board_id: str, req: SubmitLayoutRequest, api_key: str = Depends(_rate_limited_key)):
    board = _get_board(board_id)
    outcome = board.submit(LayoutCandidate(placements=req.placements, creator=req.creator))
    LAYOUT_OUTCOMES.labels("human", outcome.state.value).inc()
    if outcome.error is not None:
        raise _pipeline_error(outcome.error)
    return outcome.layout


@app.post(
    "/boards/{board_id}/suggest",
    response_model=SuggestResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
def suggest_layout(board_id: str, api_key: str = Depends(_rate_limited_key)):
    board = _get_board(board_id)
    outcome = board.run_suggestion()
    LAYOUT_OUTCOMES.labels("ai", outcome.state.value).inc()
    if outcome.error is not None:
        raise _pipeline_error(outcome.error)
    return SuggestResponse(layout=outcome.layout, rationale=outcome.rationale)


@app.post("/validate", response_model=ValidateResponse)
def validate(req: ValidateRequest, api_key: str = Depends(_rate_limited_key)):
    bundle = RoomBundle(room=req.room, furniture=req.furniture)
    layout = LayoutCandidate(placements=req.placements, creator="validate")
    violations = collect_violations(layout, bundle.room, bundle.catalog)
    return ValidateResponse(valid=not violations, violations=[v.to_dict() for v in violations])
