"""FastAPI application entrypoint for the salon survey API."""
from __future__ import annotations

import logging
from typing import List, Optional

import uvicorn
from fastapi import Cookie, Depends, FastAPI, Header, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, catalog, schemas
from .aggregator import Aggregator
from .auth import verify_admin_token
from .config import Settings, get_settings
from .errors import SurveyError
from .gate import SubmissionGate, client_ip_from_forwarded
from .store import ResponseStore

logger = logging.getLogger(__name__)

COMPLETION_COOKIE = "survey_completed"
COMPLETION_COOKIE_MAX_AGE = 60 * 60 * 24 * 365

app = FastAPI(
    title="Salon Survey API",
    description="Collects scheduling survey responses and serves aggregate statistics.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_store(request: Request) -> ResponseStore:
    store: Optional[ResponseStore] = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Service Unavailable")
    return store


def get_submission_gate(
    store: ResponseStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> SubmissionGate:
    return SubmissionGate(
        store,
        max_per_window=settings.rate_limit,
        window_seconds=settings.rate_window_seconds,
        enforce_marker=settings.enforce_completion_cookie,
    )


def get_aggregator(
    store: ResponseStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Aggregator:
    return Aggregator(
        store,
        fetch_limit=settings.stats_fetch_limit,
        recent_limit=settings.stats_recent_limit,
    )


def _http_error(exc: SurveyError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


@app.post("/api/submit", response_model=schemas.SubmissionOut)
def submit_survey(
    payload: schemas.SurveyResponseIn,
    response: Response,
    x_forwarded_for: Optional[str] = Header(None),
    user_agent: Optional[str] = Header(None),
    survey_completed: Optional[str] = Cookie(None),
    gate: SubmissionGate = Depends(get_submission_gate),
) -> schemas.SubmissionOut:
    try:
        stored = gate.submit(
            payload,
            client_ip=client_ip_from_forwarded(x_forwarded_for),
            user_agent=user_agent,
            already_submitted=survey_completed == "true",
        )
    except SurveyError as exc:
        raise _http_error(exc) from exc

    response.set_cookie(
        COMPLETION_COOKIE,
        "true",
        max_age=COMPLETION_COOKIE_MAX_AGE,
        path="/",
        httponly=False,
    )
    return schemas.SubmissionOut(success=True, id=stored.id)


@app.get("/api/admin/stats", response_model=schemas.StatsReport)
def get_stats(
    _: None = Depends(verify_admin_token),
    aggregator: Aggregator = Depends(get_aggregator),
) -> schemas.StatsReport:
    try:
        return aggregator.build_report()
    except SurveyError as exc:
        raise _http_error(exc) from exc


@app.get("/api/questions", response_model=List[schemas.QuestionOut])
def list_questions() -> List[schemas.QuestionOut]:
    return [_question_out(question) for question in catalog.QUESTIONS]


@app.get("/api/questions/{key}", response_model=schemas.QuestionOut)
def get_question(key: str) -> schemas.QuestionOut:
    try:
        question = catalog.get_question(key)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found") from exc
    return _question_out(question)


def _question_out(question: catalog.Question) -> schemas.QuestionOut:
    return schemas.QuestionOut(
        key=question.key,
        step=question.step,
        title=question.title,
        subtitle=question.subtitle,
        kind=question.kind,
        options=list(question.options),
        allows_other=question.allows_other,
        label=question.label,
        scale_labels=list(question.scale_labels),
        placeholder=question.placeholder,
        required=question.required,
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.on_event("startup")
def open_store() -> None:
    settings = get_settings()
    store = ResponseStore.from_settings(settings)
    store.create_schema()
    app.state.store = store
    logger.info("Response store ready")


@app.on_event("shutdown")
def close_store() -> None:
    store: Optional[ResponseStore] = getattr(app.state, "store", None)
    if store is None:
        return
    store.dispose()
    app.state.store = None


def run() -> None:
    """Serve the API with uvicorn on ``SURVEY_HOST``/``SURVEY_PORT``."""

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
