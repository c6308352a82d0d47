import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from retain.application.progress.service import ProgressService, validate_quality
from retain.application.scheduler import compute_next_schedule, utcnow
from retain.consts import VERSION
from retain.domain.constants import DEFAULT_USER_ID, INITIAL_EASE_FACTOR, INITIAL_INTERVAL
from retain.domain.errors import CatalogUnavailableError, InvalidInputError
from retain.domain.progress.models import CardScheduleState, parse_timestamp

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("retain.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Retain Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Retain Server shutting down...")


app = FastAPI(
    title="Retain Server",
    description="Spaced-repetition progress tracking API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


@lru_cache(maxsize=1)
def get_service() -> ProgressService:
    """
    Build the ProgressService once from the resolved configuration.

    The catalog is parsed on first use and reused by every request.
    """
    from retain.application.config import resolve_config
    from retain.application.factory import get_progress_service

    return get_progress_service(resolve_config())


def _http_error(e: Exception, action: str) -> HTTPException:
    """Map domain errors onto HTTP status codes."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, InvalidInputError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, CatalogUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    logger.error(f"{action} failed: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=str(e))


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@app.get("/progress")
async def read_progress(userId: str = DEFAULT_USER_ID):
    """Retrieve a user's progress, creating the default record on first access."""
    try:
        progress = await get_service().get_progress(userId)
        return progress.to_dict()
    except Exception as e:
        raise _http_error(e, "Fetching progress") from e


class ProgressEvent(BaseModel):
    userId: str | None = None
    type: str | None = None
    data: dict[str, Any] = {}


def _required(data: dict[str, Any], *names: str) -> list[Any]:
    values = [data.get(name) for name in names]
    if any(v is None or v == "" for v in values):
        verb = "are" if len(names) > 1 else "is"
        raise InvalidInputError(f"{' and '.join(names)} {verb} required")
    return values


@app.post("/progress")
async def update_progress(event: ProgressEvent):
    """
    Apply one study event to a user's progress.

    type: flashcard_review | question_attempt | study_time | mark_unanswered
    """
    try:
        if not event.userId:
            raise InvalidInputError("userId is required")

        service = get_service()
        data = event.data

        if event.type == "flashcard_review":
            card_id, quality = _required(data, "cardId", "quality")
            progress = await service.record_flashcard_review(event.userId, card_id, quality)
        elif event.type == "question_attempt":
            question_id, is_correct = _required(data, "questionId", "isCorrect")
            progress = await service.record_question_attempt(
                event.userId, question_id, is_correct
            )
        elif event.type == "study_time":
            progress = await service.record_study_time(event.userId, data.get("minutes"))
        elif event.type == "mark_unanswered":
            (question_id,) = _required(data, "questionId")
            progress = await service.mark_unanswered(event.userId, question_id)
        else:
            raise InvalidInputError("Invalid type")

        return progress.to_dict()
    except Exception as e:
        raise _http_error(e, "Updating progress") from e


@app.get("/progress/due")
async def due_cards(userId: str = DEFAULT_USER_ID):
    """Card ids due for review, in catalog order."""
    try:
        return {"userId": userId, "due": await get_service().due_cards(userId)}
    except Exception as e:
        raise _http_error(e, "Due cards query") from e


@app.get("/progress/weak-areas")
async def weak_areas(userId: str = DEFAULT_USER_ID):
    """Topics below the accuracy threshold, weakest first."""
    try:
        areas = await get_service().weak_areas(userId)
        return {"userId": userId, "weakAreas": [a.to_dict() for a in areas]}
    except Exception as e:
        raise _http_error(e, "Weak areas query") from e


@app.get("/progress/summary")
async def progress_summary(userId: str = DEFAULT_USER_ID):
    try:
        summary = await get_service().summary(userId)
        return summary.to_dict()
    except Exception as e:
        raise _http_error(e, "Summary query") from e


# ---------------------------------------------------------------------------
# Stateless scheduling
# ---------------------------------------------------------------------------


class SpacedRepetitionRequest(BaseModel):
    quality: Any = None
    easeFactor: float | None = None
    interval: int | None = None
    repetitions: int | None = None


@app.post("/spaced-repetition")
async def spaced_repetition(req: SpacedRepetitionRequest):
    """
    Calculate the next review for the given state without touching any record.
    """
    try:
        quality = validate_quality(req.quality)
        now = utcnow()
        prior = CardScheduleState(
            ease_factor=req.easeFactor or INITIAL_EASE_FACTOR,
            interval=req.interval or INITIAL_INTERVAL,
            repetitions=req.repetitions or 0,
            last_reviewed_at=now,
            next_review_at=now,
        )
        result = compute_next_schedule(quality, prior, now)
        data = result.to_dict()
        return {k: data[k] for k in ("easeFactor", "interval", "repetitions", "nextReview")}
    except Exception as e:
        raise _http_error(e, "Spaced repetition") from e


# ---------------------------------------------------------------------------
# Study sessions
# ---------------------------------------------------------------------------


class StudySessionRequest(BaseModel):
    userId: str | None = None
    action: str | None = None
    startTime: datetime | None = None
    endTime: datetime | None = None


@app.post("/study-session")
async def study_session(req: StudySessionRequest):
    """Start or end a study session."""
    try:
        if not req.userId:
            raise InvalidInputError("userId is required")

        service = get_service()

        if req.action == "start":
            session_id, started = service.start_study_session(
                parse_timestamp(req.startTime) if req.startTime else None
            )
            return {"success": True, "sessionId": session_id, "startTime": started.isoformat()}

        if req.action == "end":
            if not req.startTime or not req.endTime:
                raise InvalidInputError("startTime and endTime are required")
            minutes, progress = await service.end_study_session(
                req.userId, parse_timestamp(req.startTime), parse_timestamp(req.endTime)
            )
            return {"success": True, "duration": minutes, "progress": progress.to_dict()}

        raise InvalidInputError("action must be 'start' or 'end'")
    except Exception as e:
        raise _http_error(e, "Study session") from e
