import logging
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from flashdeck.application.config import resolve_config
from flashdeck.application.factory import build_services
from flashdeck.application.practice.progress import project_progress
from flashdeck.application.practice.registry import SessionRegistry
from flashdeck.application.practice.service import PracticeService
from flashdeck.application.stats.service import StatsService
from flashdeck.consts import VERSION
from flashdeck.domain.errors import (
    CardSourceError,
    DeckNotFoundError,
    InvalidSessionState,
    NoCurrentCard,
    PersistenceError,
    SessionNotFoundError,
)
from flashdeck.domain.models import CardFilter, PracticeDirection
from flashdeck.domain.practice.session import Outcome, PracticeSession, SessionPhase

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("flashdeck.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"flashdeck server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("flashdeck server shutting down...")


app = FastAPI(
    title="flashdeck server",
    description="Practice sessions and deck statistics over HTTP.",
    version=VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


@dataclass
class AppServices:
    practice: PracticeService
    stats: StatsService
    sessions: SessionRegistry = field(default_factory=SessionRegistry)


_services: AppServices | None = None
_services_lock = threading.Lock()


def get_services() -> AppServices:
    """Build the process-wide services from config on first use."""
    global _services
    with _services_lock:
        if _services is None:
            config = resolve_config()
            practice, stats = build_services(config)
            _services = AppServices(
                practice=practice,
                stats=stats,
                sessions=SessionRegistry(idle_ttl=config.session_ttl_seconds),
            )
        return _services


Services = Annotated[AppServices, Depends(get_services)]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(InvalidSessionState)
async def _invalid_state(request: Request, exc: InvalidSessionState):
    return _error(409, exc)


@app.exception_handler(NoCurrentCard)
async def _no_current_card(request: Request, exc: NoCurrentCard):
    return _error(409, exc)


@app.exception_handler(SessionNotFoundError)
async def _session_not_found(request: Request, exc: SessionNotFoundError):
    return _error(404, exc)


@app.exception_handler(DeckNotFoundError)
async def _deck_not_found(request: Request, exc: DeckNotFoundError):
    return _error(404, exc)


@app.exception_handler(PersistenceError)
async def _persistence_error(request: Request, exc: PersistenceError):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return _error(503, exc)


@app.exception_handler(CardSourceError)
async def _card_source_error(request: Request, exc: CardSourceError):
    logger.error(f"Card source failure on {request.url.path}: {exc}")
    return _error(503, exc)


@app.exception_handler(ValueError)
async def _value_error(request: Request, exc: ValueError):
    return _error(400, exc)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class DeckResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str
    card_count: int
    known_count: int
    progress_percent: int


class DailyStatsResponse(BaseModel):
    date: date
    sessions: int
    viewed: int
    correct: int
    repeat: int
    hard: int
    total_duration_ms: int
    total_answer_delay_ms: int
    avg_delay_ms: float


class AggregateResponse(BaseModel):
    sessions_all: int
    viewed_all: int
    correct_all: int
    repeat_all: int
    hard_all: int
    sessions_today: int
    viewed_today: int
    correct_today: int
    repeat_today: int
    hard_today: int


class DeckStatsResponse(BaseModel):
    deck_id: int
    daily: list[DailyStatsResponse]
    known_card_ids: list[int]
    aggregate: AggregateResponse


class KnownRequest(BaseModel):
    known: bool


class KnownResponse(BaseModel):
    deck_id: int
    card_id: int
    known: bool


class ResetResponse(BaseModel):
    deck_id: int
    cleared_cards: int


class StartSessionRequest(BaseModel):
    # If None, use the configured practice defaults.
    deck_id: int = Field(gt=0)
    count: int | None = Field(default=None, ge=0)
    random_order: bool | None = None
    direction: PracticeDirection | None = None
    card_filter: CardFilter | None = None


class MarkRequest(BaseModel):
    outcome: Outcome


class ProgressResponse(BaseModel):
    total_viewed: int
    total_cards: int
    remaining: int
    correct: int
    repeat: int
    hard: int
    current: int
    percent: int
    complete: bool


class SessionResponse(BaseModel):
    session_id: str
    deck_id: int
    phase: str
    direction: PracticeDirection
    progress: ProgressResponse
    card_id: int | None = None
    question: str | None = None
    answer: str | None = None  # Only once revealed
    example: str | None = None


class FinishResponse(BaseModel):
    session_id: str
    recorded: bool
    progress: ProgressResponse
    session_minutes: int
    avg_seconds: int


def _session_response(session_id: str, session: PracticeSession) -> SessionResponse:
    resp = SessionResponse(
        session_id=session_id,
        deck_id=session.deck_id,
        phase=session.phase.value,
        direction=session.direction,
        progress=ProgressResponse(**asdict(project_progress(session))),
    )
    if not session.is_complete:
        card = session.current_card()
        resp.card_id = card.id
        resp.question = card.question(session.direction)
        if session.phase is SessionPhase.REVEALED:
            resp.answer = card.answer(session.direction)
            resp.example = card.example
    return resp


# ---------------------------------------------------------------------------
# Meta
# ---------------------------------------------------------------------------

start_time = time.time()


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
# Decks and stats
# ---------------------------------------------------------------------------


@app.get("/decks", response_model=list[DeckResponse])
def list_decks(services: Services):
    result = []
    for deck in services.practice.list_decks():
        size = len(services.practice.list_cards(deck.id))
        known = services.stats.get_known_card_ids(deck.id)
        result.append(
            DeckResponse(
                id=deck.id,
                owner_id=deck.owner_id,
                title=deck.title,
                description=deck.description,
                card_count=size,
                known_count=len(known),
                progress_percent=services.stats.get_deck_progress_percent(deck.id, size),
            )
        )
    return result


@app.get("/decks/{deck_id}/stats", response_model=DeckStatsResponse)
def deck_stats(deck_id: int, services: Services):
    records = services.stats.get_daily_stats(deck_id)
    return DeckStatsResponse(
        deck_id=deck_id,
        daily=[DailyStatsResponse(**asdict(r), avg_delay_ms=r.avg_delay_ms) for r in records],
        known_card_ids=sorted(services.stats.get_known_card_ids(deck_id)),
        aggregate=AggregateResponse(**asdict(services.stats.get_deck_aggregate(deck_id))),
    )


@app.get("/stats", response_model=AggregateResponse)
def overall_stats(services: Services):
    """
    All-time and today totals summed over every deck.
    """
    deck_ids = [deck.id for deck in services.practice.list_decks()]
    return AggregateResponse(**asdict(services.stats.get_overall_aggregate(deck_ids)))


@app.put("/decks/{deck_id}/cards/{card_id}/known", response_model=KnownResponse)
def set_card_known(deck_id: int, card_id: int, req: KnownRequest, services: Services):
    services.stats.set_card_known(deck_id, card_id, req.known)
    return KnownResponse(deck_id=deck_id, card_id=card_id, known=req.known)


@app.post("/decks/{deck_id}/reset", response_model=ResetResponse)
def reset_deck(deck_id: int, services: Services):
    cleared = services.stats.reset_deck_progress(deck_id)
    return ResetResponse(deck_id=deck_id, cleared_cards=cleared)


# ---------------------------------------------------------------------------
# Practice sessions
# ---------------------------------------------------------------------------


@app.post("/practice/sessions", response_model=SessionResponse, status_code=201)
def start_session(req: StartSessionRequest, services: Services):
    """
    Select cards and open a live session. The first question is shown immediately.
    """
    if services.practice.load_deck(req.deck_id) is None:
        raise DeckNotFoundError(f"Deck not found: {req.deck_id}")

    session = services.practice.start_session(
        req.deck_id,
        count=req.count,
        random_order=req.random_order,
        direction=req.direction,
        card_filter=req.card_filter,
    )
    if not session.is_complete:
        session.start_question()
    session_id = services.sessions.open(session)
    logger.info(f"Opened practice session {session_id} for deck {req.deck_id}")
    return _session_response(session_id, session)


@app.get("/practice/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, services: Services):
    with services.sessions.locked(session_id) as session:
        return _session_response(session_id, session)


@app.post("/practice/sessions/{session_id}/question", response_model=SessionResponse)
def show_question(session_id: str, services: Services):
    with services.sessions.locked(session_id) as session:
        session.start_question()
        return _session_response(session_id, session)


@app.post("/practice/sessions/{session_id}/reveal", response_model=SessionResponse)
def reveal_answer(session_id: str, services: Services):
    with services.sessions.locked(session_id) as session:
        session.reveal()
        return _session_response(session_id, session)


@app.post("/practice/sessions/{session_id}/mark", response_model=SessionResponse)
def mark_answer(session_id: str, req: MarkRequest, services: Services):
    with services.sessions.locked(session_id) as session:
        session.mark(req.outcome)
        return _session_response(session_id, session)


@app.post("/practice/sessions/{session_id}/finish", response_model=FinishResponse)
def finish_session(session_id: str, services: Services):
    """
    Record the session into the deck's stats and close it.

    Unfinished sessions are recorded with the cards answered so far. A second
    finish of the same session gets 404 and records nothing.
    """
    with services.sessions.locked(session_id) as session:
        recorded = services.practice.record_session(session)
        metrics = services.practice.completion_metrics(session)
        progress = ProgressResponse(**asdict(project_progress(session)))
        services.sessions.discard(session_id)

    logger.info(f"Closed practice session {session_id} (recorded={recorded})")
    return FinishResponse(
        session_id=session_id,
        recorded=recorded,
        progress=progress,
        session_minutes=metrics.session_minutes,
        avg_seconds=metrics.avg_seconds,
    )
