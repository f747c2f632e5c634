"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from quizboard import __version__
from quizboard.config import settings
from quizboard.api import (
    admin_router,
    health_router,
    leaderboards_router,
    quizzes_router,
    sessions_router,
    users_router,
)
from quizboard.services.session_manager import SessionManager

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("quizboard backend starting…")
    yield
    live = len(app.state.session_manager)
    if live:
        logger.info("Discarding %d unfinished quiz session(s)", live)
    logger.info("quizboard backend shut down")


app = FastAPI(
    title="quizboard API",
    description="Timed multiple-choice quizzes with leaderboards",
    version=__version__,
    lifespan=lifespan,
)
app.state.session_manager = SessionManager(
    max_sessions=settings.MAX_LIVE_SESSIONS,
    idle_ttl=settings.SESSION_IDLE_TTL_SECONDS,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(sessions_router, prefix="/api/sessions", tags=["Sessions"])
app.include_router(leaderboards_router, prefix="/api/leaderboards", tags=["Leaderboards"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
async def root():
    return {
        "name": "quizboard API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
