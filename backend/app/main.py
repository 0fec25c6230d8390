"""TaskDesk API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TaskDeskError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and Event Bus created on startup via lifespan context manager;
      the bus lives on app.state and is injected from there

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers: TaskDeskError (domain), RequestValidationError
      (Pydantic), Exception (catch-all) — never leaks internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.infrastructure.database as database
from app.api.error_handlers import register_error_handlers
from app.api.routes import auth, health, live_events, pending_assignments, tasks
from app.config import get_settings
from app.infrastructure.event_bus import EventBus
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.event_bus = EventBus(queue_size=settings.event_queue_size)
    logger.info("TaskDesk API started")
    yield
    logger.info("TaskDesk API shutting down")
    if database.db_manager:
        await database.db_manager.dispose()


app = FastAPI(
    title="TaskDesk API", version="1.0.0", lifespan=lifespan,
)

# CORS from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes (explicit registration)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(pending_assignments.router)
app.include_router(live_events.router)

register_error_handlers(app)
