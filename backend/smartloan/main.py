"""SmartLoan API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SmartLoanError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and lending policy initialized on startup via lifespan context manager
    - A malformed policy file fails startup, never the first applicant request

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers: SmartLoanError (domain), RequestValidationError
      (Pydantic), Exception (catch-all) — never leaks internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartloan.api.dependencies import init_policy_store
from smartloan.api.error_handlers import register_error_handlers
from smartloan.api.routes import applications, health, memos, offers
from smartloan.config import get_settings
from smartloan.infrastructure import database
from smartloan.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    store = init_policy_store(settings.policy_file)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"SmartLoan API started (policy version {store.version})")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("SmartLoan API shutting down")


app = FastAPI(
    title="SmartLoan API", version="1.0.0", lifespan=lifespan,
)

# CORS origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes
app.include_router(health.router)
app.include_router(applications.router)
app.include_router(offers.router)
app.include_router(memos.router)
