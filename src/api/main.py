"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routers and lifespan events.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresTokenStore, run_migrations
from src.api.dependencies import get_clock
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.ports import Clock, TokenStore
from src.domain.verification import purge_expired_tokens

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Credential API v1 - Register, verify email, log in",
    },
]


async def sweep_expired_tokens(tokens: TokenStore, clock: Clock, interval_seconds: int) -> None:
    """
    Periodically delete verification tokens past expiry.

    Pure cleanup: redemption re-checks expiry, so a missed sweep never
    affects correctness. Failures are logged and the loop continues.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(purge_expired_tokens, tokens, clock)
        except Exception:
            logger.exception("Expired token sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Starts the expired-token sweep (if enabled)
    - Stops the sweep and closes connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    sweeper: asyncio.Task | None = None
    if settings.token_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_expired_tokens(
                PostgresTokenStore(pool), get_clock(), settings.token_sweep_interval_seconds
            )
        )
        logger.info("Token sweep every %d seconds", settings.token_sweep_interval_seconds)

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="credential-service",
    description="Account registration, email verification and session token API",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
