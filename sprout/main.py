"""FastAPI application entrypoint: lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text

from sprout.config import get_settings
from sprout.database import async_session_factory, engine
from sprout.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from sprout.routes import children, draws, maintenance, missions, plants, tickets
from sprout.seed import seed_defaults

logger = structlog.get_logger("sprout")


async def _connect_redis(url: str) -> Redis | None:
    """Notification delivery is best-effort, so a missing Redis only disables it."""
    client = Redis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis_unavailable", error=str(exc))
        await client.aclose()
        return None
    return client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Configure structured logging
      2. Verify the database connection
      3. Connect to Redis for notification fan-out (optional)
      4. Seed the default catalog, milestone rules and missions (optional)

    Shutdown:
      1. Close the Redis connection pool
      2. Dispose the SQLAlchemy engine
    """
    settings = get_settings()
    configure_structured_logging(settings)
    logger.info("sprout_starting", log_level=settings.log_level, game_timezone=settings.game_timezone)

    redis: Redis | None = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        if settings.redis_enabled:
            redis = await _connect_redis(settings.redis_url)
        app.state.redis = redis

        if settings.seed_defaults_on_startup:
            async with async_session_factory() as session:
                app.state.seeded = await seed_defaults(session)
                await session.commit()
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("sprout_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Sprout API",
    description=(
        "Plant growth and reward economy engine: children grow virtual plants, "
        "earn draw tickets for keeping promises, and collect new plant types."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic liveness probe."""
    return {
        "status": "ok",
        "service": "sprout",
        "version": "0.1.0",
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(children.router, prefix="/api/v1")
app.include_router(plants.router, prefix="/api/v1")
app.include_router(draws.router, prefix="/api/v1")
app.include_router(tickets.router, prefix="/api/v1")
app.include_router(missions.router, prefix="/api/v1")
app.include_router(maintenance.router, prefix="/api/v1")
