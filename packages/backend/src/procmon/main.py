"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown: seeding the mock record
set, the optional Redis relay, and the execution simulator.
Middleware, CORS, error handlers and routers are all registered here.
"""

import asyncio
import random
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from procmon import __version__
from procmon.api import api_router, health_router
from procmon.config import settings
from procmon.errors import register_exception_handlers
from procmon.services.mock_data import generate_processes
from procmon.services.simulator import ExecutionSimulator
from procmon.store import process_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown. One rng drives both the seed data and the simulator,
    so PROCMON_RANDOM_SEED makes a whole demo session reproducible.
    """
    logger.info(
        "procmon.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    rng = random.Random(settings.random_seed)
    process_store.seed(generate_processes(
        settings.seed_count,
        rng=rng,
        in_progress=settings.seed_in_progress,
    ))
    logger.info("procmon.store_seeded", processes=len(process_store))

    from procmon.realtime.pubsub import close_redis, init_redis

    if settings.redis_url:
        try:
            await init_redis()
            logger.info("procmon.redis_connected", url=settings.redis_url)
        except (RedisError, OSError) as e:
            # Redis is optional; events stay in-process without it
            logger.warning("procmon.redis_unavailable", error=str(e))

    simulator = None
    simulator_task = None
    if settings.simulation_enabled:
        simulator = ExecutionSimulator(
            process_store,
            interval=settings.simulation_interval_seconds,
            completion_probability=settings.completion_probability,
            success_rate=settings.success_rate,
            rng=rng,
        )
        simulator_task = asyncio.create_task(simulator.run_loop())

    yield

    # Shutdown
    logger.info("procmon.shutdown")

    if simulator and simulator_task:
        simulator.stop()
        simulator_task.cancel()
        try:
            await simulator_task
        except asyncio.CancelledError:
            pass

    await close_redis()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Process Monitor",
        description="Monitoring dashboard API for integration process executions",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from procmon.middleware.rate_limit import RateLimitMiddleware
    from procmon.middleware.request_id import RequestIdMiddleware
    from procmon.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router)

    # WebSocket route — real-time process and dashboard events
    from procmon.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: procmon.main:app)
app = create_app()
