from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from progression.api.courses import router as courses_router
from progression.api.gamification import router as gamification_router
from progression.api.health import router as health_router
from progression.api.lessons import router as lessons_router
from progression.api.metrics_endpoint import router as metrics_router
from progression.api.quizzes import router as quizzes_router
from progression.core.config import SETTINGS
from progression.core.logging import setup_logging
from progression.db.engine import lifespan_db
from progression.db.redis import lifespan_redis
from progression.middleware.metrics import MetricsMiddleware
from progression.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="progression-engine",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(lessons_router)
app.include_router(quizzes_router)
app.include_router(gamification_router)

logger.info(
    "progression-engine started  env=%s log_level=%s port=%d store=%s rewards=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "memory",
    SETTINGS.rewards,
)
