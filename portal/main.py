from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.api.admin import router as admin_router
from portal.api.applications import router as applications_router
from portal.api.certificates import router as certificates_router
from portal.api.courses import router as courses_router
from portal.api.health import router as health_router
from portal.api.metrics_endpoint import router as metrics_router
from portal.api.profiles import router as profiles_router
from portal.api.progress import router as progress_router
from portal.api.quizzes import router as quizzes_router
from portal.core.config import SETTINGS
from portal.core.errors import NotAuthenticated, PortalError
from portal.core.logging import setup_logging
from portal.db.engine import lifespan_db
from portal.db.redis import lifespan_redis
from portal.middleware.metrics import MetricsMiddleware
from portal.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="oakridge-portal",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s %s failed: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.code,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext -> Metrics -> CORS -> route
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(profiles_router)
app.include_router(applications_router)
app.include_router(courses_router)
app.include_router(quizzes_router)
app.include_router(progress_router)
app.include_router(certificates_router)
app.include_router(admin_router)

logger.info(
    "oakridge-portal started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
