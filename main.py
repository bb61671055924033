"""
FastAPI application entry point.

Registers routers, middleware, and exception handlers.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Depends, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone

from intranet.config.settings import settings
from intranet.utils.exceptions import BaseAPIException
from intranet.utils.exception_handlers import (
    base_api_exception_handler,
    request_validation_exception_handler,
    integrity_error_handler,
    rate_limit_exceeded_handler,
    http_exception_handler,
    general_exception_handler,
)
from intranet.utils.logger import get_logger
from intranet.utils.rate_limit import limiter
from intranet.apps.auth.routers import router as auth_router
from intranet.apps.users.routers import router as users_router
from intranet.apps.departments.routers import router as departments_router
from intranet.apps.posts.routers import router as posts_router
from intranet.apps.groups.routers import router as groups_router
from intranet.apps.chats.routers import router as chats_router
from intranet.apps.events.routers import router as events_router
from intranet.apps.news.routers import router as news_router
from intranet.apps.files.routers import router as files_router
from intranet.apps.notifications.routers import router as notifications_router
from intranet.apps.quick_access.routers import router as quick_access_router
from intranet.apps.admin.routers import router as admin_router
from intranet.db.database import get_session, init_models

logger = get_logger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup/shutdown lifecycle events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} [{settings.ENVIRONMENT}]")
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    if settings.AUTO_CREATE_TABLES:
        await init_models()
    yield
    logger.info("Shutdown complete")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Municipal intranet: feed, groups, chat, events, news and files",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.limiter = limiter


# ── Middleware ────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception Handlers ────────────────────────────────────────────────────────

app.add_exception_handler(BaseAPIException, base_api_exception_handler)          # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(IntegrityError, integrity_error_handler)                # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)         # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)         # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(departments_router)
app.include_router(posts_router)
app.include_router(groups_router)
app.include_router(chats_router)
app.include_router(events_router)
app.include_router(news_router)
app.include_router(files_router)
app.include_router(notifications_router)
app.include_router(quick_access_router)
app.include_router(admin_router)

# ── Uploads ───────────────────────────────────────────────────────────────────
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


# ── Health ────────────────────────────────────────────────────────────────────

@app.get("/health", tags=["Infra"])
async def health():
    """Liveness probe, must respond < 200ms."""
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/ready", tags=["Infra"])
async def ready(session: AsyncSession = Depends(get_session)):
    """
    Readiness probe: verifies the database is reachable.
    Returns 503 if it is down.
    """
    checks = {}
    healthy = True

    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"DB health check failed: {e}")
        checks["database"] = f"error: {str(e)[:80]}"
        healthy = False

    payload = {
        "status": "ready" if healthy else "degraded",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    if not healthy:
        return JSONResponse(status_code=503, content=payload)

    return payload


@app.get("/metrics", tags=["Infra"], include_in_schema=False)
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ── Realtime ──────────────────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Connection only; no events are pushed over this socket yet."""
    await websocket.accept()
    logger.info(f"Socket connected: {websocket.client}")
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Socket disconnected: {websocket.client}")
