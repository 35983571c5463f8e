from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fotocontest.config import settings
from fotocontest.logging_setup import configure_logging
from fotocontest.routes.system import router as system_router
from fotocontest.routes.auth import router as auth_router
from fotocontest.routes.photos import router as photos_router
from fotocontest.routes.votes import router as votes_router
from fotocontest.routes.admin import router as admin_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info(
        "startup",
        env=settings.environment,
        version=settings.app_version,
        git_sha=settings.git_sha,
        notifier=settings.notifier,
        confirmation_ttl_minutes=settings.confirmation_ttl_minutes,
    )
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API: photo gallery with email-confirmed voting",
)

app.add_middleware(
    CORSMiddleware,
    # Credentials (voter cookie) cannot be combined with a wildcard origin outside dev
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(photos_router)
app.include_router(votes_router)
app.include_router(admin_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid, path=request.url.path)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
