from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from fotocontest.config import settings
from fotocontest.db import get_session

router = APIRouter()
log = structlog.get_logger()

@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/health/ready")
async def ready(session: AsyncSession = Depends(get_session)):
    """Readiness: the vote ledger database answers."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.exception("readiness_db_failed")
        return JSONResponse(status_code=503, content={"status": "unavailable", "db": "error"})
    return {"status": "ok", "db": "ok"}

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "confirmation_ttl_minutes": settings.confirmation_ttl_minutes,
        "notifier": settings.notifier,
    }
