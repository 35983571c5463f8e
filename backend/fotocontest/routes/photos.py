from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest.config import settings
from fotocontest.db import get_session
from fotocontest.errors import StorageError
from fotocontest.models.photo import Photo
from fotocontest.schemas.photo import PhotoPublic
from fotocontest.services import ledger
from fotocontest.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/photos", tags=["photos"])

def _pub(p: Photo) -> PhotoPublic:
    return PhotoPublic(
        id=p.id,
        display_name=p.display_name,
        image_url=p.image_url,
        votes=int(p.votes),
        created_at=p.created_at,
    )

@router.get("", response_model=list[PhotoPublic])
async def gallery(session: AsyncSession = Depends(get_session)):
    return [_pub(p) for p in await ledger.standings(session)]

@router.get("/{photo_id}", response_model=PhotoPublic)
async def get_photo(photo_id: UUID, session: AsyncSession = Depends(get_session)):
    p = await session.get(Photo, photo_id)
    if not p:
        raise HTTPException(status_code=404, detail="Photo not found")
    return _pub(p)

@router.get("/{photo_id}/image")
async def get_photo_image(
    photo_id: UUID,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_storage),
):
    """Proxy the stored image so bucket keys never reach the browser."""
    if not settings.serve_media_via_api:
        raise HTTPException(status_code=404, detail="Media is served from the public bucket")
    p = await session.get(Photo, photo_id)
    if not p or not p.storage_key:
        raise HTTPException(status_code=404, detail="Photo not found")
    try:
        data, content_type = await run_in_threadpool(storage.get_bytes, p.storage_key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Image not found")
    except StorageError:
        raise HTTPException(status_code=503, detail="Image temporarily unavailable")
    return Response(
        content=data,
        media_type=p.mime_type or content_type,
        headers={"Cache-Control": "public, max-age=3600"},
    )
