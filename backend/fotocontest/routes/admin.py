from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest import errors
from fotocontest.auth_deps import get_current_admin
from fotocontest.config import settings
from fotocontest.db import get_session
from fotocontest.models.photo import Photo
from fotocontest.schemas.photo import PhotoAdmin, PhotoUpdate
from fotocontest.services import ledger
from fotocontest.services.photos import create_photo, update_photo, delete_photo
from fotocontest.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])

def _admin(p: Photo) -> PhotoAdmin:
    return PhotoAdmin(
        id=p.id,
        first_name=p.first_name,
        last_name=p.last_name,
        email=p.email,
        image_url=p.image_url,
        mime_type=p.mime_type,
        votes=int(p.votes),
        created_at=p.created_at,
    )

@router.get("/photos", response_model=list[PhotoAdmin])
async def list_photos(session: AsyncSession = Depends(get_session)):
    return [_admin(p) for p in await ledger.standings(session)]

@router.post("/photos", response_model=PhotoAdmin, status_code=201)
async def upload_photo(
    first_name: str = Form(..., min_length=1, max_length=80),
    last_name: str = Form(..., min_length=1, max_length=80),
    email: str | None = Form(default=None, max_length=320),
    file: UploadFile = File(..., description="JPEG, PNG or GIF, at most 10MB"),
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_storage),
):
    # Read one byte past the limit so oversized files are caught without buffering them whole
    data = await file.read(settings.upload_max_bytes + 1)
    try:
        photo = await create_photo(
            session, storage,
            first_name=first_name, last_name=last_name, email=email, data=data,
        )
    except errors.UploadTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except errors.ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except errors.StorageError:
        raise HTTPException(status_code=503, detail="Photo could not be saved, please try again")
    return _admin(photo)

@router.patch("/photos/{photo_id}", response_model=PhotoAdmin)
async def edit_photo(photo_id: UUID, payload: PhotoUpdate, session: AsyncSession = Depends(get_session)):
    try:
        photo = await update_photo(session, photo_id, payload.model_dump(exclude_unset=True))
    except errors.PhotoNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")
    return _admin(photo)

@router.delete("/photos/{photo_id}", status_code=204)
async def remove_photo(
    photo_id: UUID,
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_storage),
):
    try:
        await delete_photo(session, storage, photo_id)
    except errors.PhotoNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")
    return None
