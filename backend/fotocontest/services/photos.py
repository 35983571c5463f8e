from __future__ import annotations
import uuid
from uuid import UUID
import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest.errors import PhotoNotFound, StorageError
from fotocontest.models.confirmation import PendingConfirmation
from fotocontest.models.photo import Photo
from fotocontest.models.vote import Vote
from fotocontest.services.media import validate_upload, ext_for_mime
from fotocontest.services.storage import ObjectStorage, public_url_for

log = structlog.get_logger()


async def create_photo(
    session: AsyncSession,
    storage: ObjectStorage,
    *,
    first_name: str,
    last_name: str,
    email: str | None,
    data: bytes,
) -> Photo:
    """Validate and store an uploaded image, then create its Photo with zero votes."""
    mime = validate_upload(data)
    photo_id = uuid.uuid4()
    key = f"photos/{photo_id.hex}.{ext_for_mime(mime)}"
    await run_in_threadpool(storage.put_bytes, key, data, mime)

    photo = Photo(
        id=photo_id,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=(email or "").strip() or None,
        image_url=public_url_for(key) or f"/photos/{photo_id}/image",
        storage_key=key,
        mime_type=mime,
        votes=0,
    )
    session.add(photo)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        log.exception("photo_create_failed", photo_id=str(photo_id))
        # No row points at the blob; remove it, best effort
        try:
            await run_in_threadpool(storage.delete, key)
        except StorageError:
            log.warning("photo_blob_cleanup_failed", photo_id=str(photo_id), storage_key=key)
        raise StorageError("Could not save photo") from e
    await session.refresh(photo)
    log.info("photo_uploaded", photo_id=str(photo_id), mime=mime, size=len(data))
    return photo


async def update_photo(session: AsyncSession, photo_id: UUID, changes: dict) -> Photo:
    photo = await session.get(Photo, photo_id)
    if photo is None:
        raise PhotoNotFound(str(photo_id))
    for field in ("first_name", "last_name", "email"):
        if field in changes:
            setattr(photo, field, changes[field])
    await session.commit()
    await session.refresh(photo)
    return photo


async def delete_photo(session: AsyncSession, storage: ObjectStorage, photo_id: UUID) -> None:
    """
    Remove a photo together with the votes and pending confirmations pointing at it.
    Those voters simply no longer hold a standing vote. The blob goes last, best effort.
    """
    photo = await session.get(Photo, photo_id)
    if photo is None:
        raise PhotoNotFound(str(photo_id))
    storage_key = photo.storage_key

    await session.execute(delete(Vote).where(Vote.photo_id == photo_id).execution_options(synchronize_session=False))
    await session.execute(
        delete(PendingConfirmation)
        .where(PendingConfirmation.photo_id == photo_id)
        .execution_options(synchronize_session=False)
    )
    await session.delete(photo)
    await session.commit()
    log.info("photo_deleted", photo_id=str(photo_id))

    if storage_key:
        try:
            await run_in_threadpool(storage.delete, storage_key)
        except StorageError:
            log.warning("photo_blob_delete_failed", photo_id=str(photo_id), storage_key=storage_key)
