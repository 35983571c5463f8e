from __future__ import annotations
from uuid import UUID
from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest.models.photo import Photo
from fotocontest.models.vote import Vote
from fotocontest.services.identity import VoterIdentity
from fotocontest.errors import PhotoNotFound

# ---------- counters ----------
# Server-side conditional updates; never read-modify-write in Python.

async def increment(session: AsyncSession, photo_id: UUID) -> bool:
    """Add one vote to a photo. Returns False if the photo does not exist."""
    res = await session.execute(
        update(Photo)
        .where(Photo.id == photo_id)
        .values(votes=Photo.votes + 1)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount > 0


async def decrement(session: AsyncSession, photo_id: UUID) -> bool:
    """Remove one vote. Missing or zero-vote photos are left alone (returns False)."""
    res = await session.execute(
        update(Photo)
        .where(Photo.id == photo_id, Photo.votes > 0)
        .values(votes=Photo.votes - 1)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount > 0

# ---------- standing votes ----------

async def find_vote(session: AsyncSession, identity: VoterIdentity) -> Vote | None:
    return await session.scalar(select(Vote).where(Vote.voter_key == identity.key))


async def retire_vote(session: AsyncSession, voter_key: str) -> UUID | None:
    """
    Delete the standing vote for voter_key and take its count back off the photo.
    Returns the photo id the vote pointed at, or None if there was no vote.
    """
    old_photo_id = (await session.execute(
        delete(Vote)
        .where(Vote.voter_key == voter_key)
        .returning(Vote.photo_id)
        .execution_options(synchronize_session=False)
    )).scalar_one_or_none()
    if old_photo_id is None:
        return None
    await decrement(session, old_photo_id)
    return old_photo_id


async def cast_vote(session: AsyncSession, identity: VoterIdentity, photo_id: UUID) -> bool:
    """
    Make photo_id the identity's single standing vote.
    Order: retire old (delete + decrement) -> insert new -> increment new.
    Must run inside the caller's transaction; returns True if a prior vote was replaced.
    """
    if await session.scalar(select(Photo.id).where(Photo.id == photo_id)) is None:
        raise PhotoNotFound(str(photo_id))
    old_photo_id = await retire_vote(session, identity.key)
    session.add(Vote(voter_key=identity.key, identity_kind=identity.kind, photo_id=photo_id))
    await session.flush()
    if not await increment(session, photo_id):
        raise PhotoNotFound(str(photo_id))
    return old_photo_id is not None

# ---------- reads ----------

async def standings(session: AsyncSession) -> list[Photo]:
    """Photos ordered by vote count, oldest first on ties."""
    return list((await session.execute(
        select(Photo).order_by(Photo.votes.desc(), Photo.created_at.asc())
    )).scalars().all())


async def total_votes(session: AsyncSession) -> int:
    total = await session.scalar(select(func.coalesce(func.sum(Photo.votes), 0)))
    return int(total or 0)
