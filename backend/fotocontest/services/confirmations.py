from __future__ import annotations
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_tz
from typing import Literal
from urllib.parse import urlencode
from uuid import UUID
import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest.config import settings
from fotocontest.errors import (
    NotificationError,
    PhotoNotFound,
    StorageError,
    TokenExpired,
    TokenNotFound,
    VoteConflict,
)
from fotocontest.models.confirmation import PendingConfirmation
from fotocontest.models.photo import Photo
from fotocontest.services import ledger
from fotocontest.services.identity import EmailIdentity, VoterIdentity, parse_identity
from fotocontest.services.notifier import Notifier

log = structlog.get_logger()

TOKEN_BYTES = 32

Delivery = Literal["sent", "logged", "fallback", "direct"]


@dataclass(frozen=True)
class IssuedConfirmation:
    token: str
    confirmation_url: str
    photo_id: UUID
    expires_at: datetime
    delivery: Delivery

    @property
    def expose_url(self) -> bool:
        # Voter needs the link handed back when nothing was mailed
        return self.delivery != "sent"


@dataclass(frozen=True)
class RedeemedVote:
    photo_id: UUID
    was_change: bool
    identity: VoterIdentity

    @property
    def message(self) -> str:
        # Issuing already retires the standing vote, so "changed" only shows up when
        # two links for the same voter were outstanding and both got redeemed.
        return "Stimme geändert" if self.was_change else "Erfolgreich abgestimmt"


def new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def confirmation_url(token: str, photo_id: UUID, base_url: str | None = None) -> str:
    base = (base_url or settings.frontend_base_url).rstrip("/")
    return f"{base}/?{urlencode({'token': token, 'photoId': str(photo_id)})}"


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    return dt.replace(tzinfo=dt_tz.utc) if dt.tzinfo is None else dt.astimezone(dt_tz.utc)


async def _discard_token(session: AsyncSession, token_hash: str) -> None:
    """Best effort: drop a token whose delivery failed when delivery is mandatory."""
    try:
        async with session.begin():
            await session.execute(
                delete(PendingConfirmation)
                .where(PendingConfirmation.token_hash == token_hash)
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError:
        log.exception("orphan_confirmation_cleanup_failed")


async def issue_confirmation(
    session: AsyncSession,
    notifier: Notifier,
    identity: VoterIdentity,
    photo_id: UUID,
    *,
    now: datetime | None = None,
) -> IssuedConfirmation:
    """
    Create a single-use confirmation for (identity, photo) and hand its link to the notifier.

    The voter's standing vote (if any) is retired before the token is stored, so a
    repeat attempt cannot collide with it. A failed persist raises StorageError and
    nothing is sent. A failed delivery keeps the token and returns the link as a
    fallback, unless settings.notification_mandatory is set.
    """
    now = now or datetime.now(dt_tz.utc)
    token = new_token()
    token_hash = hash_token(token)
    expires_at = now + timedelta(minutes=settings.confirmation_ttl_minutes)

    try:
        async with session.begin():
            if await session.get(Photo, photo_id) is None:
                raise PhotoNotFound(str(photo_id))
            await ledger.retire_vote(session, identity.key)
            if settings.supersede_pending_tokens:
                await session.execute(
                    delete(PendingConfirmation)
                    .where(PendingConfirmation.voter_key == identity.key)
                    .execution_options(synchronize_session=False)
                )
            session.add(PendingConfirmation(
                token_hash=token_hash,
                voter_key=identity.key,
                identity_kind=identity.kind,
                voter_value=identity.value,
                photo_id=photo_id,
                expires_at=expires_at,
            ))
    except SQLAlchemyError as e:
        log.exception("confirmation_persist_failed", photo_id=str(photo_id), identity_kind=identity.kind)
        raise StorageError("Could not store confirmation") from e

    url = confirmation_url(token, photo_id)
    log.info("confirmation_issued", photo_id=str(photo_id), identity_kind=identity.kind, expires_at=expires_at.isoformat())

    if not isinstance(identity, EmailIdentity):
        return IssuedConfirmation(token, url, photo_id, expires_at, "direct")

    try:
        await notifier.send(identity.value, url)
    except NotificationError:
        log.warning("confirmation_delivery_failed", photo_id=str(photo_id), mandatory=settings.notification_mandatory)
        if settings.notification_mandatory:
            await _discard_token(session, token_hash)
            raise
        return IssuedConfirmation(token, url, photo_id, expires_at, "fallback")

    delivery: Delivery = "sent" if notifier.delivers_out_of_band else "logged"
    return IssuedConfirmation(token, url, photo_id, expires_at, delivery)


async def redeem_confirmation(
    session: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> RedeemedVote:
    """
    Redeem a confirmation token exactly once and record the vote.

    Claiming the token (DELETE ... RETURNING), retiring the voter's previous vote,
    inserting the new one and bumping the counter all happen in one transaction.
    An expired token, or one whose photo is gone, is still consumed before the error is raised.
    """
    now = now or datetime.now(dt_tz.utc)
    expired = photo_gone = False
    try:
        async with session.begin():
            claimed = (await session.execute(
                delete(PendingConfirmation)
                .where(PendingConfirmation.token_hash == hash_token(token))
                .returning(
                    PendingConfirmation.voter_key,
                    PendingConfirmation.identity_kind,
                    PendingConfirmation.voter_value,
                    PendingConfirmation.photo_id,
                    PendingConfirmation.expires_at,
                )
                .execution_options(synchronize_session=False)
            )).first()
            if claimed is None:
                raise TokenNotFound("Unknown or already used confirmation token")

            if now > _as_utc(claimed.expires_at):
                expired = True
            elif await session.get(Photo, claimed.photo_id) is None:
                # Entry was removed after the link went out; the link is spent either way
                photo_gone = True
            else:
                identity = parse_identity(claimed.identity_kind, claimed.voter_value)
                was_change = await ledger.cast_vote(session, identity, claimed.photo_id)
    except IntegrityError as e:
        log.warning("vote_redeem_conflict")
        raise VoteConflict("Another vote for this voter was recorded at the same time") from e
    except SQLAlchemyError as e:
        log.exception("vote_redeem_failed")
        raise StorageError("Could not record vote") from e

    if expired:
        log.info("confirmation_expired", photo_id=str(claimed.photo_id))
        raise TokenExpired("Confirmation token has expired")
    if photo_gone:
        log.info("confirmation_photo_gone", photo_id=str(claimed.photo_id))
        raise PhotoNotFound(str(claimed.photo_id))

    log.info("vote_redeemed", photo_id=str(claimed.photo_id), identity_kind=identity.kind, was_change=was_change)
    return RedeemedVote(photo_id=claimed.photo_id, was_change=was_change, identity=identity)


async def purge_expired(session: AsyncSession, *, now: datetime | None = None) -> int:
    """Delete confirmations past their expiry. Returns how many were removed."""
    now = now or datetime.now(dt_tz.utc)
    async with session.begin():
        res = await session.execute(
            delete(PendingConfirmation)
            .where(PendingConfirmation.expires_at < now)
            .execution_options(synchronize_session=False)
        )
    return int(res.rowcount or 0)
