from __future__ import annotations
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fotocontest.config import settings
from fotocontest.db import get_session
from fotocontest import errors
from fotocontest.schemas.vote import (
    VoteRequest,
    VoteRequestAccepted,
    ConfirmRequest,
    VoteConfirmed,
    MyVote,
)
from fotocontest.security import VoterIdentityCache
from fotocontest.services import ledger
from fotocontest.services.confirmations import issue_confirmation, redeem_confirmation
from fotocontest.services.identity import parse_identity
from fotocontest.services.notifier import Notifier, get_notifier

router = APIRouter(prefix="/votes", tags=["votes"])

def get_voter_cache() -> VoterIdentityCache:
    return VoterIdentityCache()

@router.post("/request", response_model=VoteRequestAccepted, status_code=202)
async def request_vote(
    payload: VoteRequest,
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        identity = parse_identity(payload.identity.kind, payload.identity.value)
        issued = await issue_confirmation(session, notifier, identity, payload.photo_id)
    except errors.ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except errors.PhotoNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")
    except errors.StorageError:
        raise HTTPException(status_code=503, detail="Your vote could not be started, please try again")
    except errors.NotificationError:
        raise HTTPException(status_code=502, detail="Confirmation email could not be sent, please try again")
    return VoteRequestAccepted(
        photo_id=issued.photo_id,
        expires_at=issued.expires_at,
        delivery=issued.delivery,
        confirmation_url=issued.confirmation_url if issued.expose_url else None,
    )

@router.post("/confirm", response_model=VoteConfirmed)
async def confirm_vote(
    payload: ConfirmRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
    cache: VoterIdentityCache = Depends(get_voter_cache),
):
    try:
        vote = await redeem_confirmation(session, payload.token)
    except errors.TokenNotFound:
        raise HTTPException(status_code=404, detail="Confirmation link is invalid or was already used")
    except errors.TokenExpired:
        raise HTTPException(status_code=410, detail="Confirmation link has expired")
    except errors.PhotoNotFound:
        raise HTTPException(status_code=404, detail="Photo no longer exists")
    except errors.VoteConflict:
        raise HTTPException(status_code=409, detail="Your vote is being processed, please try again")
    except errors.StorageError:
        raise HTTPException(status_code=503, detail="Your vote could not be recorded, please try again")
    cache.write(response, vote.identity)
    return VoteConfirmed(photo_id=vote.photo_id, was_change=vote.was_change, message=vote.message)

@router.get("/confirm")
async def confirm_vote_link(
    token: str = Query(..., min_length=16, max_length=128),
    photo_id: str | None = Query(default=None, alias="photoId"),
    session: AsyncSession = Depends(get_session),
    cache: VoterIdentityCache = Depends(get_voter_cache),
):
    """
    Target of the emailed link. Redeems and redirects to the gallery with the
    outcome in ?vote=..., so the token does not stay in the address bar.
    photoId is informational; the token record names the photo.
    """
    outcome = "counted"
    vote = None
    try:
        vote = await redeem_confirmation(session, token)
        outcome = "changed" if vote.was_change else "counted"
    except (errors.TokenNotFound, errors.PhotoNotFound):
        outcome = "invalid"
    except errors.TokenExpired:
        outcome = "expired"
    except (errors.VoteConflict, errors.StorageError):
        outcome = "error"
    params = {"vote": outcome}
    if vote is not None:
        params["photoId"] = str(vote.photo_id)
    redirect = RedirectResponse(f"{settings.frontend_base_url.rstrip('/')}/?{urlencode(params)}", status_code=303)
    if vote is not None:
        cache.write(redirect, vote.identity)
    return redirect

@router.get("/me", response_model=MyVote)
async def my_vote(
    request: Request,
    session: AsyncSession = Depends(get_session),
    cache: VoterIdentityCache = Depends(get_voter_cache),
):
    identity = cache.read(request)
    if identity is None:
        return MyVote()
    vote = await ledger.find_vote(session, identity)
    return MyVote(identity_kind=identity.kind, photo_id=vote.photo_id if vote else None)

@router.delete("/me", status_code=204)
async def forget_me(response: Response, cache: VoterIdentityCache = Depends(get_voter_cache)):
    cache.clear(response)
    return None
