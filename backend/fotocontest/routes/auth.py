from __future__ import annotations
import jwt
from fastapi import APIRouter, HTTPException, Header
from fotocontest.config import settings
from fotocontest.schemas.auth import LoginRequest, TokenPair
from fotocontest.security import verify_password, make_access_token, make_refresh_token, decode_token

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest):
    if payload.email.lower() != settings.admin_email.lower() or not verify_password(payload.password, settings.admin_password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    sub = settings.admin_email
    return TokenPair(access=make_access_token(sub), refresh=make_refresh_token(sub))

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Wrong token type")
    sub = data.get("sub")
    if (sub or "").lower() != settings.admin_email.lower():
        raise HTTPException(status_code=401, detail="Invalid token")
    return TokenPair(access=make_access_token(sub), refresh=make_refresh_token(sub))
