from __future__ import annotations
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fotocontest.config import settings
from fotocontest.security import decode_token

security = HTTPBearer(auto_error=False)

async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Single configured operator account; returns the admin email."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing access token")
    try:
        data = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access":
        raise HTTPException(status_code=401, detail="Wrong token type")
    if (data.get("sub") or "").lower() != settings.admin_email.lower():
        raise HTTPException(status_code=403, detail="Not an administrator")
    return data["sub"]
