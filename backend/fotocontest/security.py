from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from fastapi import Request, Response
from passlib.context import CryptContext
from fotocontest.config import settings
from fotocontest.services.identity import VoterIdentity, parse_identity
from fotocontest.errors import ValidationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALG = "HS256"

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)

def _make_token(sub: str, ttl_min: int, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "iat": now.timestamp(),  # Use float for microsecond precision
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def make_access_token(sub: str) -> str:
    return _make_token(sub, settings.access_ttl_min, "access")

def make_refresh_token(sub: str) -> str:
    return _make_token(sub, settings.refresh_ttl_min, "refresh")

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])


class VoterIdentityCache:
    """
    Remembers which identity voted from this browser, in a signed cookie.
    Read failures (missing, expired, tampered) all read as "no voter".
    """

    token_type = "voter"

    def __init__(self, cookie_name: str | None = None, max_age_days: int | None = None):
        self.cookie_name = cookie_name or settings.voter_cookie_name
        self.max_age_days = max_age_days or settings.voter_cookie_max_age_days

    def read(self, request: Request) -> VoterIdentity | None:
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return None
        try:
            data = decode_token(raw)
        except jwt.InvalidTokenError:
            return None
        if data.get("type") != self.token_type:
            return None
        try:
            return parse_identity(data.get("kind", ""), data.get("sub", ""))
        except ValidationError:
            return None

    def write(self, response: Response, identity: VoterIdentity) -> None:
        now = datetime.now(timezone.utc)
        max_age = self.max_age_days * 86400
        value = jwt.encode(
            {
                "sub": identity.value,
                "kind": identity.kind,
                "type": self.token_type,
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(seconds=max_age)).timestamp()),
            },
            settings.jwt_secret,
            algorithm=JWT_ALG,
        )
        response.set_cookie(
            self.cookie_name,
            value,
            max_age=max_age,
            httponly=True,
            secure=settings.voter_cookie_secure,
            samesite="lax",
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name, httponly=True, secure=settings.voter_cookie_secure, samesite="lax")
