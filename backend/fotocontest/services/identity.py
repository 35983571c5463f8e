from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Literal, Union
from email_validator import validate_email, EmailNotValidError
from fotocontest.errors import ValidationError

IdentityKind = Literal["email", "fingerprint"]

_FINGERPRINT_RE = re.compile(r"^[A-Za-z0-9_-]{8,128}$")


@dataclass(frozen=True)
class EmailIdentity:
    value: str
    kind: IdentityKind = "email"

    @property
    def key(self) -> str:
        return f"email:{self.value.lower()}"


@dataclass(frozen=True)
class FingerprintIdentity:
    value: str
    kind: IdentityKind = "fingerprint"

    @property
    def key(self) -> str:
        return f"fingerprint:{self.value}"


VoterIdentity = Union[EmailIdentity, FingerprintIdentity]


def parse_identity(kind: str, value: str) -> VoterIdentity:
    """
    Build a VoterIdentity from untrusted input.
    Emails are normalized by email-validator (no DNS lookup); fingerprints are
    opaque client-generated ids and are kept verbatim.
    """
    value = (value or "").strip()
    if kind == "email":
        try:
            info = validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError(f"Invalid email address: {e}") from e
        return EmailIdentity(info.normalized)
    if kind == "fingerprint":
        if not _FINGERPRINT_RE.match(value):
            raise ValidationError("Invalid device fingerprint")
        return FingerprintIdentity(value)
    raise ValidationError(f"Unknown identity kind: {kind!r}")
