from __future__ import annotations


class ContestError(Exception):
    """Base for failures the vote and photo services report to their callers."""


class ValidationError(ContestError):
    pass


class UploadTooLarge(ValidationError):
    pass


class NotFoundError(ContestError):
    pass


class PhotoNotFound(NotFoundError):
    pass


class TokenNotFound(NotFoundError):
    pass


class ExpiredError(ContestError):
    pass


class TokenExpired(ExpiredError):
    pass


class VoteConflict(ContestError):
    """Another redemption for the same voter committed first."""


class StorageError(ContestError):
    pass


class NotificationError(ContestError):
    pass
