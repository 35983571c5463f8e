from __future__ import annotations
import io
from PIL import Image, UnidentifiedImageError
from fotocontest.config import settings
from fotocontest.errors import ValidationError, UploadTooLarge


ALLOWED_MIME = {"image/jpeg", "image/png", "image/gif"}
MIME_FOR_FORMAT = {"JPEG": "image/jpeg", "PNG": "image/png", "GIF": "image/gif"}
EXT_FOR_MIME = {"image/jpeg": "jpg", "image/png": "png", "image/gif": "gif"}

def sniff_mime(data: bytes) -> str | None:
    # Trust the bytes, not the client's Content-Type
    try:
        with Image.open(io.BytesIO(data)) as img:
            return MIME_FOR_FORMAT.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None

def validate_upload(data: bytes, max_bytes: int | None = None) -> str:
    """
    Check an uploaded photo before anything is stored.
    Returns the detected mime type; raises UploadTooLarge / ValidationError.
    """
    limit = max_bytes or settings.upload_max_bytes
    if len(data) > limit:
        shown = f"{limit // (1024 * 1024)}MB" if limit >= 1024 * 1024 else f"{limit} byte"
        raise UploadTooLarge(f"File exceeds {shown} limit")
    if not data:
        raise ValidationError("Empty file")
    mime = sniff_mime(data)
    if mime not in ALLOWED_MIME:
        raise ValidationError("Unsupported image type (JPEG, PNG or GIF only)")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()  # basic integrity
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("Invalid image file") from e
    return mime

def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")
