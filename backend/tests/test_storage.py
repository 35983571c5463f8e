import io

import pytest
from PIL import Image
from sqlalchemy.exc import OperationalError

from fotocontest.config import settings
from fotocontest.errors import StorageError
from fotocontest.main import app
from fotocontest.security import make_access_token
from fotocontest.services.photos import create_photo
from fotocontest.services.storage import ObjectStorage, get_storage, public_url_for

# Nothing listens on the discard port, so every call is refused
UNREACHABLE = "http://127.0.0.1:9"


def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (0, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


def _unreachable_storage() -> ObjectStorage:
    return ObjectStorage(UNREACHABLE, "minioadmin", "minioadmin", "fotocontest-photos-test", timeout=0.5)


def test_unreachable_store_raises_storage_error():
    storage = _unreachable_storage()
    with pytest.raises(StorageError):
        storage.put_bytes("photos/a.png", b"x", "image/png")
    with pytest.raises(StorageError):
        storage.get_bytes("photos/a.png")
    with pytest.raises(StorageError):
        storage.delete("photos/a.png")


@pytest.mark.asyncio
async def test_upload_while_store_is_down_is_503(client, storage):
    app.dependency_overrides[get_storage] = _unreachable_storage
    r = await client.post(
        "/admin/photos",
        data={"first_name": "Lena", "last_name": "Schmidt"},
        files={"file": ("a.png", _png(), "image/png")},
        headers={"Authorization": f"Bearer {make_access_token(settings.admin_email)}"},
    )
    assert r.status_code == 503
    assert r.json()["detail"] == "Photo could not be saved, please try again"


@pytest.mark.asyncio
async def test_failed_insert_removes_uploaded_blob(session_factory, storage, ledger_state, monkeypatch):
    async with session_factory() as session:
        async def failing_commit():
            raise OperationalError("INSERT INTO photos", {}, Exception("disk I/O error"))

        monkeypatch.setattr(session, "commit", failing_commit)
        with pytest.raises(StorageError):
            await create_photo(
                session, storage,
                first_name="Lena", last_name="Schmidt", email=None, data=_png(),
            )
    assert storage.objects == {}
    assert (await ledger_state())["counts"] == {}


def test_public_url_only_when_bucket_is_public():
    settings.s3_public_base_url = "https://cdn.example.com/bucket/"
    settings.serve_media_via_api = True
    assert public_url_for("photos/a.png") is None
    settings.serve_media_via_api = False
    assert public_url_for("photos/a.png") == "https://cdn.example.com/bucket/photos/a.png"
