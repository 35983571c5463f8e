import io
from urllib.parse import urlsplit, parse_qs

import pytest
from PIL import Image

from fotocontest.config import settings
from fotocontest.security import hash_password, make_access_token, make_refresh_token


def _image(fmt: str = "PNG", size=(32, 24)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 80, 40)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_access_token(settings.admin_email)}"}


async def _upload(client, headers, data: bytes, filename="photo.png", content_type="image/png", **fields):
    form = {"first_name": "Lena", "last_name": "Schmidt", "email": "lena@example.com"}
    form.update(fields)
    return await client.post(
        "/admin/photos",
        data=form,
        files={"file": (filename, data, content_type)},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_login_and_refresh(client):
    settings.admin_password_hash = hash_password("correct horse")

    r = await client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert r.status_code == 401
    r = await client.post("/auth/login", json={"email": "someone@example.com", "password": "correct horse"})
    assert r.status_code == 401

    r = await client.post("/auth/login", json={"email": "Admin@Example.com", "password": "correct horse"})
    assert r.status_code == 200
    pair = r.json()

    r = await client.get("/admin/photos", headers={"Authorization": f"Bearer {pair['access']}"})
    assert r.status_code == 200

    r = await client.post("/auth/refresh", headers={"Authorization": f"Bearer {pair['access']}"})
    assert r.status_code == 401
    r = await client.post("/auth/refresh", headers={"Authorization": f"Bearer {pair['refresh']}"})
    assert r.status_code == 200
    assert set(r.json()) == {"access", "refresh"}


@pytest.mark.asyncio
async def test_login_disabled_without_password_hash(client):
    settings.admin_password_hash = ""
    r = await client.post("/auth/login", json={"email": "admin@example.com", "password": ""})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_require_admin_access_token(client):
    assert (await client.get("/admin/photos")).status_code == 401
    r = await client.get("/admin/photos", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401
    r = await client.get("/admin/photos", headers={"Authorization": f"Bearer {make_refresh_token(settings.admin_email)}"})
    assert r.status_code == 401
    r = await client.get("/admin/photos", headers={"Authorization": f"Bearer {make_access_token('visitor@example.com')}"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_upload_png_and_serve_it(client, admin_headers, storage):
    data = _image("PNG")
    r = await _upload(client, admin_headers, data)
    assert r.status_code == 201
    photo = r.json()
    assert photo["votes"] == 0
    assert photo["mime_type"] == "image/png"
    assert photo["email"] == "lena@example.com"
    assert photo["image_url"] == f"/photos/{photo['id']}/image"
    (key,) = storage.objects
    assert key.startswith("photos/") and key.endswith(".png")

    gallery = (await client.get("/photos")).json()
    assert gallery[0]["display_name"] == "Lena Schmidt"
    assert "email" not in gallery[0]

    r = await client.get(photo["image_url"])
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content == data


@pytest.mark.asyncio
async def test_upload_uses_public_bucket_url_when_configured(client, admin_headers):
    settings.serve_media_via_api = False
    settings.s3_public_base_url = "https://cdn.example.com/fotocontest-photos"
    r = await _upload(client, admin_headers, _image("GIF"), filename="a.gif", content_type="image/gif")
    assert r.status_code == 201
    url = r.json()["image_url"]
    assert url.startswith("https://cdn.example.com/fotocontest-photos/photos/")
    assert url.endswith(".gif")


@pytest.mark.asyncio
async def test_upload_sniffs_bytes_not_content_type(client, admin_headers):
    r = await _upload(client, admin_headers, b"%PDF-1.4 definitely not a photo", content_type="image/jpeg")
    assert r.status_code == 422

    r = await _upload(client, admin_headers, _image("BMP"), filename="x.bmp", content_type="image/png")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_upload_too_large(client, admin_headers, storage):
    settings.upload_max_bytes = 64
    r = await _upload(client, admin_headers, _image("PNG", size=(256, 256)))
    assert r.status_code == 413
    assert storage.objects == {}


@pytest.mark.asyncio
async def test_edit_photo(client, admin_headers, make_photo):
    photo = await make_photo()
    r = await client.patch(f"/admin/photos/{photo}", json={"last_name": "Yusuf-Berg"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["first_name"] == "Amina"
    assert r.json()["last_name"] == "Yusuf-Berg"

    r = await client.patch(f"/admin/photos/{photo}", json={"email": "broken"}, headers=admin_headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_delete_photo_removes_votes_and_links(client, admin_headers, notifier, ledger_state):
    r = await _upload(client, admin_headers, _image("JPEG"), filename="a.jpg", content_type="image/jpeg")
    photo = r.json()["id"]

    await client.post("/votes/request", json={"photo_id": photo, "identity": {"kind": "email", "value": "a@example.com"}})
    await client.post("/votes/request", json={"photo_id": photo, "identity": {"kind": "email", "value": "b@example.com"}})
    (_, url_a), (_, url_b) = notifier.sent
    token_a = parse_qs(urlsplit(url_a).query)["token"][0]
    token_b = parse_qs(urlsplit(url_b).query)["token"][0]
    assert (await client.post("/votes/confirm", json={"token": token_a})).status_code == 200

    r = await client.delete(f"/admin/photos/{photo}", headers=admin_headers)
    assert r.status_code == 204
    state = await ledger_state()
    assert state == {"counts": {}, "votes": [], "pending": 0}

    assert (await client.post("/votes/confirm", json={"token": token_b})).status_code == 404
    assert (await client.get(f"/photos/{photo}/image")).status_code == 404
    assert (await client.delete(f"/admin/photos/{photo}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_admin_listing_includes_owner_email(client, admin_headers, make_photo):
    await make_photo("Xaver", "Berg", votes=1)
    await make_photo("Yara", "Tal", votes=4)
    rows = (await client.get("/admin/photos", headers=admin_headers)).json()
    assert [r["first_name"] for r in rows] == ["Yara", "Xaver"]
    assert rows[0]["email"] == "yara@example.com"
