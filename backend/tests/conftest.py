import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-for-fotocontest-signing-key")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("FRONTEND_BASE_URL", "https://fotocontest.example.com")

import httpx
import pytest
from sqlalchemy import event, select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from fotocontest.config import settings
from fotocontest.db import Base, get_session
from fotocontest.errors import NotificationError
from fotocontest.main import app
from fotocontest.models.confirmation import PendingConfirmation
from fotocontest.models.photo import Photo
from fotocontest.models.vote import Vote
from fotocontest.services.notifier import get_notifier
from fotocontest.services.storage import get_storage


class RecordingNotifier:
    """Captures confirmation links instead of mailing them; can be told to fail."""

    delivers_out_of_band = True

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send(self, email: str, confirmation_url: str) -> None:
        if self.fail:
            raise NotificationError("smtp unavailable")
        self.sent.append((email, confirmation_url))


class InMemoryStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = (data, content_type)

    def get_bytes(self, key: str) -> tuple[bytes, str]:
        try:
            return self.objects[key]
        except KeyError:
            raise FileNotFoundError(key)

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)


@pytest.fixture(autouse=True)
def restore_settings():
    snapshot = settings.model_dump()
    yield
    for key, value in snapshot.items():
        setattr(settings, key, value)


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
async def client(session_factory, notifier, storage):
    async def _get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_photo(session_factory):
    async def _make(first_name="Amina", last_name="Yusuf", votes=0):
        async with session_factory() as session:
            p = Photo(
                first_name=first_name,
                last_name=last_name,
                email=f"{first_name.lower()}@example.com",
                image_url="https://cdn.example.com/photo.jpg",
                votes=votes,
            )
            session.add(p)
            await session.commit()
            return p.id
    return _make


@pytest.fixture
def ledger_state(session_factory):
    """Snapshot of {photo_id: votes}, the vote rows and the pending token count."""
    async def _state():
        async with session_factory() as session:
            counts = dict((await session.execute(select(Photo.id, Photo.votes))).all())
            votes = (await session.execute(select(Vote.voter_key, Vote.photo_id))).all()
            pending = await session.scalar(select(func.count()).select_from(PendingConfirmation))
            return {"counts": counts, "votes": sorted((k, str(p)) for k, p in votes), "pending": int(pending or 0)}
    return _state


@pytest.fixture
async def concurrent_session_factory(tmp_path):
    """
    File-backed SQLite with one connection per session, so transactions really overlap.
    BEGIN IMMEDIATE takes the write lock up front; competing writers wait on the busy timeout.
    """
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", connect_args={"timeout": 15})

    @event.listens_for(eng.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, expire_on_commit=False)
    await eng.dispose()
