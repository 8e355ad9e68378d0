from __future__ import annotations

import io
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import UploadFile
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import wardrobe.models  # noqa: E402,F401
from wardrobe.core.config import get_settings  # noqa: E402
from wardrobe.core.db import create_engine, get_session  # noqa: E402
from wardrobe.models.base import Base  # noqa: E402
from wardrobe.services.media import MediaStore  # noqa: E402


def png_bytes(*, width: int = 8, height: int = 8, color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest_asyncio.fixture
async def db_engine(tmp_path, monkeypatch) -> AsyncIterator[AsyncEngine]:
    db_path = tmp_path / "test.db"
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("APP_STORAGE_DIR", str(storage_dir))
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://testserver/")
    monkeypatch.setenv("AUDIT_ACTOR", "tester")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", str(64 * 1024))
    get_settings.cache_clear()

    engine = create_engine(f"sqlite+aiosqlite:///{db_path}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def media_store(db_engine: AsyncEngine) -> MediaStore:
    settings = get_settings()
    store = MediaStore(settings.app_storage_dir, max_upload_bytes=settings.max_upload_bytes)
    store.ensure_dirs()
    return store


@pytest.fixture
def stored_files(media_store: MediaStore) -> Callable[[], list[Path]]:
    def _list() -> list[Path]:
        return sorted(p for p in media_store.upload_dir.rglob("*") if p.is_file())

    return _list


@pytest.fixture
def make_upload() -> Callable[..., UploadFile]:
    def _make(filename: str = "photo.png", content: bytes | None = None, color: str = "red") -> UploadFile:
        data = png_bytes(color=color) if content is None else content
        return UploadFile(file=io.BytesIO(data), filename=filename)

    return _make


@pytest_asyncio.fixture
async def client(
    db_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[httpx.AsyncClient]:
    from wardrobe.main import create_app

    app = create_app()
    app.state.media_store.ensure_dirs()

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
