"""
Catdex — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file and image directory under
       pytest's tmp_path, so tests never share state or touch ./image.

Fixture Hierarchy (all function-scoped):
    settings ─┬─ pool ─────┐
              ├─ executor ─┼─ app ── test_client
              └─ ingestor ─┘
    sample_image_bytes, make_upload
"""

import io
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import UploadFile

from catdex.config import Settings
from catdex.database import Base, ConnectionPool
from catdex.main import create_app
from catdex.services.upload_service import UploadIngestor
from catdex.workers import BlockingExecutor


@pytest.fixture
def settings(tmp_path) -> Settings:
    """
    Settings pointing at a per-test SQLite file and image directory.

    _env_file=None: a developer's .env must not leak into tests.
    """
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>Catdex</h1>")
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'catdex.db'}",
        db_pool_size=2,
        db_pool_timeout=2.0,
        blocking_workers=4,
        static_dir=str(static_dir),
        image_dir=str(tmp_path / "image"),
        log_level="WARNING",
    )


@pytest.fixture
def pool(settings):
    """Connection pool with the cats table created (schema is normally Alembic's job)."""
    pool = ConnectionPool.from_settings(settings)
    Base.metadata.create_all(pool.engine)
    yield pool
    pool.dispose()


@pytest.fixture
def executor():
    executor = BlockingExecutor(max_workers=4)
    yield executor
    executor.shutdown()


@pytest.fixture
def ingestor(settings, executor) -> UploadIngestor:
    return UploadIngestor(
        image_dir=settings.image_dir,
        url_prefix=settings.image_url_prefix,
        max_bytes=settings.max_upload_bytes,
        executor=executor,
    )


@pytest.fixture
def app(settings, pool, executor):
    return create_app(settings, pool=pool, executor=executor)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app (no server needed).

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/cats")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_image_bytes() -> bytes:
    """PNG signature plus a few bytes. Content is never inspected by the service."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"catdex-test-image"


@pytest.fixture
def make_upload():
    """Factory for in-memory Starlette UploadFile objects."""

    def _make(data: bytes, filename: str = "cat.png", size: Optional[int] = -1) -> UploadFile:
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            size=len(data) if size == -1 else size,
        )

    return _make
