"""Pytest configuration and shared fixtures."""

import os
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

# Set required environment variables for testing BEFORE importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import Base, get_db
from app.api.deps import get_completion_client, get_extractor, get_storage
from app.services.extraction import TextExtractor
from app.services.storage import StorageService

# Long enough to be labelled high confidence
LONG_ANSWER = (
    "The fund maintains a dedicated ESG team of four analysts who report directly to the "
    "Chief Investment Officer. The team reviews every investment against the firm's "
    "responsible investment policy and publishes an annual stewardship report."
)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> StorageService:
    """Storage rooted at a per-test data directory."""
    return StorageService(tmp_path)


@pytest.fixture
def extractor(storage) -> TextExtractor:
    return TextExtractor(storage)


@pytest.fixture
def llm() -> AsyncMock:
    """Completion client fake returning a fixed, detailed answer."""
    mock = AsyncMock()
    mock.complete.return_value = LONG_ANSWER
    return mock


@pytest.fixture
def write_file(storage):
    """Write a file into the data directory and return its name."""
    def _write(name: str, content: str | bytes) -> str:
        data = content.encode() if isinstance(content, str) else content
        (storage.data_dir / name).write_bytes(data)
        return name

    return _write


@pytest_asyncio.fixture
async def client(session_maker, llm, extractor, storage):
    """HTTP client against the app with the database and collaborators overridden."""
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: llm
    app.dependency_overrides[get_extractor] = lambda: extractor
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
