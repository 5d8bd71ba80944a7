"""
Shelter Pets Backend: Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    ├── clock:            FakeClock pinned to a fixed UTC instant, advanceable
    ├── repository:       InMemoryPetRepository (no database needed)
    ├── temp_storage:     Temporary directory for image files
    ├── files:            FileService rooted at temp_storage
    ├── pet_service:      PetService wired to the three above
    ├── sample_image_bytes: Minimal JPEG bytes
    ├── sqlite_session:   AsyncSession on an in-memory aiosqlite database
    └── test_client:      HTTPX AsyncClient against the app, PetService overridden
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

# Settings are read at import time, so the environment is set first
_TEST_DIR = tempfile.mkdtemp(prefix="petshelter_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "uploads")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from petshelter.database import Base
from petshelter.models.pet import Pet
from petshelter.repositories.pet_repository import PetRepository
from petshelter.services.file_service import FileService
from petshelter.services.pet_service import PetService


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryPetRepository(PetRepository):
    """PetRepository over a dict; records are shared objects like an identity map."""

    def __init__(self):
        self.pets: Dict[uuid.UUID, Pet] = {}
        self.fail_with: Optional[Exception] = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def add(self, pet: Pet) -> Pet:
        self._maybe_fail()
        if pet.id is None:
            pet.id = uuid.uuid4()
        self.pets[pet.id] = pet
        return pet

    async def get(self, pet_id: uuid.UUID) -> Optional[Pet]:
        self._maybe_fail()
        return self.pets.get(pet_id)

    async def list_newest_first(self) -> List[Pet]:
        self._maybe_fail()
        return sorted(self.pets.values(), key=lambda p: p.created_at, reverse=True)

    async def save(self, pet: Pet) -> Pet:
        self._maybe_fail()
        self.pets[pet.id] = pet
        return pet

    async def delete(self, pet_id: uuid.UUID) -> bool:
        self._maybe_fail()
        return self.pets.pop(pet_id, None) is not None


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryPetRepository()


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def files(temp_storage):
    return FileService(storage_root=temp_storage)


@pytest.fixture
def pet_service(repository, files, clock):
    return PetService(repository=repository, files=files, clock=clock)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def rex_data():
    return {"name": "Rex", "species": "dog", "age": 2, "personality": "calm"}


@pytest_asyncio.fixture
async def sqlite_session():
    """AsyncSession on a private in-memory SQLite database with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(repository, clock):
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    get_pet_service is overridden with a PetService over the in-memory
    repository and fake clock; images go to the STORAGE_ROOT set above so
    /uploads serves them.
    """
    from petshelter.main import app
    from petshelter.routes.pets import get_pet_service
    from petshelter.services.file_service import file_service

    service = PetService(repository=repository, files=file_service, clock=clock)
    app.dependency_overrides[get_pet_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
