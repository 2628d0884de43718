import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Tests run against a throwaway SQLite file unless TEST_DATABASE_URL says otherwise.
# This must be set before the application modules read their settings.
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'oneclick_test.db')}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("JWT_SECRET_KEY", "test-session-secret")

from oneclick.core.firebase import get_identity_provider  # noqa: E402
from oneclick.core.realtime import RealtimeChannel, get_realtime_channel  # noqa: E402
from oneclick.core.redis_client import LocalStorage, get_redis_client, role_key  # noqa: E402
from oneclick.core.security import create_session_token  # noqa: E402
from oneclick.core.storage import FileStorage, get_file_storage  # noqa: E402
from oneclick.database import get_db  # noqa: E402
from oneclick.main import app  # noqa: E402
from oneclick.models import metadata  # noqa: E402
from oneclick.schemas.users import ProviderUser  # noqa: E402

DEVICE_ID = "test-device"

# Use NullPool so every test gets fresh connections on its own event loop
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class InMemoryRedis:
    """Dict-backed stand-in for the handful of Redis commands the app uses."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def redis_store() -> InMemoryRedis:
    """Device storage backend shared by a test's requests."""
    return InMemoryRedis()


@pytest.fixture
def local_storage(redis_store: InMemoryRedis) -> LocalStorage:
    """Local storage for the test device."""
    return LocalStorage(redis_store, DEVICE_ID)


@pytest.fixture
def realtime() -> RealtimeChannel:
    """A fresh realtime channel per test."""
    return RealtimeChannel()


@pytest.fixture
def s3_client() -> MagicMock:
    """Mocked S3 client."""
    return MagicMock()


@pytest.fixture
def identity_provider() -> MagicMock:
    """Mocked identity provider adapter."""
    provider = MagicMock()
    provider.verify = AsyncMock(
        return_value=ProviderUser(
            id="client_uid_1",
            email="client@example.com",
            name="Casey Client",
        )
    )
    provider.update_avatar = AsyncMock()
    return provider


@pytest.fixture
def overrides(
    db_session: AsyncSession,
    redis_store: InMemoryRedis,
    realtime: RealtimeChannel,
    s3_client: MagicMock,
    identity_provider: MagicMock,
):
    """Dependency overrides for every remote collaborator."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: redis_store
    app.dependency_overrides[get_realtime_channel] = lambda: realtime
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_file_storage] = lambda: FileStorage(
        s3_client,
        bucket="volunteer-photos",
        public_base_url="https://cdn.example.com/volunteer-photos",
    )

    yield app.dependency_overrides

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(overrides) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def make_headers(user: ProviderUser) -> dict:
    """Authorization and device headers for ``user``."""
    token = create_session_token(user, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}", "X-Device-Id": DEVICE_ID}


@pytest.fixture
def volunteer_user() -> ProviderUser:
    return ProviderUser(
        id="volunteer_uid_1",
        email="vera@example.com",
        name="Vera Volunteer",
        image_url="https://img.example.com/vera.png",
    )


@pytest.fixture
def client_user() -> ProviderUser:
    return ProviderUser(id="client_uid_1", email="client@example.com", name="Casey Client")


@pytest.fixture
def volunteer_headers(volunteer_user: ProviderUser, local_storage: LocalStorage) -> dict:
    """Headers for a signed-in user who picked the volunteer role on this device."""
    local_storage.set_item(role_key(volunteer_user.id), "volunteer")
    return make_headers(volunteer_user)


@pytest.fixture
def client_headers(client_user: ProviderUser, local_storage: LocalStorage) -> dict:
    """Headers for a signed-in user who picked the client role on this device."""
    local_storage.set_item(role_key(client_user.id), "client")
    return make_headers(client_user)


@pytest.fixture
def sample_profile_data() -> dict:
    """Profile editor form."""
    return {
        "name": "Vera Volunteer",
        "email": "vera@example.com",
        "phone": "+911234567890",
        "bio": "Patient maths tutor and weekend cook",
        "hourly_rate": 500,
        "availability": "Weekends",
        "skills": ["Tutoring", "Cooking", " Tutoring "],
    }


@pytest.fixture
def sample_booking_data() -> dict:
    """Booking form without the volunteer id."""
    return {
        "date": "2026-11-20",
        "time": "10:30:00",
        "duration": 2,
        "message": "Help with algebra homework",
    }
