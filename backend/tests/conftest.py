"""
Pytest configuration and fixtures for backend tests.
"""
import datetime
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from securedrive.main import app
from securedrive.core.database import Base, get_db
from securedrive.core.security import create_access_token, hash_password
from securedrive.crypto.homomorphic.paillier import derive_key_pair
from securedrive.ledger.world_state import InMemoryWorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.criteria import CriteriaWeights
from securedrive.services.criteria_service import CriteriaService
from securedrive.services.key_service import KeyService
from securedrive.services.trip_service import TripService
from securedrive.services.vehicle_service import VehicleService


# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Mersenne primes: gcd(N, lambda) = 1 and N is large enough for the
# aggregation headroom check.
P = 2**31 - 1
Q = 2**61 - 1

OWNER = "alice"

TRIP_DATE = datetime.date(2024, 3, 14)

SCENARIO_VEHICLE = {"vehicle_type": 1, "purchase_mileage": 50000, "year": 2020}

SCENARIO_TRIP = {
    "speeding": 3,
    "hard_accelerations": 1,
    "emergency_brakes": 0,
    "unsafe_distance": 2,
    "high_risk_zones": 0,
    "traffic_signal_compliance": 4,
    "night_driving": 1,
    "mileage": 100,
}

# 1 + 50000 + 2020 + 5*100 + 2*(-2)
SCENARIO_PREMIUM = 52517


@pytest.fixture
def key_pair():
    """Verifier/Decryptor pair over a ~92-bit modulus."""
    return derive_key_pair(P, Q, OWNER)


@pytest.fixture
def verifier(key_pair):
    return key_pair[0]


@pytest.fixture
def decryptor(key_pair):
    return key_pair[1]


@pytest.fixture
def small_key_pair():
    """N = 143, for wrap-around behavior."""
    return derive_key_pair(11, 13, "tiny")


@pytest.fixture
def weights() -> CriteriaWeights:
    return CriteriaWeights(
        criteria_weights_id="cw1",
        weight_traffic=3,
        weight_speed=2,
        weight_acceleration=1,
        weight_braking=1,
        weight_distance=1,
        weight_zone=1,
        weight_time=1,
        alpha=5,
        beta=2,
    )


@pytest.fixture
def state() -> InMemoryWorldState:
    return InMemoryWorldState()


@pytest_asyncio.fixture
async def seeded_state(state: InMemoryWorldState, weights: CriteriaWeights) -> InMemoryWorldState:
    """World state holding keys, one vehicle, one trip and criteria weights."""
    await KeyService(state).register_key_pair(OWNER, P, Q)
    await VehicleService(state).add_vehicle("v1", owner_id=OWNER, **SCENARIO_VEHICLE)
    await TripService(state).add_trip("v1", "t1", TRIP_DATE, dict(SCENARIO_TRIP))
    await CriteriaService(state).add_criteria_weights(weights)
    return state


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with the test database."""
    async def override_get_db():
        try:
            yield test_db
        except Exception:
            await test_db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, name: str, role: UserRole) -> User:
    user = User(
        name=name,
        hashed_password=hash_password("correct-horse"),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user: User) -> dict:
    token = create_access_token({"sub": user.name, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_client_user(test_db: AsyncSession) -> User:
    """Create a client account named after the key owner."""
    return await _create_user(test_db, OWNER, UserRole.CLIENT)


@pytest_asyncio.fixture
async def test_insurer(test_db: AsyncSession) -> User:
    """Create an insurer account."""
    return await _create_user(test_db, "insurer", UserRole.INSURER)


@pytest_asyncio.fixture
async def auth_headers(test_client_user: User) -> dict:
    """Authentication headers for the client account."""
    return _headers(test_client_user)


@pytest_asyncio.fixture
async def insurer_headers(test_insurer: User) -> dict:
    """Authentication headers for the insurer account."""
    return _headers(test_insurer)


@pytest_asyncio.fixture
async def other_client_headers(test_db: AsyncSession) -> dict:
    """Authentication headers for a client who owns nothing."""
    return _headers(await _create_user(test_db, "bob", UserRole.CLIENT))
