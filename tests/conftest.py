from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load environment variables from .env file
load_dotenv()

from hospitalrun.core.security import create_access_token
from hospitalrun.database import InMemoryAppointmentStore, get_store
from hospitalrun.main import app
from hospitalrun.schemas.auth import AuthenticatedUser, TenantId, UserRole
from hospitalrun.services.appointment_service import AppointmentService

TENANT_A = TenantId(hospital_id="hospital-1", organization_id="org-1")
TENANT_B = TenantId(hospital_id="hospital-2", organization_id="org-1")


def make_user(
    role: UserRole = UserRole.ADMIN,
    tenant: TenantId = TENANT_A,
    user_id: str = "user-1",
) -> AuthenticatedUser:
    """Build a caller identity for service-level tests."""
    return AuthenticatedUser(id=user_id, role=role, tenant=tenant)


def make_auth_headers(user: AuthenticatedUser) -> dict:
    """Mint a bearer token header for ``user``."""
    token = create_access_token(
        data={
            "sub": user.id,
            "role": user.role.value,
            "hospital_id": user.tenant.hospital_id,
            "organization_id": user.tenant.organization_id,
        },
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store() -> InMemoryAppointmentStore:
    """Create an empty appointment store."""
    return InMemoryAppointmentStore()


@pytest.fixture
def service(store: InMemoryAppointmentStore) -> AppointmentService:
    """Create an appointment service over the test store."""
    return AppointmentService(store)


@pytest.fixture
def admin() -> AuthenticatedUser:
    """Admin of tenant A."""
    return make_user()


@pytest.fixture
def other_tenant_admin() -> AuthenticatedUser:
    """Admin of tenant B."""
    return make_user(tenant=TENANT_B, user_id="user-2")


@pytest_asyncio.fixture
async def client(store: InMemoryAppointmentStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by a fresh store."""
    app.dependency_overrides[get_store] = lambda: store
    app.state.rate_limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    app.state.rate_limiter.reset()


@pytest.fixture
def auth_headers(admin: AuthenticatedUser) -> dict:
    """Authentication headers for an admin of tenant A."""
    return make_auth_headers(admin)


@pytest.fixture
def other_tenant_headers(other_tenant_admin: AuthenticatedUser) -> dict:
    """Authentication headers for an admin of tenant B."""
    return make_auth_headers(other_tenant_admin)


@pytest.fixture
def receptionist_headers() -> dict:
    """Authentication headers for a receptionist of tenant A."""
    return make_auth_headers(make_user(role=UserRole.RECEPTIONIST, user_id="user-3"))


@pytest.fixture
def nurse_headers() -> dict:
    """Authentication headers for a nurse of tenant A."""
    return make_auth_headers(make_user(role=UserRole.NURSE, user_id="user-4"))


@pytest.fixture
def sample_appointment_data() -> dict:
    """Sample appointment data for testing."""
    return {
        "patient_id": "P1",
        "doctor_id": "D1",
        "date": "2024-01-15",
        "time": "09:00",
        "duration_minutes": 30,
        "type": "consultation",
        "notes": "First time patient",
        "symptoms": "Headache",
    }


@pytest.fixture
def user_factory():
    """Factory for caller identities."""
    return make_user


@pytest.fixture
def headers_factory():
    """Factory for bearer token headers."""
    return make_auth_headers
