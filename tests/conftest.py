"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

# Configure settings before the app is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SUPABASE_URL"] = "http://localhost:54321"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["RETRY_DELAY_SECONDS"] = "0"

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.access import get_user_permissions
from app.core.context import RequestContext
from app.core.dependencies import get_user_supabase
from app.database.supabase_client import get_service_supabase, get_session_supabase, get_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache
from app.modules.profiles.schemas import Profile
from tests.fakes import FakeSupabase


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Fresh in-memory Supabase for each test."""
    return FakeSupabase()


@pytest.fixture
def admin(fake_supabase: FakeSupabase):
    return fake_supabase.seed_user("admin@example.com", role="admin", full_name="Ada Admin")


@pytest.fixture
def moderator(fake_supabase: FakeSupabase):
    return fake_supabase.seed_user("mod@example.com", role="moderator", full_name="Mo Moderator")


@pytest.fixture
def member(fake_supabase: FakeSupabase):
    return fake_supabase.seed_user("member@example.com", full_name="Mia Member")


@pytest.fixture
async def client(fake_supabase: FakeSupabase) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with every Supabase client replaced by the fake."""
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_service_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_session_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_user_supabase] = lambda: fake_supabase

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def context_for(fake_supabase: FakeSupabase):
    """Build the RequestContext the dependencies would resolve for a seeded user."""
    def build(user) -> RequestContext:
        profile = Profile(**fake_supabase.profile(user.id))
        return RequestContext(
            user={"id": user.id, "email": user.email},
            profile=profile,
            permissions=get_user_permissions(profile),
            token=user.token,
            ip_address="127.0.0.1",
            user_agent="pytest",
        )
    return build
