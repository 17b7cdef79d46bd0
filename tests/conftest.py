"""Pytest fixtures for the pinclone backend and client tests."""

import httpx
import pytest
import pytest_asyncio

from pinclone.config import Settings
from pinclone.core import dependencies as dependencies_module
from pinclone.main import create_app
from pinclone.modules.auth import service as auth_service_module
from pinclone.modules.auth.service import clear_auth_cache
from tests.fakes import FakeSupabase


@pytest.fixture(autouse=True)
def _fresh_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="https://project.supabase.test",
        supabase_key="anon-key",
        cookie_secure=False,
        rate_limit="1000/minute",
        site_url="https://pins.test",
    )


@pytest.fixture
def supabase() -> FakeSupabase:
    db = FakeSupabase()
    db.add_profile("u-alice", "alice", "Alice Liddell")
    db.add_profile("u-bob", "bob_builder", "Bob Builder")
    db.auth.add_user("tok-alice", "u-alice", email="alice@example.com", refresh_token="ref-alice")
    db.auth.add_user("tok-bob", "u-bob", email="bob@example.com")
    return db


@pytest.fixture
def flow_client(monkeypatch, supabase):
    """Session-creating auth calls go to the same fake instead of a real client."""
    created = []

    def fake_create_client(url, key, options=None):
        created.append((url, key, options))
        supabase.auth.flow_storage = options.storage if options is not None else None
        return supabase

    monkeypatch.setattr(auth_service_module, "create_client", fake_create_client)
    return created


@pytest.fixture
def user_client_tokens(monkeypatch, supabase):
    """Per-request user clients resolve to the same fake; records the token each was built with."""
    tokens = []

    def fake_create_user_supabase(settings, access_token):
        tokens.append(access_token)
        return supabase

    monkeypatch.setattr(dependencies_module, "create_user_supabase", fake_create_user_supabase)
    return tokens


@pytest.fixture
def app(settings, supabase, user_client_tokens):
    application = create_app(settings)
    application.state.supabase = supabase
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
