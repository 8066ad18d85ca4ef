"""
Pytest configuration.

Adds the project root to the Python path so tests can import the domain,
repositories, services and api packages, and provides fixtures that swap the
Supabase client for the in-memory fake in tests/fake_supabase.py.
"""

import sys
from pathlib import Path

import pytest

# Add the project root (and this directory, for fake_supabase) to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from config import Settings  # noqa: E402
from fake_supabase import FakeSupabase  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="http://supabase.test",
        supabase_key="test-key",
        admin_password="segredo",
        report_timezone="America/Recife",
        enforce_sale_totals=True,
    )


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    """Route every repository query to a fresh in-memory database."""

    import repositories.client

    db = FakeSupabase()
    monkeypatch.setattr(repositories.client, "_client", db)
    return db


@pytest.fixture
def api_client(fake_db, settings):
    """FastAPI TestClient wired to the fake database and test settings."""

    from fastapi.testclient import TestClient

    from api.main import app
    from config import get_settings

    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
