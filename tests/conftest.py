"""
Shared fixtures for the Warranty Manager API tests.

Every test gets its own SQLite database file and upload directory under
``tmp_path``. Services take ``now`` explicitly, so tests pin the clock with
``NOW`` instead of patching time.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from warranty_api.config.settings import settings
from warranty_api.db import db as database
from warranty_api.models.product import ProductCategory
from warranty_api.models.user import UserRole
from warranty_api.services import product_service, user_service
from warranty_api.services.audit_log import RequestContext
from warranty_api.services.file_storage import StoredFile

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    """Point the database and uploads at ``tmp_path`` and make bcrypt cheap."""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "SEED_DEFAULT_USERS", False)
    return settings


@pytest.fixture
async def session(test_settings):
    await database.init_db()
    async with database.db_session() as db_session:
        yield db_session
    await database.close_db()


@pytest.fixture
async def user(session):
    return await user_service.register_user(session, "Regular User", "owner@example.com", "password123")


@pytest.fixture
async def other_user(session):
    return await user_service.register_user(session, "Other User", "other@example.com", "password123")


@pytest.fixture
async def admin(session):
    return await user_service.register_user(
        session, "Admin User", "boss@example.com", "password123", role=UserRole.ADMIN
    )


@pytest.fixture
def admin_ctx(admin):
    return RequestContext(actor_id=admin.id, actor_role=admin.role, ip_address="127.0.0.1", user_agent="pytest")


@pytest.fixture
async def product(session):
    return await product_service.create_product(session, {
        "name": "Dishwasher",
        "description": "Built-in dishwasher",
        "category": ProductCategory.APPLIANCES,
        "manufacturer": "Bosch",
        "model": "SMV4",
    })


def warranty_data(product_id, expiration_date, **overrides):
    data = {
        "product_id": product_id,
        "purchase_date": datetime(2023, 1, 1, tzinfo=timezone.utc),
        "expiration_date": expiration_date,
        "warranty_provider": "Bosch",
        "warranty_number": "W-001",
        "coverage_details": "Parts and labour",
        "notes": "",
    }
    data.update(overrides)
    return data


def stored_file(directory: Path, name: str = "receipt.pdf", write: bool = True) -> StoredFile:
    """Place a fake stored document on disk, as ``save_upload`` would."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    if write:
        path.write_bytes(b"%PDF-1.4 test")
    return StoredFile(
        filename=name,
        original_name=name,
        path=str(path),
        mimetype="application/pdf",
        size=13,
    )


# ============================================
# HTTP client
# ============================================

@pytest.fixture
def client(test_settings):
    """TestClient with the default admin/user accounts seeded at startup."""
    test_settings.SEED_DEFAULT_USERS = True
    from warranty_api.main import app

    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, email: str, password: str) -> dict:
    response = client.post("/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin@example.com", "admin123")


@pytest.fixture
def user_headers(client):
    return login(client, "user@example.com", "user123")
