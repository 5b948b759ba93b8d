import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_MEDIA_PATH"] = tempfile.mkdtemp(prefix="familyhub-media-")
os.environ["BASE_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from familyhub.database import Base, get_db
from familyhub.main import app
from familyhub.storage import LocalStorage, get_storage


# ============================================================================
# Test Database Setup
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(root=tmp_path / "media")


@pytest.fixture
def client(session_factory, storage):
    """API client whose requests each get their own session on the test engine."""

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# Users
# ============================================================================

def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register a user; returns (user payload, auth headers)."""
    counter = {"n": 0}

    def _make(first_name="Ann", last_name="Smith", email=None, password="secret123"):
        counter["n"] += 1
        email = email or f"{first_name.lower()}{counter['n']}@example.com"

        res = client.post("/api/users/register", json={
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": password,
        })
        assert res.status_code == 201, res.text

        user = res.json()["user"]
        return user, bearer(user["token"])

    return _make


@pytest.fixture
def make_family(client):
    def _make(headers, name="Smiths"):
        res = client.post("/api/families", json={"name": name}, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()["family"]

    return _make


@pytest.fixture
def add_member(client):
    def _add(family_id, admin_headers, email, role=None):
        body = {"email": email}
        if role:
            body["role"] = role
        res = client.post(f"/api/families/{family_id}/members", json=body, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()["membership"]

    return _add


@pytest.fixture
def household(make_user, make_family, add_member):
    """Admin and member sharing one family."""
    admin, admin_headers = make_user(first_name="Alice")
    member, member_headers = make_user(first_name="Bob")
    family = make_family(admin_headers)
    add_member(family["id"], admin_headers, member["email"])

    return {
        "family": family,
        "admin": admin,
        "admin_headers": admin_headers,
        "member": member,
        "member_headers": member_headers,
    }
