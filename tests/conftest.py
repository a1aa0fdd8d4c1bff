"""
Pytest fixtures for the beverage distribution API.

Provides:
- A file-backed SQLite database, recreated for every test
- Service-level sessions and an HTTP TestClient
- Admin / regular user bearer tokens
- Product and mess factories

The environment is configured before anything under ``app`` is imported,
since settings, the engine and the rate limiter are built at import time.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="mess-ledger-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'ledger.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["INTERNAL_ADMIN_SECRET"] = "bootstrap-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.core.hashing import hash_password  # noqa: E402
from app.core.jwt import token_for_user  # noqa: E402
from app.models.messes import Mess  # noqa: E402
from app.models.products import Product  # noqa: E402
from app.models.users import User  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema (tables and v_current_stock) for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    """Session for calling services directly.

    SQLite transactions start with BEGIN IMMEDIATE, so a session left inside
    a transaction blocks every other writer. Tests that also use the HTTP
    client or threads must close or commit it first.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _create_user(username: str, role: str, is_active: bool = True) -> str:
    with SessionLocal() as db:
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            password_hash=hash_password("secret123"),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return token_for_user(user)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {_create_user('admin', 'admin')}"}


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {_create_user('clerk', 'user')}"}


@pytest.fixture
def make_product(db_session):
    def _make(name="Eggs", unit_type="crate", units_per_package=30):
        product = Product(name=name, unit_type=unit_type, units_per_package=units_per_package)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_mess(db_session):
    def _make(name="North Mess", location="Block A", contact_person="Ravi"):
        mess = Mess(name=name, location=location, contact_person=contact_person)
        db_session.add(mess)
        db_session.commit()
        db_session.refresh(mess)
        return mess

    return _make
