"""Pytest configuration and fixtures for the catalog admin service."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Settings are read at import time, so point them at throwaway resources first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="catalog-admin-uploads-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_admin.config import settings
from catalog_admin.db.database import Base, get_db
from catalog_admin.models import Order, Product
from catalog_admin.services import get_image_provider
from catalog_admin.schemas.forms import serialize_string_array
from catalog_admin.services.image_providers.local_provider import LocalImageProvider


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "api: marks tests that go through the HTTP app")


@pytest.fixture()
def engine():
    """Fresh in-memory database per test, shared by every session on it."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def image_provider(tmp_path):
    """Asset store rooted in the test's temporary directory."""
    return LocalImageProvider(upload_dir=str(tmp_path / "uploads"), url_prefix="/uploads")


@pytest.fixture()
def upload_dir(image_provider):
    return image_provider.upload_dir


@pytest.fixture()
def make_stored_file(upload_dir):
    """Write a file straight into the asset store, optionally backdated."""

    def _make(name: str, data: bytes = b"image-bytes", age_seconds: int = 7200) -> str:
        path = os.path.join(upload_dir, name)
        with open(path, "wb") as handle:
            handle.write(data)
        mtime = (datetime.now(timezone.utc) - timedelta(seconds=age_seconds)).timestamp()
        os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture()
def make_product(db):
    """Insert a product row directly, bypassing the service layer."""

    def _make(**overrides) -> Product:
        values = {
            "name": "Bucket Wisuda Premium",
            "description": "Bucket bunga mawar premium",
            "price": 150000,
            "original_price": 200000,
            "category": "bucket",
            "image_url": None,
            "features": serialize_string_array(["Bunga Segar", "Gratis Kartu"]),
            "is_featured": False,
            "is_active": True,
        }
        values.update(overrides)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_order(db):
    def _make(product_id=None, **overrides) -> Order:
        values = {
            "customer_name": "Sarah Putri",
            "customer_phone": "081234567890",
            "order_type": "standard" if product_id else "custom",
            "product_id": product_id,
            "custom_description": None if product_id else "Balloon arch, pastel colors",
            "quantity": 1,
            "total_price": 0,
            "status": "pending",
        }
        values.update(overrides)
        order = Order(**values)
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


def _make_token(role: str = "admin", user_id: int = 1, expires_in: int = 3600) -> str:
    payload = {
        "id": user_id,
        "username": f"{role}-user",
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def make_token():
    """Sign a session token the way the auth service does."""
    return _make_token


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {_make_token('admin')}"}


@pytest.fixture()
def app(session_factory, image_provider):
    """The FastAPI app wired to the test database and asset store."""
    from catalog_admin.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_image_provider] = lambda: image_provider
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """Return an HTTPX async client pointing at the FastAPI app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def admin_client(app):
    """Client whose requests pass the admin check without a token."""
    from catalog_admin.auth.dependencies import require_admin

    app.dependency_overrides[require_admin] = lambda: {
        "user_id": 1,
        "username": "admin-user",
        "role": "admin",
        "is_admin": True,
        "payload": {},
    }
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
