import os
import tempfile
from decimal import Decimal
from pathlib import Path

# БД для тестов: SQLite-файл; задаём до импорта olda.config
_DB_DIR = tempfile.mkdtemp(prefix="olda-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{(Path(_DB_DIR) / 'test.db').as_posix()}"
os.environ["TELEGRAM_TOKEN"] = ""
os.environ["LOG_LEVEL"] = "warning"

import pytest
from fastapi.testclient import TestClient

import olda.models  # noqa: F401
from olda.db import Base, SessionLocal, engine
from olda.main import app
from olda.models.order import Order, OrderItem
from olda.models.user import User
from olda.routers import auth
from olda.services.client_storage import MemoryStore, get_store
from olda.utils.enums import UserRole
from olda.utils.security import hash_password


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    auth.login_attempts.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username, role=UserRole.STAFF.value, display_name=None, password="secret"):
        user = User(
            username=username,
            display_name=display_name or username.capitalize(),
            password_hash=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def login(client, make_user):
    def _login(username, role=UserRole.STAFF.value, display_name=None):
        make_user(username, role=role, display_name=display_name)
        resp = client.post(
            "/login",
            data={"username": username, "password": "secret"},
            follow_redirects=False,
        )
        assert resp.status_code == 303
        return resp
    return _login


@pytest.fixture
def make_order(db):
    def _make(number="T-001", status="intake", payment_status="pending", notes=None, items=None):
        order = Order(
            order_number=number,
            customer_name="Marie Dupont",
            customer_email="marie@example.com",
            status=status,
            payment_status=payment_status,
            notes=notes,
            total=Decimal("59.90"),
            subtotal=Decimal("50.00"),
        )
        order.items = items if items is not None else [
            OrderItem(name="T-shirt noir", sku="TS-NOIR-L", quantity=2, price=Decimal("20.00")),
        ]
        db.add(order)
        db.commit()
        db.refresh(order)
        return order
    return _make
