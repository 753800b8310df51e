"""
Pytest configuration: every test gets a fresh in-memory MongoDB.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database
from auth import Identity, get_current_user, issue_admin_token
from database import CATEGORIES, ITEMS
from main import app

ADMIN_EMAIL = "admin@pizza.test"
ADMIN_SECRET = "test-admin-secret-0123456789abcdef"


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["pizzaunlimited_test"]
    monkeypatch.setattr(database, "_db", mock_db)
    monkeypatch.setattr(config, "RETRY_SLEEP_SECONDS", 0)
    database.ensure_indexes()
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def login():
    """Authenticate subsequent requests as the given customer."""
    def _login(user_id="user_1"):
        app.dependency_overrides[get_current_user] = lambda: Identity(user_id=user_id)
    yield _login
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_EMAILS", {ADMIN_EMAIL})
    monkeypatch.setattr(config, "ADMIN_JWT_SECRET", ADMIN_SECRET)
    return {"Authorization": f"Bearer {issue_admin_token(ADMIN_EMAIL)}"}


@pytest.fixture
def make_category(db):
    def _make(name="Pizzas", is_orderable=True):
        return database.create_document(CATEGORIES, {
            "name": name,
            "description": f"All {name.lower()}",
            "is_orderable": is_orderable,
        })
    return _make


@pytest.fixture
def make_item(db):
    def _make(category, name="Margherita", price=250.0, available=True):
        return database.create_document(ITEMS, {
            "name": name,
            "description": "",
            "price": price,
            "image": None,
            "category_id": category["_id"],
            "available": available,
        })
    return _make
