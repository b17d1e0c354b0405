"""Shared fixtures: a fresh in-memory database per test and small factories."""

import pytest
from sqlalchemy.pool import StaticPool

import storage
from app import create_app
from auth_service import hash_password
from models import db, ROLE_STANDARD, OFFER_NEW

DEFAULT_PASSWORD = "secret1"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        },
        "AI_API_KEY": None,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """Push an app context for tests that call services directly."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def make_account(app):
    def _make(handle, password=DEFAULT_PASSWORD, role=ROLE_STANDARD):
        with app.app_context():
            with storage.atomic():
                account = storage.create_account(handle, hash_password(password), role=role)
            return account.id
    return _make


@pytest.fixture
def make_brief(app):
    def _make(owner_id, token=None, **fields):
        data = {
            "title": "Landing page",
            "description": "One page site for a bakery",
            "expected_result": "Deployed page",
            "deadline": "2 weeks",
            "budget": "$500",
            "criteria": ["Price", "Portfolio"],
            "template": "website",
        }
        data.update(fields)
        with app.app_context():
            with storage.atomic():
                brief = storage.create_brief(owner_id, data)
                if token:
                    brief.public_token = token
            return brief.id, brief.public_token
    return _make


@pytest.fixture
def make_offer(app):
    def _make(brief_id, status=OFFER_NEW, **fields):
        data = {
            "freelancer_name": "Bob",
            "contact": "bob@example.com",
            "approach": "Static site generator",
            "deadline": "10 days",
            "price": "$450",
        }
        data.update(fields)
        with app.app_context():
            with storage.atomic():
                offer = storage.create_offer(brief_id, data)
                if status != OFFER_NEW:
                    offer.status = status
            return offer.id
    return _make


@pytest.fixture
def offer_status(app):
    """Read an offer's current status straight from the database (None if gone)."""
    def _read(offer_id):
        with app.app_context():
            offer = storage.find_offer_by_id(offer_id)
            return offer.status if offer is not None else None
    return _read


@pytest.fixture
def login(client):
    def _login(username, password=DEFAULT_PASSWORD, http_client=None):
        c = http_client or client
        resp = c.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()
    return _login


@pytest.fixture
def marketplace(make_account, make_brief, make_offer):
    """
    carol owns brief B1 (token "tok123") with offers O1 and O2.
    dave owns brief B2 with offer O3.
    """
    carol = make_account("carol")
    dave = make_account("dave")
    b1, _ = make_brief(carol, token="tok123", title="B1")
    b2, _ = make_brief(dave, title="B2")
    return {
        "carol": carol,
        "dave": dave,
        "b1": b1,
        "b2": b2,
        "o1": make_offer(b1, freelancer_name="O1"),
        "o2": make_offer(b1, freelancer_name="O2"),
        "o3": make_offer(b2, freelancer_name="O3"),
    }
