"""Pytest fixtures: a seeded in-memory store, the services over it, and an API client."""

import pytest
from fastapi.testclient import TestClient

from auth import AuthService
from cart import CartService
from checkout import CheckoutEngine
from config import Settings
from lessons import LessonCatalog
from main import create_app
from seed import seed_lessons
from storage import MemoryStore

ART = "69122bfeabae0cc1bdee6992"
CODING = "69122bfeabae0cc1bdee6993"
DRAMA = "69122bfeabae0cc1bdee6995"
HISTORY = "69122bfeabae0cc1bdee6990"
MUSIC = "69122bfeabae0cc1bdee6991"
CHESS = "69122bfeabae0cc1bdee69a0"

USER = "user-1"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, seed_on_startup=False, jwt_secret="test-secret-key-at-least-32-bytes-long", token_ttl_minutes=5)


@pytest.fixture
def store() -> MemoryStore:
    store = MemoryStore()
    seed_lessons(store, spaces=10)  # ten sample lessons, 10 spaces each
    store.insert("lesson", {"_id": CHESS, "subject": "chess", "location": "K 01", "price": 7.5, "spaces": 2})
    return store


@pytest.fixture
def catalog(store) -> LessonCatalog:
    return LessonCatalog(store)


@pytest.fixture
def carts(store, catalog) -> CartService:
    return CartService(store, catalog)


@pytest.fixture
def engine(store, catalog, carts) -> CheckoutEngine:
    return CheckoutEngine(store, catalog, carts)


@pytest.fixture
def auth(store, settings) -> AuthService:
    return AuthService(store, settings)


@pytest.fixture
def client(store, settings):
    with TestClient(create_app(store=store, settings=settings)) as c:
        yield c


@pytest.fixture
def auth_headers(auth) -> dict:
    auth.register("M00123456", "secret")
    token = auth.login("M00123456", "secret")
    return {"Authorization": f"Bearer {token}"}
