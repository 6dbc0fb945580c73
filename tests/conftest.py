import jwt
import pytest
from fastapi.testclient import TestClient

from config import get_settings_for_environment
from main import create_app
from repositories import InMemoryLedgerStore
from services import PaymentService

REGISTERED_PHONE = "081293846571"
UNREGISTERED_PHONE = "000000000000"


@pytest.fixture
def settings():
    return get_settings_for_environment("testing")


@pytest.fixture
def app(settings):
    """Fresh application, with its own empty ledger, for each test."""
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def ledger_store(app):
    return app.state.ledger_store


@pytest.fixture
def auth_headers(settings):
    token = jwt.encode({"sub": "bni-backend"}, settings.jwt_secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def service(store, settings):
    return PaymentService(store, settings.allowed_phone_numbers, settings.timezone)
