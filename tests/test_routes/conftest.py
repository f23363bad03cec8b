# tests/test_routes/conftest.py
import pytest
from fastapi.testclient import TestClient

from itscope_connector.main import create_app


@pytest.fixture
def app(settings, session_factory, itscope, shopify_factory):
    return create_app(settings, session_factory, itscope=itscope, shopify_client_factory=shopify_factory)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def run(client):
    """Run a coroutine on the test client's event loop from a synchronous test"""
    def _run(coro):
        return client.portal.call(lambda: coro)
    return _run
