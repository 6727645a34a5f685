"""Pytest configuration and fixtures for the product catalog service."""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.models.product import ProductCreate
from src.services.product_store import ProductStore, get_product_store


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


@pytest.fixture()
def store():
    """Provide an empty product store and route the app to it."""
    from src.main import app

    fresh_store = ProductStore()
    app.dependency_overrides[get_product_store] = lambda: fresh_store
    yield fresh_store
    app.dependency_overrides.pop(get_product_store, None)


@pytest.fixture()
def make_product():
    """Build a valid create request, overriding any field."""

    def _make(**overrides) -> ProductCreate:
        fields = {
            "name": "Trail Runner",
            "description": "Lightweight running shoe",
            "category": "Shoes",
            "brand": "Stride",
            "price": Decimal("50.00"),
            "stock_quantity": 5,
            "size": "42",
            "color": "Blue",
        }
        fields.update(overrides)
        return ProductCreate(**fields)

    return _make


@pytest_asyncio.fixture()
async def client(store):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
