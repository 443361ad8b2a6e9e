"""Fixtures for concurrent request tests."""

from pathlib import Path

import httpx
import pytest

from fastapi_verb_routing import RouterConfig, create_app

ROUTES_DIR = Path(__file__).parent / "fixtures" / "routes"


@pytest.fixture(scope="module")
def app():
    return create_app(config=RouterConfig(routes_dir=ROUTES_DIR, development=False))


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
