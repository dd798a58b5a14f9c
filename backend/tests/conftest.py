"""Shared test fixtures."""

import pytest
from fastapi import FastAPI

from festplanner.api.routes import health, notion, parse, share


@pytest.fixture
def test_app() -> FastAPI:
    """Minimal FastAPI app with every router mounted, for API tests."""
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(parse.router, prefix="/api")
    app.include_router(notion.router, prefix="/api")
    app.include_router(share.router, prefix="/api")
    return app
