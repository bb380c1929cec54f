"""Fixtures for API tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from bucket_mirror.api.app import attach_services, create_app
from bucket_mirror.sync import SyncService


@pytest.fixture
def app(config, dropbox_client, s3_store, source, target) -> FastAPI:
    """Create FastAPI test application.

    Browsing routes talk to the mocked Dropbox API and the stubbed bucket;
    synchronization runs against the in-memory trees.
    """
    app = create_app(config)
    attach_services(app, dropbox_client, s3_store)
    app.state.sync_service = SyncService(source, target, config)
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create client using ASGI transport."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
