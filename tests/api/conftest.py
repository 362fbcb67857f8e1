"""API test fixtures: the full application with in-memory storage and a mock email gateway."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from clients.email_client import EmailGatewayClient
from core.scheduler import create_scheduler
from main import create_app

ADMIN_PASSWORD = "slugs-only"


@pytest.fixture
def email_client():
    """Mock gateway - every send succeeds."""
    return Mock(spec=EmailGatewayClient)


@pytest.fixture
def app(config, auth_config, store, email_client):
    return create_app(
        config=config,
        auth_config=auth_config,
        store=store,
        email_client=email_client,
        admin_password=ADMIN_PASSWORD,
        scheduler=create_scheduler(),
    )


@pytest.fixture
def client(app):
    """TestClient with lifespan: scheduler running, deliveries rescheduled."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}
