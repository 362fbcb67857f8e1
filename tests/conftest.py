"""Shared test fixtures for the penpals test suite."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from auth.config import AuthConfig
from core.config import PenpalsConfig
from core.event_bus import EventBus
from core.notifier import Notifier
from core.store import InMemoryStore
from factories import (
    ALICE, ALICE_INTRO, BOB, BOB_INTRO, CAROL, CAROL_INTRO,
    make_user, seed,
)


# =============================================================================
# CONFIG FIXTURES
# =============================================================================


@pytest.fixture
def config() -> PenpalsConfig:
    """Core config with the production delivery delay."""
    return PenpalsConfig(admin_email="admin@ucsc.edu")


@pytest.fixture
def auth_config() -> AuthConfig:
    """Low rate limit and one off-domain test address."""
    return AuthConfig(
        rate_limit_attempts=3,
        rate_limit_window_minutes=5,
        allowed_test_emails=["tester@example.com"],
    )


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory document store."""
    return InMemoryStore()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def notifier():
    """Mock notifier - no emails sent; every send reports delivered."""
    mock = Mock(spec=Notifier)
    mock.send.return_value = True
    return mock


# =============================================================================
# SEEDED STORES
# =============================================================================


@pytest.fixture
def waiting_users(store):
    """Alice, Bob and Carol verified with intros, nobody matched."""
    seed(
        store,
        make_user(ALICE, ALICE_INTRO),
        make_user(BOB, BOB_INTRO),
        make_user(CAROL, CAROL_INTRO),
    )
    return store


@pytest.fixture
def matched_pair(store):
    """Alice and Bob matched, Carol waiting."""
    seed(
        store,
        make_user(ALICE, ALICE_INTRO, partner=BOB),
        make_user(BOB, BOB_INTRO, partner=ALICE),
        make_user(CAROL, CAROL_INTRO),
    )
    return store
