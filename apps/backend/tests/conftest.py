"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Put apps/backend on sys.path and isolate Settings from any local .env
  - Provide profile / identity factories shared by unit and integration tests
  - Reset the composition root (lru_cache singletons) between tests

Collaborators:
  - pytest, pytest-asyncio
  - tesoros.container (reset_container)
  - tesoros.identity.local_provider.LocalIdentityService

Notes:
  - Fixtures are auto-discovered by pytest
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from tesoros.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from tesoros.container import reset_container  # noqa: E402
from tesoros.domain.entities import Profile, UserRole  # noqa: E402
from tesoros.identity.local_provider import LocalIdentityService  # noqa: E402
from tesoros.infrastructure.repositories import (  # noqa: E402
    InMemoryNotificationRepository,
    InMemoryProfileRepository,
)

TEST_TOKEN_SECRET = "test-secret"
TEST_TOKEN_ISSUER = "tesoros-local-identity"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: End-to-end flows over the in-process service"
    )


@pytest.fixture(autouse=True)
def _isolated_container():
    """R: Fresh settings and singletons for every test."""
    app_config.get_settings.cache_clear()
    reset_container()
    yield
    app_config.get_settings.cache_clear()
    reset_container()


# ============================================================================
# Domain factories
# ============================================================================


def make_profile(
    *,
    role: UserRole = UserRole.BUYER,
    is_approved: bool | None = None,
    needs_role_selection: bool = False,
    is_active: bool = True,
    subject_id: str | None = None,
    email: str | None = None,
    name: str = "Usuario de prueba",
) -> Profile:
    subject = subject_id or uuid4().hex
    now = datetime.now(timezone.utc)
    return Profile(
        id=uuid4(),
        subject_id=subject,
        email=email or f"{subject[:8]}@example.com",
        name=name,
        role=role,
        is_approved=(role != UserRole.SELLER) if is_approved is None else is_approved,
        needs_role_selection=needs_role_selection,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def profile_repo() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def notification_repo() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def identity_directory() -> LocalIdentityService:
    return LocalIdentityService(
        token_secret=TEST_TOKEN_SECRET,
        token_issuer=TEST_TOKEN_ISSUER,
        token_ttl_seconds=300,
        max_failed_attempts=3,
        lockout_seconds=60,
    )
