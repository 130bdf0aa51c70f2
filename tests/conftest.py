"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set env before any app imports: disables rate limiting, cheap hashing
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("RESEND_API_KEY", "")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Generator

import pytest
import structlog

from src.inbox_admin.core.config import get_settings
from tests.helpers import RecordingEmailSender

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    """Email sender that records notices instead of calling Resend."""
    return RecordingEmailSender()


@pytest.fixture
def captured_logs() -> Generator[list[dict]]:
    """Capture structlog events emitted during the test."""
    with structlog.testing.capture_logs() as logs:
        yield logs
