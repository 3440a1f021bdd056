"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


BASE_TIME = datetime(2025, 10, 20, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("BUILDKITE_API_TOKEN", "bk_test_token")
    monkeypatch.setenv("BUILDKITE_ORG", "acme")
    monkeypatch.setenv("TG_TOKEN", "test_token_123")
    monkeypatch.setenv("NOTIFY_CHAT_ID", "-100123456789:42")
    monkeypatch.delenv("POLLING_INTERVAL", raising=False)


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture
def make_build():
    """Factory for Build snapshots. ``minutes_ago`` sets created/started time."""
    from kitewatch.models import Build, BuildState

    def _make(
        build_id: str = "b1",
        state: str = "running",
        *,
        number: int = 1,
        pipeline: str = "deploy",
        org: str = "acme",
        branch: str = "main",
        minutes_ago: int = 0,
        started: bool = True,
        added_manually: bool = False,
    ):
        created_at = BASE_TIME - timedelta(minutes=minutes_ago)
        return Build(
            id=build_id,
            build_number=number,
            pipeline_slug=pipeline,
            pipeline_name=pipeline.capitalize(),
            organization_slug=org,
            branch=branch,
            commit_message="Update dependencies",
            commit_sha="abcdef1234567890",
            state=BuildState.parse(state),
            web_url=f"https://buildkite.com/{org}/{pipeline}/builds/{number}",
            created_at=created_at,
            started_at=created_at + timedelta(seconds=30) if started else None,
            added_manually=added_manually,
        )

    return _make


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def api_client():
    """Create a mock BuildkiteClient."""
    from kitewatch.models import User

    client = MagicMock()
    client.has_token = True
    client.fetch_current_user = AsyncMock(return_value=User(id="user-1", name="Test User"))
    client.fetch_user_builds = AsyncMock(return_value=[])
    client.fetch_build = AsyncMock()
    return client


@pytest.fixture
def notifier():
    """Create a mock notification sink."""
    sink = MagicMock()
    sink.notify = AsyncMock()
    return sink


@pytest.fixture
def mock_bot():
    """Create a mock Telegram Bot."""
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def buildkite_client():
    """Create a BuildkiteClient with a test token."""
    from kitewatch.services.buildkite.client import BuildkiteClient
    return BuildkiteClient("bk_test", timeout=5.0)


@pytest.fixture
def monitor(api_client, notifier):
    """Create a configured BuildMonitor around mock collaborators."""
    from kitewatch.monitor import BuildMonitor
    from kitewatch.state.diagnostics import DiagnosticLog

    build_monitor = BuildMonitor(api_client, notifier, DiagnosticLog())
    build_monitor.configure("bk_test_token", "acme")
    return build_monitor
