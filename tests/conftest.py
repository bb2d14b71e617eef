"""Shared fixtures: an AsyncMock stand-in for the backend service."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from migration_mind.client.base import ApiResponse
from migration_mind.client.http import HttpMigrationApi


def respond(data=None, status_code: int = 200) -> ApiResponse:
    """Build an ``ApiResponse`` for a mocked API method."""
    return ApiResponse(status_code=status_code, data=data)


@pytest.fixture
def api() -> AsyncMock:
    """Mocked ``MigrationApi`` whose methods are all AsyncMocks.

    Each artifact endpoint answers 404 unless a test overrides it, so
    unconfigured loads fail quietly instead of returning MagicMocks.
    Entering it as an async context manager yields the mock itself.
    """
    mock = AsyncMock(spec=HttpMigrationApi)
    mock.__aenter__.return_value = mock
    not_found = respond({"error": "Not found"}, status_code=404)
    mock.get_schema.return_value = not_found
    mock.get_relationships.return_value = not_found
    mock.get_risks.return_value = not_found
    mock.get_migration_plan.return_value = not_found
    return mock


@pytest.fixture
def in_tmp_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory (config and lock live in cwd)."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
