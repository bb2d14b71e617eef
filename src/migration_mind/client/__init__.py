"""Backend client package.

Provides the ``MigrationApi`` Protocol, the ``ApiResponse`` envelope,
the ``ApiError`` hierarchy and the ``httpx``-based ``HttpMigrationApi``.

Usage:
    from migration_mind.client import HttpMigrationApi, MigrationApi
"""

from migration_mind.client.base import (
    ApiError,
    ApiResponse,
    MalformedResponseError,
    MigrationApi,
    NetworkError,
)
from migration_mind.client.http import HttpMigrationApi

__all__ = [
    "MigrationApi",
    "ApiResponse",
    "ApiError",
    "NetworkError",
    "MalformedResponseError",
    "HttpMigrationApi",
]
