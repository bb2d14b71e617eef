"""Async HTTP client for the migration backend.

Provides ``HttpMigrationApi``, an implementation of the ``MigrationApi``
protocol on top of ``httpx.AsyncClient``.

Usage:
    from migration_mind.client.http import HttpMigrationApi

    async with HttpMigrationApi("http://localhost:8080") as api:
        response = await api.get_run_progress("r1")
"""

import json
import logging
from typing import Any

import httpx

from migration_mind.client.base import (
    ApiResponse,
    MalformedResponseError,
    NetworkError,
)

logger = logging.getLogger(__name__)


def create_async_client(base_url: str, timeout: float = 30.0, **kwargs: Any) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` bound to the backend service.

    Default settings:

    - ``timeout``: applied to connect, read, write and pool acquisition.
    - ``headers``: JSON accept/content type.

    Args:
        base_url: Service root, e.g. ``http://localhost:8080``.
        timeout: Per-request timeout in seconds.
        **kwargs: Additional keyword arguments forwarded to
            ``httpx.AsyncClient`` (e.g. ``transport`` in tests).

    Returns:
        Configured ``httpx.AsyncClient``.
    """
    defaults: dict[str, Any] = {
        "timeout": httpx.Timeout(timeout),
        "headers": {"Accept": "application/json"},
    }
    # Caller kwargs override defaults
    merged = {**defaults, **kwargs}

    return httpx.AsyncClient(base_url=base_url, **merged)


class HttpMigrationApi:
    """``httpx`` implementation of the ``MigrationApi`` protocol.

    Transport failures raise ``NetworkError``; non-JSON bodies raise
    ``MalformedResponseError``.  Non-2xx statuses are *not* raised -- they
    are returned in the ``ApiResponse`` so callers can surface the server's
    error message verbatim.

    Args:
        base_url: Service root.  A trailing slash is stripped.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (owned by the caller).
        **client_kwargs: Forwarded to ``create_async_client``.

    Example:
        api = HttpMigrationApi("http://localhost:8080", timeout=10)
        response = await api.execute_migration(session_id)
        await api.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        **client_kwargs: Any,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client: httpx.AsyncClient = client or create_async_client(
            self._base_url, timeout, **client_kwargs
        )

    async def __aenter__(self) -> "HttpMigrationApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Send a request and decode the JSON body.

        An empty body decodes to ``None``.
        """
        try:
            response = await self._client.request(method, path, json=body, params=params)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed: {e!r}")
            raise NetworkError(f"Network error calling {method} {path}: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.content:
            return ApiResponse(status_code=response.status_code)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(
                f"Malformed response from {method} {path} "
                f"(status {response.status_code}): {e}"
            ) from e

        return ApiResponse(status_code=response.status_code, data=data)

    # ------------------------------------------------------------------
    # Source analysis endpoints
    # ------------------------------------------------------------------

    async def test_connection(self, connection: dict[str, Any]) -> ApiResponse:
        return await self._request("POST", "/api/mongo/connections/test", connection)

    async def get_or_create_session(
        self,
        user_id: str,
        host: str,
        port: int,
        database_name: str,
    ) -> ApiResponse:
        return await self._request(
            "POST",
            "/api/mongo/get-or-create-migration",
            {
                "userId": user_id,
                "host": host,
                "port": port,
                "databaseName": database_name,
            },
        )

    async def analyze(
        self,
        session_id: str,
        db_connection: dict[str, Any],
        sample_size: int = 1000,
        include_ai: bool = False,
    ) -> ApiResponse:
        return await self._request(
            "POST",
            f"/api/mongo/analyze/{session_id}",
            {
                "dbConnection": db_connection,
                "sampleSize": sample_size,
                "includeAI": include_ai,
            },
        )

    async def get_schema(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/mongo/schema/{session_id}")

    async def get_relationships(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/mongo/relationships/{session_id}")

    async def get_risks(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/mongo/risks/{session_id}")

    async def get_migration_plan(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/mongo/migration-plan/{session_id}")

    async def generate_migration_plan(self, session_id: str) -> ApiResponse:
        return await self._request(
            "POST", f"/api/mongo/migration-plan/generate/{session_id}"
        )

    async def get_statistics(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/mongo/stats/{session_id}")

    # ------------------------------------------------------------------
    # Migration endpoints
    # ------------------------------------------------------------------

    async def get_migration(self, session_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/migrations/{session_id}")

    async def save_target_credentials(
        self, session_id: str, credentials: dict[str, Any]
    ) -> ApiResponse:
        return await self._request(
            "PUT", f"/api/migrations/{session_id}/target-credentials", credentials
        )

    async def execute_migration(self, session_id: str) -> ApiResponse:
        return await self._request("POST", f"/api/migrations/{session_id}/execute")

    async def get_run_progress(self, run_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/migrations/run/{run_id}/progress")

    async def list_sessions(self, user_id: str) -> ApiResponse:
        return await self._request("GET", f"/api/migrations/user/{user_id}")

    async def close(self) -> None:
        """Close the underlying ``httpx.AsyncClient`` if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
