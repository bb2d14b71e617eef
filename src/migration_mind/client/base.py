"""Backend API protocol definition.

Defines the ``MigrationApi`` Protocol that every backend client must
implement, the ``ApiResponse`` envelope it returns and the ``ApiError``
hierarchy raised for transport-level failures.  All methods are
``async def``.

Usage:
    from migration_mind.client.base import MigrationApi

    async def do_work(api: MigrationApi) -> None:
        response = await api.get_schema("3f0c...")
        if response.ok:
            collections = response.data["collections"]
        await api.close()
"""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiError(Exception):
    """Base class for failures talking to the backend service."""

    pass


class NetworkError(ApiError):
    """Raised when the service is unreachable or the request times out."""

    pass


class MalformedResponseError(ApiError):
    """Raised when the service returns a body that is not valid JSON."""

    pass


class WireModel(BaseModel):
    """Base for models exchanged with the backend service.

    Fields are snake_case in Python and camelCase on the wire; both names
    are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump as a camelCase JSON-compatible dict, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ApiResponse(BaseModel):
    """Parsed response from the backend service.

    Example:
        >>> response = ApiResponse(status_code=404, data={"error": "Migration not found"})
        >>> response.ok
        False
        >>> response.error_message("fallback")
        'Migration not found'
    """

    status_code: int
    data: Any = None

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300

    @property
    def has_error(self) -> bool:
        """True when the response is non-2xx or the body carries an ``error``."""
        return not self.ok or (isinstance(self.data, dict) and bool(self.data.get("error")))

    def error_message(self, default: str) -> str:
        """Server-reported error text, falling back to *default*."""
        if isinstance(self.data, dict):
            for key in ("error", "message"):
                value = self.data.get(key)
                if value:
                    return str(value)
        return default


class MigrationApi(Protocol):
    """Backend service interface consumed by the orchestration layer.

    One method per REST operation.  Methods return the raw ``ApiResponse``;
    interpreting success or business errors is left to the caller.

    Raises (every method):
        NetworkError: On transport failures.
        MalformedResponseError: When the body is not JSON.
    """

    async def test_connection(self, connection: dict[str, Any]) -> ApiResponse:
        """POST /api/mongo/connections/test with a ConnectionDescriptor body."""
        ...

    async def get_or_create_session(
        self,
        user_id: str,
        host: str,
        port: int,
        database_name: str,
    ) -> ApiResponse:
        """POST /api/mongo/get-or-create-migration."""
        ...

    async def analyze(
        self,
        session_id: str,
        db_connection: dict[str, Any],
        sample_size: int = 1000,
        include_ai: bool = False,
    ) -> ApiResponse:
        """POST /api/mongo/analyze/{sessionId}."""
        ...

    async def get_schema(self, session_id: str) -> ApiResponse:
        """GET /api/mongo/schema/{sessionId}."""
        ...

    async def get_relationships(self, session_id: str) -> ApiResponse:
        """GET /api/mongo/relationships/{sessionId}."""
        ...

    async def get_risks(self, session_id: str) -> ApiResponse:
        """GET /api/mongo/risks/{sessionId}."""
        ...

    async def get_migration_plan(self, session_id: str) -> ApiResponse:
        """GET /api/mongo/migration-plan/{sessionId}."""
        ...

    async def generate_migration_plan(self, session_id: str) -> ApiResponse:
        """POST /api/mongo/migration-plan/generate/{sessionId}."""
        ...

    async def get_statistics(self, session_id: str) -> ApiResponse:
        """GET /api/mongo/stats/{sessionId}."""
        ...

    async def get_migration(self, session_id: str) -> ApiResponse:
        """GET /api/migrations/{sessionId} (never includes the target password)."""
        ...

    async def save_target_credentials(
        self, session_id: str, credentials: dict[str, Any]
    ) -> ApiResponse:
        """PUT /api/migrations/{sessionId}/target-credentials."""
        ...

    async def execute_migration(self, session_id: str) -> ApiResponse:
        """POST /api/migrations/{sessionId}/execute."""
        ...

    async def get_run_progress(self, run_id: str) -> ApiResponse:
        """GET /api/migrations/run/{runId}/progress."""
        ...

    async def list_sessions(self, user_id: str) -> ApiResponse:
        """GET /api/migrations/user/{userId}."""
        ...

    async def close(self) -> None:
        """Release the underlying connection pool."""
        ...
