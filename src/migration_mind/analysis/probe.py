"""Source connection probe."""

import logging

from pydantic import ValidationError

from migration_mind.analysis.connection_string import apply_connection_string
from migration_mind.analysis.models import ConnectionDescriptor, ProbeResult
from migration_mind.client.base import ApiError, MigrationApi

logger = logging.getLogger(__name__)


class ConnectionProbe:
    """Checks reachability and credentials of a source connection.

    Never raises for network or server failures; the returned
    ``ProbeResult`` carries ``success=False`` and an error message.
    """

    def __init__(self, api: MigrationApi) -> None:
        self._api = api

    async def probe(self, connection: ConnectionDescriptor) -> ProbeResult:
        """Probe *connection* through the backend service.

        When the descriptor carries a connection string it is decomposed
        into discrete fields first; an unparseable string leaves the
        explicit fields as they are.

        Returns:
            ProbeResult with ``collection_count``/``collections`` on success.
        """
        if connection.connection_string:
            connection = apply_connection_string(connection, connection.connection_string)

        try:
            response = await self._api.test_connection(connection.to_payload())
        except ApiError as e:
            logger.warning(f"Connection probe failed for {connection.display_name}: {e}")
            return ProbeResult(success=False, error=f"Network error: {e}")

        data = response.data if isinstance(response.data, dict) else {}
        if not response.ok or not data.get("success"):
            return ProbeResult(
                success=False,
                error=response.error_message("Connection test failed"),
            )

        try:
            return ProbeResult.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unexpected probe payload: {e}")
            return ProbeResult(success=False, error="Malformed connection test response")
