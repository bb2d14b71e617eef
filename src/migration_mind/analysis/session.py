"""Analysis session resolution.

A session is the durable server-side record tying a user and a source
connection to every derived artifact.  The service keys sessions by
(user, host, port, database), so resolving the same pair twice yields the
same session id.

Usage:
    from migration_mind.analysis.session import SessionResolver

    resolver = SessionResolver(api)
    result = await resolver.resolve(user_id, connection)
    if result.success and result.has_analysis:
        ...  # load the existing artifacts instead of re-running discovery
"""

import logging

from pydantic import ValidationError

from migration_mind.analysis.models import (
    ConnectionDescriptor,
    SessionListResult,
    SessionResult,
    SessionStatistics,
    SessionSummary,
)
from migration_mind.client.base import ApiError, MigrationApi

logger = logging.getLogger(__name__)

NO_USER_ERROR = "No authenticated user. Log in (or set a user id) to analyze databases."


class SessionResolver:
    """Obtains and inspects analysis sessions."""

    def __init__(self, api: MigrationApi) -> None:
        self._api = api

    async def resolve(
        self,
        user_id: str | None,
        connection: ConnectionDescriptor,
    ) -> SessionResult:
        """Get the session for (user, host, port, database), creating it once.

        Args:
            user_id: Authenticated user id.  ``None`` or empty is a blocking
                precondition and yields an error result without a network call.
            connection: Source connection; only host, port and database
                name identify the session.

        Returns:
            SessionResult with ``session_id`` on success; ``success=False``
            and ``error`` otherwise.
        """
        if not user_id:
            logger.warning("Session resolution requested without an authenticated user")
            return SessionResult(success=False, error=NO_USER_ERROR)

        try:
            response = await self._api.get_or_create_session(
                user_id,
                connection.host,
                connection.port,
                connection.database_name,
            )
        except ApiError as e:
            logger.warning(f"Failed to get/create session: {e}")
            return SessionResult(success=False, error=f"Network error: {e}")

        if response.has_error or not isinstance(response.data, dict):
            return SessionResult(
                success=False,
                error=response.error_message("Failed to resolve analysis session"),
            )

        try:
            result = SessionResult.model_validate(response.data)
        except ValidationError as e:
            logger.warning(f"Unexpected session payload: {e}")
            return SessionResult(success=False, error="Malformed session response")

        if not result.session_id:
            return SessionResult(success=False, error="Service returned no session id")

        logger.debug(
            f"Resolved session {result.session_id} "
            f"(existing={result.is_existing}, has_analysis={result.has_analysis})"
        )
        return result

    async def list_sessions(self, user_id: str | None) -> SessionListResult:
        """List every session owned by *user_id*, newest first."""
        if not user_id:
            return SessionListResult(success=False, error=NO_USER_ERROR)

        try:
            response = await self._api.list_sessions(user_id)
        except ApiError as e:
            logger.warning(f"Failed to list sessions: {e}")
            return SessionListResult(success=False, error=f"Network error: {e}")

        if response.has_error or not isinstance(response.data, dict):
            return SessionListResult(
                success=False,
                error=response.error_message("Failed to list sessions"),
            )

        try:
            sessions = [
                SessionSummary.model_validate(item)
                for item in response.data.get("migrations") or []
            ]
        except ValidationError as e:
            logger.warning(f"Unexpected session listing payload: {e}")
            return SessionListResult(success=False, error="Malformed session listing")

        return SessionListResult(success=True, sessions=sessions)

    async def get_statistics(self, session_id: str) -> SessionStatistics | None:
        """Fetch aggregate counts for *session_id*; ``None`` when unavailable."""
        try:
            response = await self._api.get_statistics(session_id)
        except ApiError as e:
            logger.warning(f"Failed to load statistics for {session_id}: {e}")
            return None

        if response.has_error or not isinstance(response.data, dict):
            return None

        try:
            return SessionStatistics.model_validate(response.data)
        except ValidationError as e:
            logger.warning(f"Unexpected statistics payload: {e}")
            return None
