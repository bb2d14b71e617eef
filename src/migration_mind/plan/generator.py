"""On-demand migration plan generation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from migration_mind.client.base import ApiError, MigrationApi
from migration_mind.plan.models import PlanResult, normalize_plan

if TYPE_CHECKING:
    from migration_mind.analysis.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)

NO_SCHEMA_ERROR = (
    "Run the database analysis first to discover your schema, "
    "then generate a migration plan."
)


class PlanGenerator:
    """Synthesizes a migration plan from a session's discovered schema.

    Generation is enabled only once the orchestrator holds at least one
    collection's schema.  Each successful call replaces the stored plan;
    a failed call leaves it untouched.
    """

    def __init__(self, api: MigrationApi, orchestrator: AnalysisOrchestrator) -> None:
        self._api = api
        self._orchestrator = orchestrator

    @property
    def enabled(self) -> bool:
        return self._orchestrator.has_schema

    async def generate(self, session_id: str) -> PlanResult:
        """Generate (or regenerate) the plan for *session_id*.

        Returns:
            PlanResult with the normalized plan, or the server-reported
            error message on failure.
        """
        if not self.enabled:
            return PlanResult(success=False, error=NO_SCHEMA_ERROR)

        try:
            response = await self._api.generate_migration_plan(session_id)
        except ApiError as e:
            logger.warning(f"Plan generation for {session_id} failed: {e}")
            return PlanResult(success=False, error="Failed to generate migration plan")

        if response.has_error:
            return PlanResult(
                success=False,
                error=response.error_message("Failed to generate migration plan"),
            )

        plan = normalize_plan(response.data)
        if plan is None:
            return PlanResult(success=False, error="Malformed migration plan response")

        self._orchestrator.set_plan(plan)
        logger.info(
            f"Generated migration plan for {session_id}: "
            f"{len(plan.table_mappings)} tables, {len(plan.foreign_keys)} foreign keys"
        )
        return PlanResult(success=True, plan=plan)
