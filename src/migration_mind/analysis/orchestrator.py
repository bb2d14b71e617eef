"""Analysis orchestration (async).

Triggers server-side discovery for a session and keeps the four derived
artifact sets -- schema fields, relationships, risks and migration plan --
in step with the server.

Loading is fan-out/join-all: the four artifact loads are issued together
and each one is applied independently.  A failed load is logged and leaves
that artifact's previous value in place; it never cancels the others.

Usage:
    from migration_mind.analysis.orchestrator import AnalysisOrchestrator

    orchestrator = AnalysisOrchestrator(api)

    # Fresh discovery
    result = await orchestrator.analyze(session_id, connection)

    # Session already analyzed -- load saved artifacts instead
    await orchestrator.load_existing(session_id)

    orchestrator.artifacts.schemas["users"][0].field_path
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, ValidationError

from migration_mind.analysis.models import (
    AnalysisResult,
    AnalysisSnapshot,
    ConnectionDescriptor,
    Relationship,
    Risk,
    SchemaField,
)
from migration_mind.client.base import ApiError, ApiResponse, MigrationApi
from migration_mind.plan.models import MigrationPlan, normalize_plan

logger = logging.getLogger(__name__)


class AnalysisStatus(StrEnum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    LOADED = "LOADED"


class AnalysisArtifacts(BaseModel):
    """Latest server copy of each artifact set.

    Attributes:
        schemas: Collection name -> discovered fields.
        relationships: Detected cross-collection references.
        risks: Reported migration risks.
        plan: Latest migration plan, if one has been generated.
    """

    schemas: dict[str, list[SchemaField]] = Field(default_factory=dict)
    relationships: list[Relationship] = Field(default_factory=list)
    risks: list[Risk] = Field(default_factory=list)
    plan: MigrationPlan | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unrecognized analysis timestamp: {value!r}")
        return None


class AnalysisOrchestrator:
    """Tracks discovery state and the artifacts derived from it.

    State:
        ``status`` moves IDLE -> RUNNING -> LOADED on a successful analysis
        and IDLE -> LOADED when existing artifacts are loaded.  A failed
        analysis restores the status it started from.

    Args:
        api: Backend client.
        clock: Returns the current time; used to stamp ``last_analyzed_at``.
    """

    def __init__(self, api: MigrationApi, clock: Callable[[], datetime] = _utcnow) -> None:
        self._api = api
        self._clock = clock
        self._status = AnalysisStatus.IDLE
        self._last_analyzed_at: datetime | None = None
        self._has_existing_analysis = False
        self._snapshot: AnalysisSnapshot | None = None
        self._artifacts = AnalysisArtifacts()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def status(self) -> AnalysisStatus:
        return self._status

    @property
    def last_analyzed_at(self) -> datetime | None:
        return self._last_analyzed_at

    @property
    def has_existing_analysis(self) -> bool:
        """True once the session is known to have analysis results."""
        return self._has_existing_analysis

    @property
    def snapshot(self) -> AnalysisSnapshot | None:
        return self._snapshot

    @property
    def artifacts(self) -> AnalysisArtifacts:
        return self._artifacts

    @property
    def has_schema(self) -> bool:
        """True when at least one collection's schema is loaded."""
        return len(self._artifacts.schemas) > 0

    # ------------------------------------------------------------------
    # Indicator management
    # ------------------------------------------------------------------

    def mark_existing(self, last_analyzed_at: str | datetime | None = None) -> None:
        """Record that the session already has analysis (from session resolution)."""
        self._has_existing_analysis = True
        if isinstance(last_analyzed_at, datetime):
            self._last_analyzed_at = last_analyzed_at
        elif last_analyzed_at:
            self._last_analyzed_at = _parse_timestamp(last_analyzed_at)

    def forget_existing(self) -> None:
        """Clear the existing-analysis indicator (a new probe may target another database)."""
        self._has_existing_analysis = False
        self._last_analyzed_at = None

    def set_plan(self, plan: MigrationPlan) -> None:
        """Replace the stored plan."""
        self._artifacts.plan = plan

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def analyze(
        self,
        session_id: str,
        connection: ConnectionDescriptor,
        sample_size: int = 1000,
        include_ai: bool = False,
    ) -> AnalysisResult:
        """Run discovery for *session_id* and reload every artifact.

        Re-analysis uses this same operation; the previous snapshot is
        replaced, never merged.  Failures are returned, not raised, and are
        not retried.

        Args:
            session_id: Resolved session id.
            connection: Source connection sent as ``dbConnection``.
            sample_size: Documents sampled per collection.
            include_ai: Ask the service for AI-assisted inference.

        Returns:
            AnalysisResult as reported by the service (or a local failure).
        """
        if self._status == AnalysisStatus.RUNNING:
            return AnalysisResult(
                success=False,
                message="Failed",
                error="An analysis is already running for this session",
            )

        previous = self._status
        self._status = AnalysisStatus.RUNNING

        try:
            response = await self._api.analyze(
                session_id,
                connection.to_payload(),
                sample_size=sample_size,
                include_ai=include_ai,
            )
        except ApiError as e:
            self._status = previous
            logger.warning(f"Analysis request for {session_id} failed: {e}")
            return AnalysisResult(success=False, message="Failed", error=f"Network error: {e}")
        except BaseException:
            self._status = previous
            raise

        result = self._parse_analysis(response)
        if not result.success:
            self._status = previous
            return result

        self._status = AnalysisStatus.LOADED
        self._has_existing_analysis = True
        self._last_analyzed_at = self._clock()
        self._snapshot = result.to_snapshot(self._last_analyzed_at)
        logger.info(
            f"Analysis of session {session_id} complete: "
            f"{len(result.collections)} collections, "
            f"{result.relationship_count} relationships, {result.risk_count} risks"
        )

        await self._load_all(session_id)
        return result

    def _parse_analysis(self, response: ApiResponse) -> AnalysisResult:
        data = response.data if isinstance(response.data, dict) else {}
        if not response.ok or not data.get("success"):
            return AnalysisResult(
                success=False,
                message=str(data.get("message") or "Failed"),
                error=response.error_message("Analysis failed"),
            )
        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unexpected analysis payload: {e}")
            return AnalysisResult(success=False, message="Failed", error="Malformed analysis response")

    async def load_existing(self, session_id: str) -> dict[str, bool]:
        """Load all saved artifacts for a session that was analyzed before.

        Returns:
            Artifact name -> whether that artifact was applied.
        """
        applied = await self._load_all(session_id)
        self._has_existing_analysis = True
        self._status = AnalysisStatus.LOADED
        return applied

    async def _load_all(self, session_id: str) -> dict[str, bool]:
        names = ("schemas", "relationships", "risks", "plan")
        outcomes = await asyncio.gather(
            self.load_schemas(session_id),
            self.load_relationships(session_id),
            self.load_risks(session_id),
            self.load_plan(session_id),
            return_exceptions=True,
        )
        applied: dict[str, bool] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Loading {name} for {session_id} raised: {outcome!r}")
                applied[name] = False
            else:
                applied[name] = outcome
        return applied

    # ------------------------------------------------------------------
    # Artifact loaders (each fetches the current server copy)
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        name: str,
        session_id: str,
        call: Callable[[str], Awaitable[ApiResponse]],
    ) -> dict | None:
        """Fetch an artifact payload; ``None`` (logged) on any failure."""
        try:
            response = await call(session_id)
        except ApiError as e:
            logger.warning(f"Failed to load {name} for {session_id}: {e}")
            return None
        if response.has_error or not isinstance(response.data, dict):
            logger.warning(
                f"Failed to load {name} for {session_id}: "
                f"{response.error_message(f'status {response.status_code}')}"
            )
            return None
        return response.data

    async def load_schemas(self, session_id: str) -> bool:
        data = await self._fetch("schemas", session_id, self._api.get_schema)
        if data is None:
            return False
        try:
            schemas = {
                collection: [SchemaField.model_validate(f) for f in fields or []]
                for collection, fields in (data.get("collections") or {}).items()
            }
        except (ValidationError, AttributeError) as e:
            logger.warning(f"Unexpected schema payload for {session_id}: {e}")
            return False
        self._artifacts.schemas = schemas
        return True

    async def load_relationships(self, session_id: str) -> bool:
        data = await self._fetch("relationships", session_id, self._api.get_relationships)
        if data is None:
            return False
        try:
            relationships = [
                Relationship.model_validate(r) for r in data.get("relationships") or []
            ]
        except ValidationError as e:
            logger.warning(f"Unexpected relationships payload for {session_id}: {e}")
            return False
        self._artifacts.relationships = relationships
        return True

    async def load_risks(self, session_id: str) -> bool:
        data = await self._fetch("risks", session_id, self._api.get_risks)
        if data is None:
            return False
        try:
            risks = [Risk.model_validate(r) for r in data.get("risks") or []]
        except ValidationError as e:
            logger.warning(f"Unexpected risks payload for {session_id}: {e}")
            return False
        self._artifacts.risks = risks
        return True

    async def load_plan(self, session_id: str) -> bool:
        data = await self._fetch("migration plan", session_id, self._api.get_migration_plan)
        if data is None:
            return False
        plan = normalize_plan(data)
        if plan is None:
            logger.warning(f"Migration plan payload for {session_id} could not be normalized")
            return False
        self._artifacts.plan = plan
        return True
