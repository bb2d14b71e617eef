"""Pydantic models for source connections, sessions and analysis artifacts.

This module contains analysis-domain models:
- Connection models: ConnectionRole, ConnectionDescriptor, ProbeResult
- Session models: SessionResult, SessionSummary, SessionStatistics
- Artifact models: SchemaField, Relationship, Severity, Risk
- Analysis models: AnalysisResult, AnalysisSnapshot

Wire payloads use camelCase; every model accepts both the camelCase alias
and the snake_case field name.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from migration_mind.client.base import WireModel


# ============================================================================
# Connection Models
# ============================================================================


class ConnectionRole(StrEnum):
    SOURCE = "SOURCE"
    TARGET = "TARGET"


class ConnectionDescriptor(WireModel):
    """Source or target connection details.

    Either the discrete fields or ``connection_string`` may be edited; see
    ``migration_mind.analysis.connection_string.apply_connection_string``
    for how the two are kept in step.

    Example:
        >>> conn = ConnectionDescriptor(host="localhost", database_name="shop")
        >>> conn.to_payload()["databaseName"]
        'shop'
        >>> conn.to_payload()["type"]
        'SOURCE'
    """

    host: str = "localhost"
    port: int = 27017
    database_name: str = ""
    username: str | None = None
    password: str | None = None
    connection_string: str | None = None
    auth_database: str | None = None
    engine: str = "mongodb"
    role: ConnectionRole = Field(default=ConnectionRole.SOURCE, alias="type")

    @property
    def display_name(self) -> str:
        """``host:port/database`` without credentials."""
        return f"{self.host}:{self.port}/{self.database_name}"


class ProbeResult(WireModel):
    """Result of a connection probe.

    Example:
        >>> ProbeResult.model_validate({"success": True, "collectionCount": 5}).collection_count
        5
    """

    success: bool
    message: str | None = None
    error: str | None = None
    collection_count: int | None = None
    collections: list[str] = Field(default_factory=list)


# ============================================================================
# Session Models
# ============================================================================


class SessionResult(WireModel):
    """Result of resolving the analysis session for a (user, connection) pair."""

    success: bool = True
    session_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("migrationId", "sessionId", "session_id"),
    )
    is_existing: bool = False
    has_analysis: bool = False
    has_migration_plan: bool = False
    last_analyzed_at: str | None = None
    error: str | None = None


class SessionSummary(WireModel):
    """One entry of a user's session listing."""

    id: str
    name: str = ""
    status: str = ""
    source_host: str | None = None
    source_port: int | None = None
    source_database: str | None = None
    created_at: str | None = None
    last_analyzed_at: str | None = None
    has_analysis: bool = False
    has_migration_plan: bool = False


class SessionListResult(BaseModel):
    """Result of listing a user's sessions."""

    success: bool
    sessions: list[SessionSummary] = Field(default_factory=list)
    error: str | None = None


class SessionStatistics(WireModel):
    """Aggregate counts for a session's latest analysis."""

    collection_count: int = 0
    total_fields: int = 0
    relationship_count: int = 0
    risk_count: int = 0
    analyzed: bool | None = None


# ============================================================================
# Artifact Models
# ============================================================================


class SchemaField(WireModel):
    """A field discovered in a collection."""

    id: str | None = None
    collection: str = Field(
        validation_alias=AliasChoices("collectionName", "collection"),
    )
    field_name: str
    field_path: str = ""
    data_types: list[str] = Field(default_factory=list)
    frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    is_required: bool = False
    is_array: bool = False

    @field_validator("data_types", mode="before")
    @classmethod
    def _null_types(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("frequency", mode="before")
    @classmethod
    def _null_frequency(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("is_required", "is_array", mode="before")
    @classmethod
    def _null_flags(cls, value: Any) -> Any:
        return bool(value)


class Relationship(WireModel):
    """A detected reference between two collections."""

    id: str | None = None
    source_collection: str
    source_field: str
    target_collection: str
    target_field: str = "_id"
    relation_type: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detection_method: str = ""

    @field_validator("target_field", mode="before")
    @classmethod
    def _null_target_field(cls, value: Any) -> Any:
        return "_id" if value is None else value

    @field_validator("relation_type", "detection_method", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _null_confidence(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class Severity(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Ordering weight; CRITICAL is highest."""
        return list(Severity).index(self)


class Risk(WireModel):
    """A migration risk reported by discovery."""

    id: str | None = None
    risk_type: str
    severity: Severity
    description: str = ""
    affected_collections: list[str] = Field(default_factory=list)
    mitigation: str = ""

    @field_validator("affected_collections", mode="before")
    @classmethod
    def _null_collections(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("description", "mitigation", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value


def group_risks_by_severity(risks: list[Risk]) -> dict[Severity, list[Risk]]:
    """Group risks by severity, most severe first.

    Only severities with at least one risk appear in the result.
    """
    grouped: dict[Severity, list[Risk]] = {}
    for risk in sorted(risks, key=lambda r: r.severity.rank, reverse=True):
        grouped.setdefault(risk.severity, []).append(risk)
    return grouped


# ============================================================================
# Analysis Models
# ============================================================================


class AnalysisSnapshot(BaseModel):
    """Summary of the most recent discovery.  Replaced by every new analysis."""

    collections: list[str] = Field(default_factory=list)
    field_counts_by_collection: dict[str, int] = Field(default_factory=dict)
    relationship_count: int = 0
    risk_count: int = 0
    timestamp: datetime


class AnalysisResult(WireModel):
    """Result of a discovery request."""

    success: bool
    message: str = ""
    schema_id: str | None = None
    collections: list[str] = Field(default_factory=list)
    collection_field_counts: dict[str, int] = Field(default_factory=dict)
    relationship_count: int = 0
    risk_count: int = 0
    error: str | None = None

    def to_snapshot(self, timestamp: datetime) -> AnalysisSnapshot:
        return AnalysisSnapshot(
            collections=list(self.collections),
            field_counts_by_collection=dict(self.collection_field_counts),
            relationship_count=self.relationship_count,
            risk_count=self.risk_count,
            timestamp=timestamp,
        )
