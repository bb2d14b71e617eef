"""Source analysis: connection probing, session resolution and discovery.

Usage:
    from migration_mind.analysis import (
        AnalysisOrchestrator,
        ConnectionDescriptor,
        ConnectionProbe,
        SessionResolver,
    )
"""

from migration_mind.analysis.connection_string import (
    ConnectionStringError,
    apply_connection_string,
    parse_connection_string,
)
from migration_mind.analysis.models import (
    AnalysisResult,
    AnalysisSnapshot,
    ConnectionDescriptor,
    ConnectionRole,
    ProbeResult,
    Relationship,
    Risk,
    SchemaField,
    SessionListResult,
    SessionResult,
    SessionStatistics,
    SessionSummary,
    Severity,
    group_risks_by_severity,
)
from migration_mind.analysis.orchestrator import (
    AnalysisArtifacts,
    AnalysisOrchestrator,
    AnalysisStatus,
)
from migration_mind.analysis.probe import ConnectionProbe
from migration_mind.analysis.session import SessionResolver

__all__ = [
    "ConnectionDescriptor",
    "ConnectionRole",
    "ConnectionStringError",
    "apply_connection_string",
    "parse_connection_string",
    "ProbeResult",
    "ConnectionProbe",
    "SessionResult",
    "SessionResolver",
    "SessionSummary",
    "SessionListResult",
    "SessionStatistics",
    "SchemaField",
    "Relationship",
    "Risk",
    "Severity",
    "group_risks_by_severity",
    "AnalysisResult",
    "AnalysisSnapshot",
    "AnalysisArtifacts",
    "AnalysisOrchestrator",
    "AnalysisStatus",
]
