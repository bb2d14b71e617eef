"""Migration execution: target credentials, run start and progress polling.

Usage:
    from migration_mind.execution import ExecutionMonitor, MonitorState
"""

from migration_mind.execution.models import (
    CredentialsResult,
    CredentialsValidationError,
    MonitorState,
    RunStatus,
    StartResult,
    TableProgress,
    TableStatus,
    TargetCredentials,
    TargetSummary,
    calculate_percentage,
    derive_run_status,
    is_run_complete,
    validate_target_credentials,
)
from migration_mind.execution.monitor import ExecutionMonitor
from migration_mind.execution.state import (
    InvalidTransitionError,
    MonitorEvent,
    can_transition,
    transition,
)

__all__ = [
    "ExecutionMonitor",
    "MonitorState",
    "MonitorEvent",
    "InvalidTransitionError",
    "transition",
    "can_transition",
    "TableStatus",
    "TableProgress",
    "RunStatus",
    "TargetCredentials",
    "TargetSummary",
    "CredentialsResult",
    "CredentialsValidationError",
    "StartResult",
    "calculate_percentage",
    "derive_run_status",
    "is_run_complete",
    "validate_target_credentials",
]
