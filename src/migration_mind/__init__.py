"""migration-mind: Async client for MongoDB-to-PostgreSQL migrations.

Probes a source MongoDB database, resolves its analysis session, drives
schema discovery and migration-plan generation on the backend service,
and monitors migration runs to completion.

Usage:
    from migration_mind import HttpMigrationApi, MigrationWorkspace
    from migration_mind import ExecutionMonitor, MonitorState
    from migration_mind import load_config, get_api
"""

__version__ = "0.1.0"

# Client
from migration_mind.client.base import ApiError, ApiResponse, MigrationApi, NetworkError
from migration_mind.client.http import HttpMigrationApi

# Config
from migration_mind.config.loader import load_config
from migration_mind.config.models import ClientConfig, SourceProfile

# Analysis
from migration_mind.analysis.models import ConnectionDescriptor
from migration_mind.analysis.orchestrator import AnalysisOrchestrator
from migration_mind.analysis.probe import ConnectionProbe
from migration_mind.analysis.session import SessionResolver

# Plan
from migration_mind.plan.generator import PlanGenerator
from migration_mind.plan.models import MigrationPlan, normalize_plan

# Execution
from migration_mind.execution.monitor import ExecutionMonitor
from migration_mind.execution.state import InvalidTransitionError
from migration_mind.execution.models import MonitorState, calculate_percentage

# Factory / workspace
from migration_mind.factory import (
    ProfileNotFoundError,
    get_api,
    profile_to_descriptor,
    resolve_connection_string,
)
from migration_mind.workspace import MigrationWorkspace

__all__ = [
    # Client
    "MigrationApi",
    "HttpMigrationApi",
    "ApiResponse",
    "ApiError",
    "NetworkError",
    # Config
    "load_config",
    "ClientConfig",
    "SourceProfile",
    # Analysis
    "ConnectionDescriptor",
    "ConnectionProbe",
    "SessionResolver",
    "AnalysisOrchestrator",
    # Plan
    "MigrationPlan",
    "PlanGenerator",
    "normalize_plan",
    # Execution
    "ExecutionMonitor",
    "MonitorState",
    "InvalidTransitionError",
    "calculate_percentage",
    # Factory / workspace
    "get_api",
    "profile_to_descriptor",
    "resolve_connection_string",
    "ProfileNotFoundError",
    "MigrationWorkspace",
]
