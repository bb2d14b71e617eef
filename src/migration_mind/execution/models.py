"""Pydantic models for target credentials and migration run progress.

This module contains execution-domain models and pure helpers:
- Status enums: TableStatus, RunStatus, MonitorState
- Target models: TargetCredentials, TargetSummary
- Progress models: TableProgress
- Result models: CredentialsResult, StartResult
- Helpers: calculate_percentage, derive_run_status, is_run_complete,
  validate_target_credentials
"""

import math
from enum import StrEnum
from typing import Any

from pydantic import Field, SecretStr

from migration_mind.client.base import WireModel


# ============================================================================
# Status Enums
# ============================================================================


class TableStatus(StrEnum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TableStatus.COMPLETED, TableStatus.FAILED)


class RunStatus(StrEnum):
    """Aggregate run status, derived from table progress (never stored)."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"


class MonitorState(StrEnum):
    UNCONFIGURED = "UNCONFIGURED"
    CONFIGURED = "CONFIGURED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"


# ============================================================================
# Target Models
# ============================================================================


class CredentialsValidationError(ValueError):
    """Raised when target credentials are incomplete or malformed."""

    def __init__(self, missing: list[str], message: str | None = None) -> None:
        self.missing = missing
        super().__init__(message or "Please fill in all target database fields")


class TargetCredentials(WireModel):
    """Target PostgreSQL credentials, written once per session.

    Example:
        >>> creds = TargetCredentials(
        ...     host="db.example.com", port=5432, database_name="postgres",
        ...     username="postgres", password="s3cret",
        ... )
        >>> creds.to_payload()["targetDatabase"]
        'postgres'
        >>> "s3cret" in repr(creds)
        False
    """

    host: str = Field(alias="targetHost", min_length=1)
    port: int = Field(alias="targetPort", ge=1, le=65535)
    database_name: str = Field(alias="targetDatabase", min_length=1)
    username: str = Field(alias="targetUsername", min_length=1)
    password: SecretStr = Field(alias="targetPassword")

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["targetPassword"] = self.password.get_secret_value()
        return payload


class TargetSummary(WireModel):
    """What the service reveals about a session's configured target.

    The service never returns the password; this model has no field to
    hold one.
    """

    has_target_credentials: bool = False
    target_host: str | None = None
    target_port: int | None = None
    target_database: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.target_host}:{self.target_port}/{self.target_database}"


def validate_target_credentials(
    host: str | None,
    port: int | str | None,
    database_name: str | None,
    username: str | None,
    password: str | None,
) -> TargetCredentials:
    """Build ``TargetCredentials`` from operator input, all five fields required.

    Raises:
        CredentialsValidationError: If any field is blank or the port is
            not an integer in 1-65535.

    Examples:
        >>> validate_target_credentials("h", "5432", "postgres", "u", "p").port
        5432

        >>> validate_target_credentials("h", "5432", "postgres", "u", "")
        Traceback (most recent call last):
        ...
        migration_mind.execution.models.CredentialsValidationError: Please fill in all target database fields
    """
    fields = {
        "host": host,
        "port": port,
        "database": database_name,
        "username": username,
        "password": password,
    }
    missing = [name for name, value in fields.items() if value is None or str(value).strip() == ""]
    if missing:
        raise CredentialsValidationError(missing)

    try:
        port_number = int(str(port).strip())
    except ValueError as e:
        raise CredentialsValidationError(["port"], f"Invalid target port: {port!r}") from e
    if not 1 <= port_number <= 65535:
        raise CredentialsValidationError(["port"], f"Invalid target port: {port!r}")

    return TargetCredentials(
        host=str(host).strip(),
        port=port_number,
        database_name=str(database_name).strip(),
        username=str(username).strip(),
        password=str(password),
    )


# ============================================================================
# Progress Models
# ============================================================================


def calculate_percentage(processed: int | float | None, total: int | float | None) -> int:
    """Completion percentage, rounded half-up and clamped to 0-100.

    Examples:
        >>> calculate_percentage(0, 0)
        0
        >>> calculate_percentage(50, 50)
        100
        >>> calculate_percentage(75, 50)
        100
        >>> calculate_percentage(1, 3)
        33
    """
    if not total or total <= 0 or not processed:
        return 0
    ratio = processed / total * 100
    if math.isnan(ratio):
        return 0
    return max(0, min(100, math.floor(ratio + 0.5)))


class TableProgress(WireModel):
    """Progress of one target table within a run."""

    id: str
    run_id: str
    table_name: str
    rows_total: int = 0
    rows_processed: int = 0
    status: TableStatus = TableStatus.PENDING
    updated_at: str | None = None

    @property
    def percentage(self) -> int:
        return calculate_percentage(self.rows_processed, self.rows_total)


def is_run_complete(progress: list[TableProgress]) -> bool:
    """True when at least one table exists and every table is terminal.

    An empty progress list (workers still initializing) is never complete.
    """
    return len(progress) > 0 and all(p.status.is_terminal for p in progress)


def derive_run_status(progress: list[TableProgress]) -> RunStatus:
    return RunStatus.COMPLETED if is_run_complete(progress) else RunStatus.RUNNING


# ============================================================================
# Result Models
# ============================================================================


class CredentialsResult(WireModel):
    success: bool
    error: str | None = None


class StartResult(WireModel):
    success: bool
    run_id: str | None = None
    error: str | None = None
