"""Tests for progress arithmetic, run-status derivation and target credentials."""

import pytest

from migration_mind.execution.models import (
    CredentialsValidationError,
    RunStatus,
    TableProgress,
    TableStatus,
    TargetCredentials,
    TargetSummary,
    calculate_percentage,
    derive_run_status,
    is_run_complete,
    validate_target_credentials,
)


def _table(name: str, status: str, processed: int = 0, total: int = 100) -> TableProgress:
    return TableProgress.model_validate(
        {
            "id": f"p-{name}",
            "runId": "r1",
            "tableName": name,
            "rowsTotal": total,
            "rowsProcessed": processed,
            "status": status,
        }
    )


class TestCalculatePercentage:
    """Percentage is clamped to 0-100 and never NaN or negative."""

    @pytest.mark.parametrize(
        ("processed", "total", "expected"),
        [
            (0, 0, 0),
            (10, 0, 0),
            (0, 50, 0),
            (25, 50, 50),
            (50, 50, 100),
            (75, 50, 100),
            (1, 3, 33),
            (2, 3, 67),
            (-5, 50, 0),
            (5, -10, 0),
            (None, 10, 0),
        ],
    )
    def test_values(self, processed, total, expected) -> None:
        assert calculate_percentage(processed, total) == expected

    def test_half_rounds_up(self) -> None:
        assert calculate_percentage(1, 8) == 13  # 12.5

    def test_table_progress_percentage(self) -> None:
        assert _table("users", "RUNNING", processed=30, total=60).percentage == 50


class TestRunStatus:
    """A run is complete only when every table is terminal."""

    def test_empty_progress_is_not_complete(self) -> None:
        assert is_run_complete([]) is False
        assert derive_run_status([]) is RunStatus.RUNNING

    def test_any_running_table_keeps_run_running(self) -> None:
        progress = [_table("users", "COMPLETED"), _table("orders", "RUNNING")]
        assert derive_run_status(progress) is RunStatus.RUNNING

    def test_pending_table_keeps_run_running(self) -> None:
        progress = [_table("users", "COMPLETED"), _table("orders", "PENDING")]
        assert is_run_complete(progress) is False

    def test_all_completed(self) -> None:
        progress = [_table("users", "COMPLETED"), _table("orders", "COMPLETED")]
        assert derive_run_status(progress) is RunStatus.COMPLETED

    def test_failed_counts_as_terminal(self) -> None:
        progress = [_table("users", "COMPLETED"), _table("orders", "FAILED")]
        assert is_run_complete(progress) is True

    def test_terminal_statuses(self) -> None:
        assert TableStatus.COMPLETED.is_terminal
        assert TableStatus.FAILED.is_terminal
        assert not TableStatus.RUNNING.is_terminal
        assert not TableStatus.PENDING.is_terminal


class TestTargetCredentials:
    """Local validation and wire format for target credentials."""

    def test_valid_input(self) -> None:
        creds = validate_target_credentials(" pg.local ", "5432", "postgres", "admin", "pw")
        assert creds.host == "pg.local"
        assert creds.port == 5432

    @pytest.mark.parametrize(
        "missing",
        ["host", "port", "database_name", "username", "password"],
    )
    def test_each_field_is_required(self, missing: str) -> None:
        fields = {
            "host": "pg.local",
            "port": "5432",
            "database_name": "postgres",
            "username": "admin",
            "password": "pw",
        }
        fields[missing] = ""
        with pytest.raises(CredentialsValidationError, match="fill in all"):
            validate_target_credentials(**fields)

    def test_reports_missing_fields(self) -> None:
        with pytest.raises(CredentialsValidationError) as exc_info:
            validate_target_credentials("pg.local", "5432", None, "", "pw")
        assert exc_info.value.missing == ["database", "username"]

    @pytest.mark.parametrize("port", ["abc", "0", "70000", "54.32"])
    def test_rejects_invalid_port(self, port: str) -> None:
        with pytest.raises(CredentialsValidationError, match="Invalid target port"):
            validate_target_credentials("pg.local", port, "postgres", "admin", "pw")

    def test_payload_uses_target_keys(self) -> None:
        creds = validate_target_credentials("pg.local", 5433, "app", "admin", "pw")
        assert creds.to_payload() == {
            "targetHost": "pg.local",
            "targetPort": 5433,
            "targetDatabase": "app",
            "targetUsername": "admin",
            "targetPassword": "pw",
        }

    def test_password_hidden_from_repr(self) -> None:
        creds = TargetCredentials(
            host="pg.local", port=5432, database_name="app", username="admin", password="pw-123"
        )
        assert "pw-123" not in repr(creds)
        assert "pw-123" not in str(creds)


class TestTargetSummary:
    """The configured-target summary never carries secrets."""

    def test_ignores_unknown_and_secret_fields(self) -> None:
        summary = TargetSummary.model_validate(
            {
                "id": "s1",
                "hasTargetCredentials": True,
                "targetHost": "pg.local",
                "targetPort": 5432,
                "targetDatabase": "postgres",
                "targetPassword": "leaked",
            }
        )
        assert summary.display_name == "pg.local:5432/postgres"
        assert "leaked" not in summary.model_dump_json()

    def test_defaults_to_unconfigured(self) -> None:
        assert TargetSummary.model_validate({"id": "s1"}).has_target_credentials is False
