"""Tests for connection probing, session resolution and analysis orchestration."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from migration_mind.analysis.models import (
    ConnectionDescriptor,
    Relationship,
    Risk,
    Severity,
    group_risks_by_severity,
)
from migration_mind.analysis.orchestrator import AnalysisOrchestrator, AnalysisStatus
from migration_mind.analysis.probe import ConnectionProbe
from migration_mind.analysis.session import NO_USER_ERROR, SessionResolver
from migration_mind.client.base import ApiResponse, MalformedResponseError, NetworkError

FIXED_NOW = datetime(2025, 1, 10, 12, 30, tzinfo=timezone.utc)


def _resp(data=None, status_code: int = 200) -> ApiResponse:
    return ApiResponse(status_code=status_code, data=data)


SCHEMA = _resp(
    {
        "collections": {
            "users": [
                {
                    "collectionName": "users",
                    "fieldName": "email",
                    "fieldPath": "email",
                    "dataTypes": ["string"],
                    "frequency": 1.0,
                    "isRequired": True,
                    "isArray": False,
                },
                {
                    "collectionName": "users",
                    "fieldName": "tags",
                    "fieldPath": "tags",
                    "dataTypes": None,
                    "frequency": None,
                    "isRequired": None,
                    "isArray": True,
                },
            ],
            "orders": [
                {"collectionName": "orders", "fieldName": "userId", "fieldPath": "userId"},
            ],
        }
    }
)
RELATIONSHIPS = _resp(
    {
        "relationships": [
            {
                "sourceCollection": "orders",
                "sourceField": "userId",
                "targetCollection": "users",
                "targetField": "_id",
                "relationType": "MANY_TO_ONE",
                "confidence": 0.92,
                "detectionMethod": "NAMING_CONVENTION",
            }
        ]
    }
)
RISKS = _resp(
    {
        "risks": [
            {"riskType": "MIXED_TYPES", "severity": "MEDIUM", "description": "price is mixed"},
            {"riskType": "DEEP_NESTING", "severity": "CRITICAL", "description": "too deep"},
            {"riskType": "LARGE_ARRAY", "severity": "HIGH", "description": "tags grows"},
        ]
    }
)
PLAN = _resp(
    {
        "planJson": {
            "tableMappings": [
                {"sourceCollection": "users", "targetTable": "users", "columns": []}
            ],
            "migrationSteps": [{"step": 1, "description": "Create tables"}],
        }
    }
)
ANALYSIS_OK = _resp(
    {
        "success": True,
        "message": "Analysis completed successfully",
        "schemaId": "schema-1",
        "collections": ["users", "orders"],
        "collectionFieldCounts": {"users": 2, "orders": 1},
        "relationshipCount": 1,
        "riskCount": 3,
    }
)


def _load_artifacts(api: AsyncMock) -> None:
    api.get_schema.return_value = SCHEMA
    api.get_relationships.return_value = RELATIONSHIPS
    api.get_risks.return_value = RISKS
    api.get_migration_plan.return_value = PLAN


# ============================================================================
# Connection probe
# ============================================================================


class TestConnectionProbe:
    """Verify probe results for success and each failure kind."""

    @pytest.mark.asyncio
    async def test_success(self, api: AsyncMock) -> None:
        api.test_connection.return_value = _resp(
            {
                "success": True,
                "message": "Connection successful",
                "collectionCount": 2,
                "collections": ["users", "orders"],
            }
        )

        result = await ConnectionProbe(api).probe(ConnectionDescriptor(database_name="shop"))

        assert result.success is True
        assert result.collection_count == 2
        payload = api.test_connection.await_args.args[0]
        assert payload["databaseName"] == "shop"
        assert payload["type"] == "SOURCE"

    @pytest.mark.asyncio
    async def test_connection_string_applied_before_probe(self, api: AsyncMock) -> None:
        api.test_connection.return_value = _resp({"success": True})
        conn = ConnectionDescriptor(
            host="ignored", connection_string="mongodb://u:p@db.local:27018/shop"
        )

        await ConnectionProbe(api).probe(conn)

        payload = api.test_connection.await_args.args[0]
        assert payload["host"] == "db.local"
        assert payload["port"] == 27018
        assert payload["username"] == "u"

    @pytest.mark.asyncio
    async def test_server_reported_failure(self, api: AsyncMock) -> None:
        api.test_connection.return_value = _resp(
            {"success": False, "error": "Authentication failed"}
        )

        result = await ConnectionProbe(api).probe(ConnectionDescriptor())

        assert result.success is False
        assert result.error == "Authentication failed"

    @pytest.mark.asyncio
    async def test_network_error(self, api: AsyncMock) -> None:
        api.test_connection.side_effect = NetworkError("connection refused")

        result = await ConnectionProbe(api).probe(ConnectionDescriptor())

        assert result.success is False
        assert result.error.startswith("Network error")

    @pytest.mark.asyncio
    async def test_malformed_response(self, api: AsyncMock) -> None:
        api.test_connection.side_effect = MalformedResponseError("not json")

        result = await ConnectionProbe(api).probe(ConnectionDescriptor())

        assert result.success is False


# ============================================================================
# Session resolver
# ============================================================================


class TestSessionResolver:
    """Verify session resolution and its preconditions."""

    @pytest.mark.asyncio
    async def test_no_user_blocks_without_network(self, api: AsyncMock) -> None:
        result = await SessionResolver(api).resolve(None, ConnectionDescriptor())

        assert result.success is False
        assert result.error == NO_USER_ERROR
        api.get_or_create_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resolves_by_connection_identity(self, api: AsyncMock) -> None:
        api.get_or_create_session.return_value = _resp(
            {"migrationId": "s1", "isExisting": False, "hasAnalysis": False}
        )
        conn = ConnectionDescriptor(host="db.local", port=27018, database_name="shop", password="x")

        result = await SessionResolver(api).resolve("u1", conn)

        assert result.session_id == "s1"
        api.get_or_create_session.assert_awaited_once_with("u1", "db.local", 27018, "shop")

    @pytest.mark.asyncio
    async def test_second_resolution_reports_existing(self, api: AsyncMock) -> None:
        api.get_or_create_session.side_effect = [
            _resp({"migrationId": "s1", "isExisting": False, "hasAnalysis": False}),
            _resp(
                {
                    "migrationId": "s1",
                    "isExisting": True,
                    "hasAnalysis": True,
                    "hasMigrationPlan": False,
                    "lastAnalyzedAt": "2025-01-10T12:00:00",
                }
            ),
        ]
        resolver = SessionResolver(api)
        conn = ConnectionDescriptor(database_name="shop")

        first = await resolver.resolve("u1", conn)
        second = await resolver.resolve("u1", conn)

        assert first.session_id == second.session_id == "s1"
        assert second.is_existing is True
        assert second.has_analysis is True

    @pytest.mark.asyncio
    async def test_server_error(self, api: AsyncMock) -> None:
        api.get_or_create_session.return_value = _resp(
            {"error": "userId is required"}, status_code=400
        )

        result = await SessionResolver(api).resolve("u1", ConnectionDescriptor())

        assert result.success is False
        assert result.error == "userId is required"

    @pytest.mark.asyncio
    async def test_missing_session_id(self, api: AsyncMock) -> None:
        api.get_or_create_session.return_value = _resp({"isExisting": False})

        result = await SessionResolver(api).resolve("u1", ConnectionDescriptor())

        assert result.success is False

    @pytest.mark.asyncio
    async def test_list_sessions(self, api: AsyncMock) -> None:
        api.list_sessions.return_value = _resp(
            {
                "migrations": [
                    {
                        "id": "s1",
                        "name": "shop",
                        "status": "ANALYZED",
                        "sourceHost": "db.local",
                        "sourcePort": 27017,
                        "sourceDatabase": "shop",
                        "hasAnalysis": True,
                    }
                ]
            }
        )

        result = await SessionResolver(api).list_sessions("u1")

        assert result.success is True
        assert result.sessions[0].source_database == "shop"
        api.list_sessions.assert_awaited_once_with("u1")

    @pytest.mark.asyncio
    async def test_statistics(self, api: AsyncMock) -> None:
        api.get_statistics.return_value = _resp(
            {"collectionCount": 2, "totalFields": 3, "relationshipCount": 1, "riskCount": 3}
        )

        stats = await SessionResolver(api).get_statistics("s1")

        assert stats.total_fields == 3

    @pytest.mark.asyncio
    async def test_statistics_unavailable(self, api: AsyncMock) -> None:
        api.get_statistics.side_effect = NetworkError("down")

        assert await SessionResolver(api).get_statistics("s1") is None


# ============================================================================
# Analysis orchestrator
# ============================================================================


class TestAnalysisOrchestrator:
    """Verify discovery, fan-out loading and partial failure handling."""

    @pytest.mark.asyncio
    async def test_analyze_loads_all_artifacts(self, api: AsyncMock) -> None:
        api.analyze.return_value = ANALYSIS_OK
        _load_artifacts(api)
        orchestrator = AnalysisOrchestrator(api, clock=lambda: FIXED_NOW)
        conn = ConnectionDescriptor(host="db.local", database_name="shop")

        result = await orchestrator.analyze("s1", conn)

        assert result.success is True
        api.analyze.assert_awaited_once_with(
            "s1", conn.to_payload(), sample_size=1000, include_ai=False
        )
        for loader in (
            api.get_schema,
            api.get_relationships,
            api.get_risks,
            api.get_migration_plan,
        ):
            loader.assert_awaited_once_with("s1")

        assert orchestrator.status is AnalysisStatus.LOADED
        assert orchestrator.has_existing_analysis is True
        assert orchestrator.last_analyzed_at == FIXED_NOW
        assert orchestrator.snapshot.collections == ["users", "orders"]
        assert orchestrator.snapshot.field_counts_by_collection == {"users": 2, "orders": 1}
        assert orchestrator.snapshot.timestamp == FIXED_NOW

        artifacts = orchestrator.artifacts
        assert sorted(artifacts.schemas) == ["orders", "users"]
        assert artifacts.schemas["users"][1].data_types == []
        assert artifacts.schemas["users"][1].frequency == 0.0
        assert artifacts.relationships[0].target_collection == "users"
        assert len(artifacts.risks) == 3
        assert artifacts.plan.table_mappings[0].target_table == "users"

    @pytest.mark.asyncio
    async def test_reanalysis_replaces_snapshot(self, api: AsyncMock) -> None:
        api.analyze.side_effect = [
            ANALYSIS_OK,
            _resp(
                {
                    "success": True,
                    "message": "Analysis completed successfully",
                    "collections": ["products"],
                    "collectionFieldCounts": {"products": 7},
                }
            ),
        ]
        orchestrator = AnalysisOrchestrator(api)

        await orchestrator.analyze("s1", ConnectionDescriptor())
        await orchestrator.analyze("s1", ConnectionDescriptor())

        assert orchestrator.snapshot.collections == ["products"]
        assert orchestrator.snapshot.field_counts_by_collection == {"products": 7}

    @pytest.mark.asyncio
    async def test_analysis_failure_restores_status(self, api: AsyncMock) -> None:
        api.analyze.return_value = _resp(
            {"success": False, "message": "Failed", "error": "Authentication failed"},
            status_code=500,
        )
        orchestrator = AnalysisOrchestrator(api)

        result = await orchestrator.analyze("s1", ConnectionDescriptor())

        assert result.success is False
        assert result.error == "Authentication failed"
        assert orchestrator.status is AnalysisStatus.IDLE
        assert orchestrator.snapshot is None
        api.get_schema.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analysis_network_error(self, api: AsyncMock) -> None:
        api.analyze.side_effect = NetworkError("timeout")
        orchestrator = AnalysisOrchestrator(api)

        result = await orchestrator.analyze("s1", ConnectionDescriptor())

        assert result.success is False
        assert orchestrator.status is AnalysisStatus.IDLE

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_previous_value(self, api: AsyncMock) -> None:
        _load_artifacts(api)
        orchestrator = AnalysisOrchestrator(api)
        await orchestrator.load_existing("s1")
        previous_relationships = orchestrator.artifacts.relationships

        api.get_relationships.side_effect = NetworkError("connection reset")
        api.get_risks.return_value = _resp(
            {"risks": [{"riskType": "MIXED_TYPES", "severity": "LOW"}]}
        )

        applied = await orchestrator.load_existing("s1")

        assert applied == {
            "schemas": True,
            "relationships": False,
            "risks": True,
            "plan": True,
        }
        assert orchestrator.artifacts.relationships == previous_relationships
        assert [r.severity for r in orchestrator.artifacts.risks] == [Severity.LOW]

    @pytest.mark.asyncio
    async def test_plan_not_found_is_not_an_error(self, api: AsyncMock) -> None:
        _load_artifacts(api)
        api.get_migration_plan.return_value = _resp(
            {"error": "Migration plan not found"}, status_code=404
        )
        orchestrator = AnalysisOrchestrator(api)

        applied = await orchestrator.load_existing("s1")

        assert applied["plan"] is False
        assert applied["schemas"] is True
        assert orchestrator.artifacts.plan is None
        assert orchestrator.status is AnalysisStatus.LOADED

    @pytest.mark.asyncio
    async def test_unknown_severity_keeps_previous_risks(self, api: AsyncMock) -> None:
        _load_artifacts(api)
        orchestrator = AnalysisOrchestrator(api)
        await orchestrator.load_risks("s1")

        api.get_risks.return_value = _resp(
            {"risks": [{"riskType": "X", "severity": "CATASTROPHIC"}]}
        )

        assert await orchestrator.load_risks("s1") is False
        assert len(orchestrator.artifacts.risks) == 3

    @pytest.mark.asyncio
    async def test_null_optional_columns_are_accepted(self, api: AsyncMock) -> None:
        api.get_risks.return_value = _resp(
            {
                "risks": [
                    {
                        "riskType": "ARRAY_FIELD",
                        "severity": "HIGH",
                        "description": None,
                        "affectedCollections": None,
                        "mitigation": None,
                    }
                ]
            }
        )
        api.get_relationships.return_value = _resp(
            {
                "relationships": [
                    {
                        "sourceCollection": "orders",
                        "sourceField": "userId",
                        "targetCollection": "users",
                        "targetField": None,
                        "relationType": None,
                        "confidence": None,
                        "detectionMethod": None,
                    }
                ]
            }
        )
        orchestrator = AnalysisOrchestrator(api)

        assert await orchestrator.load_risks("s1") is True
        assert await orchestrator.load_relationships("s1") is True

        risk = orchestrator.artifacts.risks[0]
        assert risk.mitigation == ""
        assert risk.affected_collections == []
        rel = orchestrator.artifacts.relationships[0]
        assert rel.confidence == 0.0
        assert rel.detection_method == ""
        assert rel.target_field == "_id"

    def test_mark_existing_parses_timestamp(self, api: AsyncMock) -> None:
        orchestrator = AnalysisOrchestrator(api)

        orchestrator.mark_existing("2025-01-10T12:00:00")

        assert orchestrator.has_existing_analysis is True
        assert orchestrator.last_analyzed_at == datetime(2025, 1, 10, 12, 0)

        orchestrator.forget_existing()
        assert orchestrator.has_existing_analysis is False
        assert orchestrator.last_analyzed_at is None


class TestRiskGrouping:
    """Risks group most severe first."""

    def test_order(self) -> None:
        risks = [
            Risk(risk_type="a", severity=Severity.LOW),
            Risk(risk_type="b", severity=Severity.CRITICAL),
            Risk(risk_type="c", severity=Severity.MEDIUM),
            Risk(risk_type="d", severity=Severity.CRITICAL),
        ]

        grouped = group_risks_by_severity(risks)

        assert list(grouped) == [Severity.CRITICAL, Severity.MEDIUM, Severity.LOW]
        assert [r.risk_type for r in grouped[Severity.CRITICAL]] == ["b", "d"]

    def test_relationship_confidence_bounds(self) -> None:
        with pytest.raises(ValueError):
            Relationship(
                source_collection="a",
                source_field="b",
                target_collection="c",
                confidence=1.5,
            )
