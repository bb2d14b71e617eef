"""Migration plan models and payload normalization.

The service returns a plan either with its sections at the top level or
nested under ``planJson`` (the stored plan record).  ``normalize_plan``
maps both shapes onto one ``MigrationPlan``.

Usage:
    from migration_mind.plan.models import normalize_plan

    plan = normalize_plan({"planJson": {"tableMappings": [...]}})
    plan.table_mappings[0].target_table
"""

import json
import logging
from typing import Any

from pydantic import Field, ValidationError, field_validator

from migration_mind.client.base import WireModel

logger = logging.getLogger(__name__)

PLAN_SECTIONS = ("tableMappings", "migrationSteps", "foreignKeys", "indexes")


class ColumnMapping(WireModel):
    """Source field to target column mapping."""

    source_field: str
    target_column: str
    data_type: str = ""
    primary_key: bool = False
    nullable: bool = True
    requires_transformation: bool = False
    transformation_type: str | None = None


class TableMapping(WireModel):
    """Source collection to target table mapping."""

    source_collection: str
    target_table: str
    columns: list[ColumnMapping] = Field(default_factory=list)


class MigrationStep(WireModel):
    step: int | str
    description: str = ""
    note: str | None = None


class ForeignKeyMapping(WireModel):
    source_table: str
    source_column: str
    target_table: str
    target_column: str
    confidence: float | None = None


class IndexRecommendation(WireModel):
    index_name: str
    reason: str = ""


class MigrationPlan(WireModel):
    """Normalized migration plan.

    ``raw`` keeps the payload the plan was built from so an unstructured
    plan can still be shown verbatim.
    """

    table_mappings: list[TableMapping] = Field(default_factory=list)
    migration_steps: list[MigrationStep] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyMapping] = Field(default_factory=list)
    indexes: list[IndexRecommendation] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("table_mappings", "migration_steps", "foreign_keys", "indexes", mode="before")
    @classmethod
    def _null_sections(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_structured(self) -> bool:
        """True when at least one known section was present in the payload."""
        return any(key in self.raw for key in PLAN_SECTIONS)

    @property
    def is_empty(self) -> bool:
        return not (self.table_mappings or self.migration_steps or self.foreign_keys or self.indexes)


def normalize_plan(payload: Any) -> MigrationPlan | None:
    """Normalize a plan payload from either wire shape.

    Args:
        payload: Decoded JSON body from the plan endpoints.

    Returns:
        ``MigrationPlan``, or ``None`` when the payload is empty, carries
        an ``error`` or cannot be interpreted.

    Examples:
        >>> flat = normalize_plan({"tableMappings": [{"sourceCollection": "users", "targetTable": "users"}]})
        >>> nested = normalize_plan({"planJson": {"tableMappings": [{"sourceCollection": "users", "targetTable": "users"}]}})
        >>> flat == nested
        True

        >>> normalize_plan({"error": "Migration plan not found"}) is None
        True
    """
    if not isinstance(payload, dict) or not payload or payload.get("error"):
        return None

    body: Any = payload.get("planJson") or payload
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            logger.warning(f"planJson is not valid JSON: {e}")
            return None
    if not isinstance(body, dict):
        return None

    if not any(key in body for key in PLAN_SECTIONS):
        return MigrationPlan(raw=body)

    try:
        plan = MigrationPlan.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Unexpected migration plan payload: {e}")
        return None
    plan.raw = body
    return plan


class PlanResult(WireModel):
    """Result of a plan generation request."""

    success: bool
    plan: MigrationPlan | None = None
    error: str | None = None
