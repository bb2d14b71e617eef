"""Migration plan models, normalization and generation.

Usage:
    from migration_mind.plan import MigrationPlan, PlanGenerator, normalize_plan
"""

from migration_mind.plan.generator import PlanGenerator
from migration_mind.plan.models import (
    ColumnMapping,
    ForeignKeyMapping,
    IndexRecommendation,
    MigrationPlan,
    MigrationStep,
    PlanResult,
    TableMapping,
    normalize_plan,
)

__all__ = [
    "MigrationPlan",
    "TableMapping",
    "ColumnMapping",
    "MigrationStep",
    "ForeignKeyMapping",
    "IndexRecommendation",
    "PlanResult",
    "normalize_plan",
    "PlanGenerator",
]
