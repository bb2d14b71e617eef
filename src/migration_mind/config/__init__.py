"""Configuration management: TOML loading and config models.

Usage:
    >>> from migration_mind.config import load_config, ClientConfig, SourceProfile
"""

from migration_mind.config.loader import load_config
from migration_mind.config.models import (
    AnalysisSettings,
    ClientConfig,
    ServiceSettings,
    SourceProfile,
)

__all__ = [
    "load_config",
    "ClientConfig",
    "ServiceSettings",
    "AnalysisSettings",
    "SourceProfile",
]
