"""Pydantic models for client configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class ServiceSettings(BaseModel):
    """Backend service endpoint and polling cadence."""

    base_url: str = "http://localhost:8080"
    timeout: float = 30.0  # Seconds per HTTP request
    poll_interval: float = 2.0  # Seconds between run progress polls


class AnalysisSettings(BaseModel):
    """Defaults for discovery requests."""

    sample_size: int = Field(default=1000, gt=0)
    include_ai: bool = False


class SourceProfile(BaseModel):
    """Source MongoDB connection profile from migration-mind.toml."""

    host: str = "localhost"
    port: int = 27017
    database: str = ""
    username: str | None = None
    password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    connection_string: str | None = None
    auth_database: str | None = None
    description: str = ""


class ClientConfig(BaseModel):
    """Complete client configuration from migration-mind.toml."""

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    profiles: dict[str, SourceProfile] = Field(default_factory=dict)
