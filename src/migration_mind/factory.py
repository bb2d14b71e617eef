"""Client factory and local session state.

Resolves which source profile and user to work with, builds the backend
client, and persists the resolved session so later commands can resume it.

Profile resolution:
1. ``{prefix}SOURCE_PROFILE`` env var (first connect or CI)
2. ``.migration-session`` lock file (session from a previous connect)
3. Raise ProfileNotFoundError
"""

import json
import logging
import os
from pathlib import Path
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from migration_mind.analysis.connection_string import apply_connection_string
from migration_mind.analysis.models import ConnectionDescriptor, ConnectionRole
from migration_mind.client.http import HttpMigrationApi
from migration_mind.config.loader import load_config
from migration_mind.config.models import ClientConfig, SourceProfile

logger = logging.getLogger(__name__)

SESSION_LOCK_FILE = ".migration-session"
PASSWORD_PLACEHOLDER = "[YOUR-PASSWORD]"


# ============================================================================
# Session Lock File Operations
# ============================================================================


class ProfileNotFoundError(Exception):
    """Raised when no source profile is configured."""

    pass


class SessionLock(BaseModel):
    """Contents of the ``.migration-session`` lock file."""

    profile: str | None = None
    session_id: str
    host: str
    port: int
    database: str
    run_id: str | None = None


def _lock_path() -> Path:
    return Path.cwd() / SESSION_LOCK_FILE


def read_session_lock() -> SessionLock | None:
    """Read the session lock from the working directory.

    Returns:
        SessionLock if the lock file exists and is readable, None otherwise
    """
    path = _lock_path()
    if not path.exists():
        return None
    try:
        return SessionLock.model_validate(json.loads(path.read_text()))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable {SESSION_LOCK_FILE}: {e}")
        return None


def write_session_lock(lock: SessionLock) -> None:
    """Write the session lock.

    Only call this after a successful probe and session resolution.
    """
    _lock_path().write_text(lock.model_dump_json(indent=2))


def clear_session_lock() -> None:
    """Remove the session lock file."""
    path = _lock_path()
    if path.exists():
        path.unlink()


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Args:
        env_prefix: Prefix for environment variable lookup
            (``env_prefix="MM_"`` reads ``MM_SOURCE_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}SOURCE_PROFILE")
    if env_profile:
        return env_profile

    lock = read_session_lock()
    if lock and lock.profile:
        return lock.profile

    raise ProfileNotFoundError(
        "No source profile configured.\n"
        f"Run: {env_prefix}SOURCE_PROFILE=<name> migration-mind connect\n"
        "List profiles with: migration-mind profiles"
    )


def get_active_profile(
    env_prefix: str = "",
    config: ClientConfig | None = None,
) -> tuple[str, SourceProfile]:
    """Get active profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile configured
        KeyError: If profile not found in migration-mind.toml
    """
    profile_name = get_active_profile_name(env_prefix)
    if config is None:
        config = load_config()

    if profile_name not in config.profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in migration-mind.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


def get_user_id(env_prefix: str = "") -> str | None:
    """Read the operator's user id from ``{prefix}MIGRATION_USER_ID``."""
    return os.environ.get(f"{env_prefix}MIGRATION_USER_ID") or None


# ============================================================================
# Connection Resolution
# ============================================================================


def resolve_connection_string(profile: SourceProfile) -> str | None:
    """Resolve profile connection string with password substitution.

    Example:
        >>> p = SourceProfile(
        ...     connection_string="mongodb://app:[YOUR-PASSWORD]@db:27017/shop",
        ...     password="p@ss",
        ... )
        >>> resolve_connection_string(p)
        'mongodb://app:p%40ss@db:27017/shop'
    """
    value = profile.connection_string
    if value and profile.password and PASSWORD_PLACEHOLDER in value:
        value = value.replace(PASSWORD_PLACEHOLDER, quote(profile.password, safe=""))
    return value


def profile_to_descriptor(profile: SourceProfile) -> ConnectionDescriptor:
    """Build the SOURCE connection descriptor for *profile*.

    A connection string, when present, overrides the discrete fields.
    """
    descriptor = ConnectionDescriptor(
        host=profile.host,
        port=profile.port,
        database_name=profile.database,
        username=profile.username,
        password=profile.password,
        auth_database=profile.auth_database,
        role=ConnectionRole.SOURCE,
    )
    connection_string = resolve_connection_string(profile)
    if connection_string:
        descriptor = apply_connection_string(descriptor, connection_string)
    return descriptor


# ============================================================================
# Client Factory
# ============================================================================


def get_api(config: ClientConfig) -> HttpMigrationApi:
    """Create the backend client from the ``[service]`` settings.

    The caller owns the client and must close it (or use ``async with``).
    """
    return HttpMigrationApi(config.service.base_url, timeout=config.service.timeout)
