"""TOML configuration loader."""

import tomllib
from pathlib import Path

from migration_mind.config.models import ClientConfig

DEFAULT_CONFIG_FILE = "migration-mind.toml"


def load_config(config_path: Path | None = None) -> ClientConfig:
    """Load client configuration from TOML file.

    Args:
        config_path: Path to migration-mind.toml (default: current working
            directory).

    Returns:
        ClientConfig with service settings, analysis defaults and profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config values are invalid
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Client config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_FILE} with a [service] section and "
            f"[profiles.<name>] source connections."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return ClientConfig(
        service=data.get("service", {}),
        analysis=data.get("analysis", {}),
        profiles=data.get("profiles", {}),
    )
