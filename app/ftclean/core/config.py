"""Connection and pipeline settings.

Settings are stored in ~/.config/ftclean/config.toml:

    [connection]
    server_url = "https://studio.ftrackapp.com"
    api_user = "jane.doe"

    [deletion]
    entity_batch_size = 10

The environment variables FTRACK_SERVER, FTRACK_API_USER and FTRACK_API_KEY
take precedence over the file, so the API key never has to be written to
disk.
"""

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ftclean.core.paths import get_config_path

logger = logging.getLogger(__name__)

# Environment variable -> connection field
ENV_OVERRIDES: dict[str, str] = {
    "FTRACK_SERVER": "server_url",
    "FTRACK_API_USER": "api_user",
    "FTRACK_API_KEY": "api_key",
}


class ConnectionConfig(BaseModel):
    """Server connection settings.

    Attributes:
        server_url: Base server URL.
        api_user: API username.
        api_key: API key (prefer the FTRACK_API_KEY environment variable).
        timeout_seconds: Request timeout.
    """

    model_config = ConfigDict(extra="forbid")

    server_url: Annotated[str | None, Field(description="Server URL")] = None
    api_user: Annotated[str | None, Field(description="API username")] = None
    api_key: Annotated[str | None, Field(description="API key")] = None
    timeout_seconds: Annotated[
        int,
        Field(ge=5, le=600, description="Request timeout in seconds (5-600)"),
    ] = 60

    def missing_fields(self) -> list[str]:
        """Names of required connection fields that are unset."""
        return [
            name for name in ("server_url", "api_user", "api_key") if not getattr(self, name)
        ]


class DeletionSettings(BaseModel):
    """Batching settings for destructive calls.

    Attributes:
        entity_batch_size: Entities deleted per batch.
        component_batch_size: Components deleted per call.
        entity_pause_ms: Pause between entity batches.
        component_pause_ms: Pause between component calls.
    """

    model_config = ConfigDict(extra="forbid")

    entity_batch_size: Annotated[int, Field(ge=1, le=100)] = 10
    component_batch_size: Annotated[int, Field(ge=1, le=100)] = 5
    entity_pause_ms: Annotated[int, Field(ge=0, le=10_000)] = 100
    component_pause_ms: Annotated[int, Field(ge=0, le=10_000)] = 50


class SelectionSettings(BaseModel):
    """Selection defaults.

    Attributes:
        page_size: Candidates per page.
        search_field: Attribute path patterns are matched against.
        entity_type: Entity type selected and deleted.
    """

    model_config = ConfigDict(extra="forbid")

    page_size: Annotated[int, Field(ge=1, le=500)] = 20
    search_field: Annotated[str, Field(min_length=1)] = "asset.parent.name"
    entity_type: Annotated[str, Field(min_length=1)] = "AssetVersion"


class AppConfig(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="forbid")

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    deletion: DeletionSettings = Field(default_factory=DeletionSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    project: Annotated[str | None, Field(description="Default project name")] = None


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def _apply_env_overrides(data: dict[str, object], environ: Mapping[str, str]) -> dict[str, object]:
    """Merge connection environment variables over file values."""
    raw = data.get("connection", {})
    if not isinstance(raw, dict):
        # Leave malformed sections for schema validation to report
        return data
    connection: dict[str, object] = dict(raw)
    for env_var, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value:
            logger.debug("Using %s from environment", field_name)
            connection[field_name] = value
    return {**data, "connection": connection}


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from TOML with environment overrides.

    A missing file is not an error: defaults are used and the environment
    may still supply the connection.

    Args:
        path: Path to the config file. If None, uses the default path.
        environ: Environment mapping. If None, uses ``os.environ``.

    Returns:
        Validated AppConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content doesn't
            match the schema.
    """
    config_path = path or get_config_path()
    env = os.environ if environ is None else environ

    data: dict[str, object] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config: {e}") from e
    else:
        logger.debug("No config file at %s, using defaults", config_path)

    try:
        return AppConfig.model_validate(_apply_env_overrides(data, env))
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The API key is never written. The file is written atomically by first
    writing to a temporary file and then using os.replace().

    Args:
        config: The AppConfig to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_none=True, exclude={"connection": {"api_key"}})

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def mask_secret(value: str | None) -> str:
    """Mask a secret for display, keeping the last four characters."""
    if not value:
        return "-"
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"
