"""Settings loader for edgegap-deploy.

This module provides the SettingsLoader class for loading, parsing, and
validating ``edgegap.yaml`` into an EdgegapSettings instance.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from edgegap_deploy.config.env_loader import (
    get_env_var,
    load_env_file,
    substitute_env_vars,
)
from edgegap_deploy.lib.errors import ConfigError
from edgegap_deploy.models.settings import EdgegapSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "edgegap.yaml"

# Environment variable overrides, applied after the file is parsed
ENV_VAR_MAP = {
    "api_key": "EDGEGAP_API_KEY",
    "private_registry_username": "EDGEGAP_REGISTRY_USERNAME",
    "private_registry_token": "EDGEGAP_REGISTRY_TOKEN",
}

# Settings holding file system paths, resolved against the settings file
PATH_FIELDS = (
    "image_path",
    "staging_directory",
    "project_path",
    "engine_dir",
    "dockerfile_template",
    "start_script_template",
)

SETTINGS_TEMPLATE = """\
# edgegap-deploy settings
# Environment variables are substituted before parsing (see api_key below)

application_name: my-game
version_name: v1
image_path: icon.png
api_key: "${EDGEGAP_API_KEY:-}"

registry: registry.edgegap.com
image_repository: my-org/my-game
tag: latest
private_registry_username: "${EDGEGAP_REGISTRY_USERNAME:-}"
private_registry_token: "${EDGEGAP_REGISTRY_TOKEN:-}"

project_path: MyGame.uproject
engine_dir: /opt/UnrealEngine/Engine
staging_directory: Build
game_port: 7777

packaging:
  server_config: Shipping
  build: true
  compressed: true

version:
  req_cpu: 128
  req_memory: 256
"""


def _format_validation_errors(exc: PydanticValidationError) -> str:
    """Render pydantic errors as one line per offending setting."""
    lines: list[str] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ())) or "settings"
        lines.append(f"{loc}: {error.get('msg', 'invalid value')}")
    return "\n".join(lines) or "Settings validation failed"


class SettingsLoader:
    """Loads and validates edgegap-deploy settings from YAML files.

    This class handles:
    - Loading a ``.env`` file next to the settings file
    - Environment variable substitution in the raw YAML text
    - Environment variable overrides for credentials
    - Resolving relative paths against the settings file directory
    - Converting validation errors into human-readable messages
    """

    def __init__(self, load_dotenv: bool = True) -> None:
        """Initialize the loader.

        Args:
            load_dotenv: Load ``.env`` next to the settings file first
        """
        self.load_dotenv = load_dotenv

    def parse_yaml(self, path: Path) -> dict[str, Any]:
        """Read a settings file with environment variable substitution.

        Args:
            path: Path to the YAML file

        Returns:
            Parsed dictionary (empty for an empty file)

        Raises:
            ConfigError: If the file is missing, unreadable, or invalid YAML
        """
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                "settings_file",
                f"Settings file not found at {path}. Run 'edgegap init' to "
                "create one.",
            ) from e

        substituted = substitute_env_vars(raw_text)
        try:
            content = yaml.safe_load(substituted)
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "settings_file",
                f"Settings file {path} must contain a mapping at the top level",
            )
        return content

    def load(self, file_path: str | Path = DEFAULT_SETTINGS_FILE) -> EdgegapSettings:
        """Load and validate settings.

        Configuration precedence (highest to lowest):
        1. EDGEGAP_* environment overrides
        2. Values in the settings file (after ${VAR} substitution)
        3. Model defaults

        Args:
            file_path: Path to the settings file

        Returns:
            Validated EdgegapSettings instance

        Raises:
            ConfigError: If loading or validation fails
        """
        path = Path(file_path).resolve()

        if self.load_dotenv:
            load_env_file(path.parent / ".env")

        data = self.parse_yaml(path)
        self._resolve_paths(data, path.parent)

        try:
            settings = EdgegapSettings.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError("settings", _format_validation_errors(e)) from e

        overrides = self._env_overrides()
        if overrides:
            logger.debug("Applying environment overrides: %s", sorted(overrides))
            settings = settings.model_copy(update=overrides)

        logger.debug("Loaded settings from %s", path)
        return settings

    @staticmethod
    def _resolve_paths(data: dict[str, Any], base_dir: Path) -> None:
        """Make relative path settings absolute against ``base_dir`` (in-place)."""
        for field_name in PATH_FIELDS:
            value = data.get(field_name)
            if not value:
                continue
            candidate = Path(str(value)).expanduser()
            if not candidate.is_absolute():
                candidate = base_dir / candidate
            data[field_name] = str(candidate)

    @staticmethod
    def _env_overrides() -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for field_name, env_name in ENV_VAR_MAP.items():
            value = get_env_var(env_name)
            if value is None:
                continue
            if field_name in ("api_key", "private_registry_token"):
                overrides[field_name] = SecretStr(value)
            else:
                overrides[field_name] = value
        return overrides


def write_settings_template(path: Path, force: bool = False) -> Path:
    """Write a starter settings file.

    Args:
        path: Destination path
        force: Overwrite an existing file

    Returns:
        The written path

    Raises:
        ConfigError: If the file exists and ``force`` is False
    """
    if path.exists() and not force:
        raise ConfigError(
            "settings_file",
            f"{path} already exists. Use --force to overwrite it.",
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SETTINGS_TEMPLATE, encoding="utf-8")
    return path


def load_settings(file_path: str | Path = DEFAULT_SETTINGS_FILE) -> EdgegapSettings:
    """One-call helper for CLI commands."""
    return SettingsLoader().load(file_path)
