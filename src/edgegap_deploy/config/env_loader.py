"""Environment variable helpers for settings files.

Supports ``${VAR_NAME}`` and ``${VAR_NAME:-default}`` references inside the
raw settings text, and loading a ``.env`` file with python-dotenv.
"""

import logging
import os
import re
from pathlib import Path

from dotenv import load_dotenv

from edgegap_deploy.lib.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR}`` references with environment values.

    Args:
        text: Raw text containing environment variable references

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default

    Example:
        >>> os.environ["EDGEGAP_TAG"] = "v1"
        >>> substitute_env_vars("tag: ${EDGEGAP_TAG}")
        'tag: v1'
    """

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = os.environ.get(name)
        if value is not None:
            return value
        if default is not None:
            return default
        raise ConfigError(
            name,
            f"Environment variable '{name}' is referenced but not set",
        )

    return ENV_VAR_PATTERN.sub(_replace, text)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable, treating empty values as unset."""
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


def load_env_file(path: Path) -> bool:
    """Load a ``.env`` file without overriding variables already set.

    Args:
        path: Path to the .env file

    Returns:
        True if the file existed and was loaded
    """
    if not path.is_file():
        return False
    logger.debug("Loading environment from %s", path)
    return bool(load_dotenv(path, override=False))
