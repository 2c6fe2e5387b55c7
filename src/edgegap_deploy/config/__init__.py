"""Settings loading and validation for edgegap-deploy.

Main components:
- SettingsLoader: Load and validate edgegap.yaml files
- load_settings: One-call helper for CLI commands
- Environment variable substitution (${VAR_NAME} pattern)
"""

from edgegap_deploy.config.env_loader import (
    get_env_var,
    load_env_file,
    substitute_env_vars,
)
from edgegap_deploy.config.loader import (
    SettingsLoader,
    load_settings,
    write_settings_template,
)

__all__ = [
    "SettingsLoader",
    "load_settings",
    "write_settings_template",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
