"""edgegap-deploy - Package, containerize and deploy Unreal servers on Edgegap.

Takes an Unreal Engine project from source to a running Edgegap deployment:

- Package the Linux dedicated server with UnrealAutomationTool
- Wrap it in a Docker image and push it to the Edgegap registry
- Create the Edgegap application and version
- Deploy, list and stop deployments
"""

from edgegap_deploy.config.loader import SettingsLoader, load_settings
from edgegap_deploy.lib.errors import ConfigError, DeploymentError, EdgegapError
from edgegap_deploy.models.settings import EdgegapSettings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "DeploymentError",
    "EdgegapError",
    "EdgegapSettings",
    "SettingsLoader",
    "load_settings",
]
