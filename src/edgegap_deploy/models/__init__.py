"""Pydantic models for settings and deployment status."""

from edgegap_deploy.models.deployment import (
    DeploymentStatusList,
    DeploymentStatusListItem,
    DeployResult,
    PipelineStage,
)
from edgegap_deploy.models.settings import (
    EdgegapSettings,
    PackagingConfig,
    ServerConfiguration,
    VersionConfig,
)

__all__ = [
    "DeployResult",
    "DeploymentStatusList",
    "DeploymentStatusListItem",
    "EdgegapSettings",
    "PackagingConfig",
    "PipelineStage",
    "ServerConfiguration",
    "VersionConfig",
]
