"""Packaging, containerizing and deployment of Unreal dedicated servers.

This package drives the deploy pipeline: UAT packaging, Docker image build
and push, and the Edgegap application/version/deployment calls.
"""

from edgegap_deploy.deploy.builder import BuildResult, ContainerBuilder, PushResult
from edgegap_deploy.deploy.dockerfile import generate_dockerfile, prepare_build_context
from edgegap_deploy.deploy.packager import PackageResult, ServerPackager
from edgegap_deploy.deploy.pipeline import DeployPipeline, PipelineResult

__all__ = [
    "BuildResult",
    "ContainerBuilder",
    "DeployPipeline",
    "PackageResult",
    "PipelineResult",
    "PushResult",
    "ServerPackager",
    "generate_dockerfile",
    "prepare_build_context",
]
