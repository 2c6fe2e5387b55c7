"""Deploy pipeline: package, containerize, push, and drive Edgegap.

Stages run strictly one after another. A stage starts only when the
previous one succeeded; the first failure is logged with the stage name and
aborts the chain. Registry, tag and credentials are read from the shared
settings by every stage.

    PACKAGE -> CONTAINERIZE -> [LOGIN] -> PUSH -> CREATE_VERSION
    DEPLOY -> POLL_STATUS
    STOP -> POLL_STATUS
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar, cast

from edgegap_deploy.api.client import EdgegapClient
from edgegap_deploy.deploy.builder import BuildResult, ContainerBuilder, PushResult
from edgegap_deploy.deploy.dockerfile import prepare_build_context
from edgegap_deploy.deploy.packager import PackageResult, ServerPackager
from edgegap_deploy.lib.errors import ConfigError, DeploymentError, EdgegapError
from edgegap_deploy.lib.logging_config import get_logger
from edgegap_deploy.models.deployment import (
    DeploymentStatusList,
    DeployResult,
    PipelineStage,
)
from edgegap_deploy.models.settings import EdgegapSettings

logger = get_logger(__name__)

T = TypeVar("T")

StageCallback = Callable[[PipelineStage, str], None]


@dataclass
class PipelineResult:
    """Outcome of a build-and-push run.

    Attributes:
        completed: Stages that finished, in order
        package: UAT packaging result (None when packaging was skipped)
        build: Image build result
        push: Image push result
        version: Edgegap create-version response
    """

    completed: list[PipelineStage] = field(default_factory=list)
    package: PackageResult | None = None
    build: BuildResult | None = None
    push: PushResult | None = None
    version: dict[str, Any] | None = None


class DeployPipeline:
    """Runs the deploy stages against one shared settings instance.

    The Docker builder and the API client are created on first use, so
    commands that only talk to Edgegap do not need a Docker daemon and the
    other way round.

    Example:
        >>> pipeline = DeployPipeline(settings)
        >>> pipeline.build_and_push()
        >>> pipeline.deploy()
        >>> for row in pipeline.status_list.items:
        ...     print(row.ip, row.status)
    """

    def __init__(
        self,
        settings: EdgegapSettings,
        *,
        client: EdgegapClient | None = None,
        builder: ContainerBuilder | None = None,
        packager: ServerPackager | None = None,
        status_list: DeploymentStatusList | None = None,
        on_stage: StageCallback | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Shared settings read by every stage
            client: Edgegap API client (created from settings when omitted)
            builder: Docker builder (created on first container stage)
            packager: UAT packager (created from settings when omitted)
            status_list: Status list to refresh in place
            on_stage: Called with each stage and a short message when it starts
        """
        self.settings = settings
        self._client = client
        self._builder = builder
        self.packager = packager or ServerPackager(settings)
        self.status_list = status_list or DeploymentStatusList()
        self.on_stage = on_stage

    @property
    def client(self) -> EdgegapClient:
        """Edgegap API client, created from settings on first use."""
        if self._client is None:
            self.settings.require("api_key")
            self._client = EdgegapClient(
                api_key=self.settings.api_key.get_secret_value(),
                base_url=self.settings.api_base_url,
            )
        return self._client

    @property
    def builder(self) -> ContainerBuilder:
        """Docker builder, connected on first use."""
        if self._builder is None:
            self._builder = ContainerBuilder()
        return self._builder

    def _run_stage(self, stage: PipelineStage, message: str, fn: Callable[[], T]) -> T:
        if self.on_stage is not None:
            self.on_stage(stage, message)
        logger.info("%s: %s", stage.value, message)
        try:
            return fn()
        except EdgegapError as e:
            logger.warning("%s: could not complete, message: %s", stage.value, e)
            raise

    # Individual stages

    def package(self) -> PackageResult:
        """Package the Linux dedicated server with UAT."""
        return self._run_stage(
            PipelineStage.PACKAGE,
            "Packaging Linux server",
            self.packager.package,
        )

    def containerize(self) -> BuildResult:
        """Write the Dockerfile/start script and build the server image."""
        settings = self.settings

        def _containerize() -> BuildResult:
            settings.require("registry", "image_repository", "tag")
            project_name = settings.resolved_project_name
            if not project_name:
                raise ConfigError(
                    "project_name", "Set project_name or project_path to containerize"
                )
            server_build_path = settings.server_build_path
            if server_build_path is None:
                raise ConfigError(
                    "staging_directory",
                    "Set staging_directory or project_path to locate the server build",
                )
            context = prepare_build_context(
                server_build_path,
                project_name,
                settings.game_port,
                dockerfile_template=settings.dockerfile_template,
                start_script_template=settings.start_script_template,
            )
            return self.builder.build(
                build_context=str(context),
                image_name=f"{settings.registry}/{settings.image_repository}",
                tag=settings.tag,
            )

        return self._run_stage(
            PipelineStage.CONTAINERIZE,
            f"Containerizing server as {settings.image_name}",
            _containerize,
        )

    def login(self) -> None:
        """Log into the private registry."""
        settings = self.settings

        def _login() -> None:
            settings.require(
                "registry", "private_registry_username", "private_registry_token"
            )
            self.builder.login(
                settings.registry,
                settings.private_registry_username,
                settings.private_registry_token.get_secret_value(),
            )

        self._run_stage(
            PipelineStage.LOGIN, f"Logging into registry {settings.registry}", _login
        )

    def push(self) -> PushResult:
        """Push the image, logging into the registry first when needed."""
        settings = self.settings
        if not self.builder.is_authenticated(settings.registry):
            self.login()

        return self._run_stage(
            PipelineStage.PUSH,
            f"Pushing {settings.image_name}",
            lambda: self.builder.push(
                settings.image_name,
                settings.registry,
                settings.private_registry_username,
                settings.private_registry_token.get_secret_value(),
            ),
        )

    def create_app(self) -> dict[str, Any]:
        """Create the Edgegap application with its icon."""
        settings = self.settings

        def _create_app() -> dict[str, Any]:
            settings.require("application_name", "image_path")
            image_path = cast(Path, settings.image_path)
            return self.client.create_app(settings.application_name, image_path)

        return self._run_stage(
            PipelineStage.CREATE_APP,
            f"Creating application {settings.application_name}",
            _create_app,
        )

    def create_version(self) -> dict[str, Any]:
        """Create an application version for the pushed image."""
        settings = self.settings

        def _create_version() -> dict[str, Any]:
            settings.require(
                "application_name",
                "version_name",
                "registry",
                "image_repository",
                "tag",
            )
            return self.client.create_version(
                settings.application_name,
                settings.version_name,
                registry=settings.registry,
                image_repository=settings.image_repository,
                tag=settings.tag,
                private_username=settings.private_registry_username,
                private_token=settings.private_registry_token.get_secret_value(),
                game_port=settings.game_port,
                resources=settings.version,
            )

        return self._run_stage(
            PipelineStage.CREATE_VERSION,
            f"Creating version {settings.version_name} of {settings.application_name}",
            _create_version,
        )

    def refresh(self) -> DeploymentStatusList:
        """Poll current deployments and replace the status list.

        The list is emptied before polling, so a failed poll leaves it empty.
        """

        def _refresh() -> DeploymentStatusList:
            self.status_list.clear()
            items = self.client.get_deployments()
            self.status_list.replace(items, datetime.now(timezone.utc))
            return self.status_list

        return self._run_stage(
            PipelineStage.POLL_STATUS, "Refreshing deployments", _refresh
        )

    # Chained sequences

    def build_and_push(self, skip_package: bool = False) -> PipelineResult:
        """Package, containerize, push and create the Edgegap version.

        Args:
            skip_package: Start at containerize using an existing server build

        Returns:
            PipelineResult with the result of every stage

        Raises:
            EdgegapError: From the first stage that failed; later stages do
                not run
        """
        result = PipelineResult()

        if not skip_package:
            result.package = self.package()
            result.completed.append(PipelineStage.PACKAGE)

        result.build = self.containerize()
        result.completed.append(PipelineStage.CONTAINERIZE)

        needs_login = not self.builder.is_authenticated(self.settings.registry)
        result.push = self.push()
        if needs_login:
            result.completed.append(PipelineStage.LOGIN)
        result.completed.append(PipelineStage.PUSH)

        result.version = self.create_version()
        result.completed.append(PipelineStage.CREATE_VERSION)
        return result

    def deploy(self, refresh: bool = True) -> DeployResult:
        """Deploy the configured version, then refresh the status list.

        Args:
            refresh: Poll deployments once the request was accepted
        """
        settings = self.settings

        def _deploy() -> DeployResult:
            settings.require("application_name", "version_name")
            return self.client.deploy_app(
                settings.application_name,
                settings.version_name,
                settings.ip_list,
            )

        deploy_result = self._run_stage(
            PipelineStage.DEPLOY,
            f"Deploying {settings.application_name} {settings.version_name}",
            _deploy,
        )
        if refresh:
            self.refresh()
        return deploy_result

    def stop(
        self, request_id: str, force: bool = False, refresh: bool = True
    ) -> DeploymentStatusList:
        """Stop a deployment, then refresh the status list.

        Args:
            request_id: Deployment request ID
            force: Stop even if the last poll marked the deployment not ready
            refresh: Poll deployments once the stop was accepted

        Raises:
            DeploymentError: If the last poll shows the deployment is not ready
        """
        known = self.status_list.find(request_id)
        if known is not None and not known.ready and not force:
            raise DeploymentError(
                operation="stop",
                message=(
                    f"Deployment {request_id} is not ready (status: {known.status}). "
                    "Use --force to stop it anyway."
                ),
            )

        self._run_stage(
            PipelineStage.STOP,
            f"Stopping deployment {request_id}",
            lambda: self.client.stop_deployment(request_id),
        )
        if refresh:
            return self.refresh()
        return self.status_list
