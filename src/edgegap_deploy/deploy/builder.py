"""Container image build and push for packaged Unreal servers.

This module builds server images with the Docker SDK, logs in to the
target registry and pushes the image.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import docker
from docker.errors import APIError, BuildError, DockerException

from edgegap_deploy.lib.errors import DeploymentError, DockerNotAvailableError
from edgegap_deploy.lib.logging_config import get_logger

if TYPE_CHECKING:
    from docker.models.images import Image

logger = get_logger(__name__)


@dataclass
class BuildResult:
    """Result of a container image build operation.

    Attributes:
        image_id: The SHA256 ID of the built image
        image_name: The repository/image name
        tag: The image tag
        full_name: Full image reference (name:tag)
        log_lines: Build log output lines
    """

    image_id: str
    image_name: str
    tag: str
    full_name: str
    log_lines: list[str] = field(default_factory=list)

    @classmethod
    def from_image(
        cls,
        image: Image,
        image_name: str,
        tag: str,
        log_lines: list[str] | None = None,
    ) -> BuildResult:
        """Create BuildResult from a Docker image object."""
        return cls(
            image_id=image.id or "",
            image_name=image_name,
            tag=tag,
            full_name=f"{image_name}:{tag}",
            log_lines=log_lines or [],
        )


@dataclass
class PushResult:
    """Result of an image push.

    Attributes:
        full_name: Pushed image reference
        digest: Manifest digest reported by the registry, if any
        log_lines: Push progress status lines
    """

    full_name: str
    digest: str | None = None
    log_lines: list[str] = field(default_factory=list)


def split_image_name(full_name: str) -> tuple[str, str]:
    """Split ``registry/repo:tag`` into repository and tag.

    A colon that belongs to a registry port (``host:5000/repo``) is not
    treated as a tag separator.

    Example:
        >>> split_image_name("registry.edgegap.com/org/game:v1")
        ('registry.edgegap.com/org/game', 'v1')
    """
    repository, sep, tag = full_name.rpartition(":")
    if not sep or "/" in tag:
        return full_name, "latest"
    return repository, tag


class ContainerBuilder:
    """Builds and pushes server images through the Docker daemon.

    Registry authentication is remembered per registry for the lifetime of
    the builder, so a push only logs in when it has not done so yet.

    Example:
        >>> builder = ContainerBuilder()
        >>> result = builder.build("./Build/LinuxServer", "registry/org/game", "v1")
        >>> builder.push(result.full_name, "registry", "user", "token")
    """

    def __init__(self) -> None:
        """Connect to the Docker daemon using the environment configuration.

        Raises:
            DockerNotAvailableError: If Docker daemon is not available
        """
        try:
            self.client = docker.from_env()  # type: ignore[attr-defined]
        except DockerException as e:
            raise DockerNotAvailableError(operation="init") from e
        self._authenticated: set[str] = set()

    def is_authenticated(self, registry: str) -> bool:
        """Return True once ``login`` succeeded for ``registry``."""
        return registry in self._authenticated

    def build(
        self,
        build_context: str,
        image_name: str,
        tag: str,
        dockerfile: str = "Dockerfile",
        platform: str = "linux/amd64",
        **build_kwargs: Any,
    ) -> BuildResult:
        """Build an image from the server build directory.

        Args:
            build_context: Path to the build context directory
            image_name: Repository/image name for the built image
            tag: Tag for the built image
            dockerfile: Path to Dockerfile relative to context
            platform: Target platform for the image
            **build_kwargs: Additional arguments passed to Docker build

        Returns:
            BuildResult with image details and build logs

        Raises:
            DeploymentError: If the build fails
        """
        full_tag = f"{image_name}:{tag}"
        logger.info("Building image %s", full_tag)

        try:
            image, build_logs = self.client.images.build(
                path=build_context,
                tag=full_tag,
                dockerfile=dockerfile,
                rm=True,
                platform=platform,
                **build_kwargs,
            )
        except BuildError as e:
            raise DeploymentError(
                operation="build",
                message=f"Docker build failed: {e.msg}",
            ) from e
        except DockerException as e:
            raise DeploymentError(
                operation="build",
                message=f"Docker error during build: {e}",
            ) from e

        log_lines: list[str] = []
        for log_entry in build_logs:
            if not isinstance(log_entry, dict):
                continue
            if "stream" in log_entry:
                line = str(log_entry["stream"]).rstrip("\n")
                if line.strip():
                    log_lines.append(line)
                    logger.debug("[docker build] %s", line)
            elif "error" in log_entry:
                log_lines.append(f"ERROR: {log_entry['error']}")

        return BuildResult.from_image(
            image=image,
            image_name=image_name,
            tag=tag,
            log_lines=log_lines,
        )

    def login(self, registry: str, username: str, token: str) -> None:
        """Log in to a container registry.

        Raises:
            DeploymentError: If the registry rejects the credentials
        """
        logger.info("Logging into registry %s as %s", registry, username)
        try:
            self.client.login(username=username, password=token, registry=registry)
        except APIError as e:
            raise DeploymentError(
                operation="login",
                message=f"Could not log into {registry}: {e.explanation or e}",
            ) from e
        except DockerException as e:
            raise DeploymentError(
                operation="login",
                message=f"Docker error during login: {e}",
            ) from e
        self._authenticated.add(registry)

    def push(
        self,
        full_name: str,
        registry: str,
        username: str,
        token: str,
    ) -> PushResult:
        """Push an image, logging into the registry first when needed.

        Args:
            full_name: Image reference ``registry/repository:tag``
            registry: Registry host
            username: Registry username
            token: Registry token

        Returns:
            PushResult with the pushed digest and progress lines

        Raises:
            DeploymentError: If login or push fails
        """
        if not self.is_authenticated(registry):
            self.login(registry, username, token)
            return self.push(full_name, registry, username, token)

        repository, tag = split_image_name(full_name)
        logger.info("Pushing image %s", full_name)

        log_lines: list[str] = []
        digest: str | None = None
        try:
            for entry in self.client.images.push(
                repository,
                tag=tag,
                stream=True,
                decode=True,
                auth_config={"username": username, "password": token},
            ):
                if not isinstance(entry, dict):
                    continue
                if "error" in entry:
                    raise DeploymentError(
                        operation="push",
                        message=f"Could not push {full_name}: {entry['error']}",
                    )
                status = entry.get("status")
                if status:
                    line = f"{entry.get('id', '')} {status}".strip()
                    log_lines.append(line)
                    logger.debug("[docker push] %s", line)
                aux = entry.get("aux")
                if isinstance(aux, dict) and aux.get("Digest"):
                    digest = str(aux["Digest"])
        except DockerException as e:
            raise DeploymentError(
                operation="push",
                message=f"Docker error during push: {e}",
            ) from e

        return PushResult(full_name=full_name, digest=digest, log_lines=log_lines)
