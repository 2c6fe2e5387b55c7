"""Pydantic models for edgegap-deploy settings.

The settings record is read by every pipeline stage. Values are only checked
for presence when a stage needs them (see ``EdgegapSettings.require``).
"""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from edgegap_deploy.lib.errors import ConfigError

DEFAULT_API_BASE_URL = "https://api.edgegap.com/v1"

# Edgegap picks the deployment location closest to these addresses
DEFAULT_IP_LIST = [
    "159.8.69.249",
    "5.10.64.236",
    "159.8.69.244",
    "89.29.103.62",
]


class ServerConfiguration(str, Enum):
    """Unreal build configurations accepted by ``-serverconfig``."""

    DEBUG = "Debug"
    DEVELOPMENT = "Development"
    TEST = "Test"
    SHIPPING = "Shipping"


class PackagingConfig(BaseModel):
    """UAT BuildCookRun options for the Linux server package.

    Attributes:
        server_config: Build configuration for the server target
        build: Compile the server target before cooking
        full_rebuild: Clean before building
        compressed: Compress cooked content
        use_io_store: Use IoStore containers (forces pak files)
        use_pak_file: Package content into pak files
        include_prerequisites: Ship prerequisite installers
        skip_editor_content: Skip cooking editor-only content
        for_distribution: Mark the build for distribution
        include_debug_files: Keep debug info in Shipping builds
        installed_engine: Engine is an installed (launcher) build
        extra_args: Extra arguments appended to BuildCookRun
    """

    model_config = ConfigDict(extra="forbid")

    server_config: ServerConfiguration = Field(
        default=ServerConfiguration.SHIPPING,
        description="Build configuration for the server target",
    )
    build: bool = Field(default=True, description="Compile the server target")
    full_rebuild: bool = Field(default=False, description="Clean before building")
    compressed: bool = Field(default=True, description="Compress cooked content")
    use_io_store: bool = Field(default=True, description="Use IoStore containers")
    use_pak_file: bool = Field(default=True, description="Use pak files")
    include_prerequisites: bool = Field(
        default=False, description="Ship prerequisite installers"
    )
    skip_editor_content: bool = Field(
        default=False, description="Skip cooking editor-only content"
    )
    for_distribution: bool = Field(
        default=False, description="Mark the build for distribution"
    )
    include_debug_files: bool = Field(
        default=False, description="Keep debug info in Shipping builds"
    )
    installed_engine: bool = Field(
        default=False, description="Engine is an installed (launcher) build"
    )
    extra_args: list[str] = Field(
        default_factory=list, description="Extra BuildCookRun arguments"
    )


class VersionConfig(BaseModel):
    """Resource sizing sent when creating an Edgegap application version."""

    model_config = ConfigDict(extra="forbid")

    req_cpu: int = Field(default=128, ge=1, description="vCPU units")
    req_memory: int = Field(default=256, ge=1, description="Memory in MB")
    req_video: int = Field(default=0, ge=0, description="GPU units")
    max_duration: int = Field(default=60, ge=1, description="Max duration (min)")
    time_to_deploy: int = Field(
        default=120, ge=1, description="Seconds allowed for the server to start"
    )
    use_telemetry: bool = Field(default=False)
    inject_context_env: bool = Field(default=True)
    force_cache: bool = Field(default=False)
    whitelisting_active: bool = Field(default=False)


class EdgegapSettings(BaseModel):
    """Settings for packaging, containerizing and deploying a server.

    Attributes:
        application_name: Edgegap application name
        image_path: Application icon uploaded when creating the application
        api_key: Edgegap API token sent as the Authorization header
        version_name: Edgegap application version name
        registry: Container registry host
        image_repository: Repository name within the registry
        tag: Image tag
        private_registry_username: Registry login username
        private_registry_token: Registry login token
        staging_directory: UAT archive directory
        project_name: Unreal project name (defaults to the .uproject stem)
        project_path: Path to the .uproject file
        engine_dir: Unreal Engine ``Engine`` directory
        game_port: Server port exposed by the container
        ip_list: Player IPs used by Edgegap to pick a location
        api_base_url: Edgegap API base URL
        dockerfile_template: Optional Dockerfile template file
        start_script_template: Optional StartServer.sh template file
    """

    model_config = ConfigDict(extra="forbid")

    application_name: str = Field(default="", description="Application name")
    image_path: Path | None = Field(default=None, description="Application icon")
    api_key: SecretStr = Field(default=SecretStr(""), description="API token")
    version_name: str = Field(default="", description="Application version name")

    registry: str = Field(default="registry.edgegap.com", description="Registry")
    image_repository: str = Field(default="", description="Image repository")
    tag: str = Field(default="latest", description="Image tag")
    private_registry_username: str = Field(default="", description="Registry user")
    private_registry_token: SecretStr = Field(
        default=SecretStr(""), description="Registry token"
    )

    staging_directory: Path | None = Field(
        default=None, description="UAT archive directory"
    )
    project_name: str = Field(default="", description="Unreal project name")
    project_path: Path | None = Field(default=None, description=".uproject path")
    engine_dir: Path | None = Field(default=None, description="Engine directory")

    game_port: Annotated[int, Field(ge=1, le=65535)] = Field(
        default=7777, description="Server port exposed by the container"
    )
    ip_list: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IP_LIST),
        description="IPs used to select the deployment location",
    )
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="API URL")

    dockerfile_template: Path | None = Field(default=None)
    start_script_template: Path | None = Field(default=None)

    packaging: PackagingConfig = Field(default_factory=PackagingConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)

    @property
    def image_name(self) -> str:
        """Full image reference ``<registry>/<repository>:<tag>``."""
        return f"{self.registry}/{self.image_repository}:{self.tag}"

    @property
    def resolved_project_name(self) -> str:
        """Project name, falling back to the .uproject file stem."""
        if self.project_name:
            return self.project_name
        if self.project_path is not None:
            return self.project_path.stem
        return ""

    @property
    def resolved_staging_directory(self) -> Path | None:
        """Staging directory, defaulting to the project directory."""
        if self.staging_directory is not None:
            return self.staging_directory
        if self.project_path is not None:
            return self.project_path.parent
        return None

    @property
    def server_build_path(self) -> Path | None:
        """Directory UAT archives the Linux server into."""
        staging = self.resolved_staging_directory
        return staging / "LinuxServer" if staging is not None else None

    def require(self, *fields: str) -> None:
        """Raise ConfigError for the first listed setting that is empty.

        Args:
            fields: Setting names, checked in order

        Raises:
            ConfigError: If a setting is unset or empty
        """
        for name in fields:
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if value is None or (isinstance(value, str | list) and not value):
                raise ConfigError(name, f"'{name}' must be set for this operation")
