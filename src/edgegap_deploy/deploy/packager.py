"""Linux dedicated server packaging through Unreal's UAT.

Builds the ``Turnkey ... BuildCookRun ...`` command line from the packaging
settings and runs RunUAT as a child process, streaming its output to the
logger.
"""

from __future__ import annotations

import subprocess  # nosec B404
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, cast

from edgegap_deploy.lib.errors import ConfigError, DeploymentError
from edgegap_deploy.lib.logging_config import get_logger
from edgegap_deploy.models.settings import (
    EdgegapSettings,
    PackagingConfig,
    ServerConfiguration,
)

logger = get_logger(__name__)

UBT_PLATFORM = "Linux"


@dataclass
class PackageResult:
    """Result of a UAT packaging run.

    Attributes:
        server_build_path: Directory holding the packaged LinuxServer build
        command: Full command that was executed
        log_lines: UAT output lines
    """

    server_build_path: Path
    command: list[str]
    log_lines: list[str] = field(default_factory=list)


def get_uat_script(engine_dir: Path) -> Path:
    """Return the RunUAT script for the current host OS."""
    name = "RunUAT.bat" if sys.platform == "win32" else "RunUAT.sh"
    return engine_dir / "Build" / "BatchFiles" / name


def build_cook_run_args(
    project_path: Path,
    project_name: str,
    staging_directory: Path,
    packaging: PackagingConfig,
) -> list[str]:
    """Build the BuildCookRun arguments for a Linux server package.

    Args:
        project_path: Absolute path to the .uproject file
        project_name: Project name, used for the ``<Name>Server`` target
        staging_directory: Archive directory
        packaging: Packaging options

    Returns:
        List of BuildCookRun arguments

    Example:
        >>> args = build_cook_run_args(
        ...     Path("/p/Game.uproject"), "Game", Path("/out"), PackagingConfig()
        ... )
        >>> "-target=GameServer" in args
        True
    """
    args = [
        "-nop4",
        "-utf8output",
        "-nocompileeditor",
        "-cook",
        f"-project={project_path}",
        f"-target={project_name}Server",
        f"-platform={UBT_PLATFORM}",
    ]

    if packaging.skip_editor_content:
        args.append("-SkipCookingEditorContent")
    if packaging.installed_engine:
        args.append("-installed")

    args += ["-stage", "-archive", "-package"]

    if packaging.build:
        args.append("-build")
    if packaging.full_rebuild:
        args.append("-clean")
    if packaging.compressed:
        args.append("-compressed")

    # IoStore containers require pak files
    use_pak = packaging.use_pak_file or packaging.use_io_store
    if packaging.use_io_store:
        args.append("-iostore")
    if use_pak:
        args.append("-pak")

    if packaging.include_prerequisites:
        args.append("-prereqs")

    args.append(f"-archivedirectory={staging_directory}")

    if packaging.for_distribution:
        args.append("-distribution")

    args += [
        "-server",
        "-noclient",
        f"-serverconfig={packaging.server_config.value}",
    ]
    if (
        packaging.server_config == ServerConfiguration.SHIPPING
        and not packaging.include_debug_files
    ):
        args.append("-nodebuginfo")

    args += packaging.extra_args
    return args


def build_uat_command(settings: EdgegapSettings) -> list[str]:
    """Build the full RunUAT command for the configured project.

    Raises:
        ConfigError: If the project file or engine directory is missing
    """
    settings.require("project_path", "engine_dir")
    project_path = cast(Path, settings.project_path)
    engine_dir = cast(Path, settings.engine_dir)

    if not project_path.is_file():
        raise ConfigError("project_path", f"Project file not found: {project_path}")

    uat_script = get_uat_script(engine_dir)
    if not uat_script.is_file():
        raise ConfigError(
            "engine_dir",
            f"RunUAT not found at {uat_script}. Check engine_dir points at the "
            "'Engine' directory of an Unreal Engine installation.",
        )

    # project_path is set, so the staging directory always resolves
    staging = cast(Path, settings.resolved_staging_directory)

    turnkey_args = [
        "-command=VerifySdk",
        f"-platform={UBT_PLATFORM}",
        "-UpdateIfNeeded",
        f"-project={project_path}",
    ]
    return [
        str(uat_script),
        f"-ScriptsForProject={project_path}",
        "Turnkey",
        *turnkey_args,
        "BuildCookRun",
        *build_cook_run_args(
            project_path,
            settings.resolved_project_name,
            staging,
            settings.packaging,
        ),
    ]


class ServerPackager:
    """Runs UAT to package a Linux dedicated server.

    Example:
        >>> packager = ServerPackager(settings)
        >>> result = packager.package()
        >>> print(result.server_build_path)
    """

    def __init__(self, settings: EdgegapSettings) -> None:
        """Initialize the packager with the shared settings."""
        self.settings = settings

    def command(self) -> list[str]:
        """Return the UAT command without running it."""
        return build_uat_command(self.settings)

    def package(self) -> PackageResult:
        """Package the server and wait for UAT to finish.

        Returns:
            PackageResult with the LinuxServer directory and UAT output

        Raises:
            ConfigError: If required settings are missing
            DeploymentError: If UAT cannot start or exits non-zero
        """
        command = self.command()
        staging = cast(Path, self.settings.resolved_staging_directory)
        staging.mkdir(parents=True, exist_ok=True)

        logger.info("Packaging %s server for Linux", self.settings.resolved_project_name)
        logger.debug("UAT command: %s", subprocess.list2cmdline(command))

        log_lines: list[str] = []
        try:
            process = subprocess.Popen(  # noqa: S603  # nosec B603
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise DeploymentError(
                operation="package",
                message=f"Could not start UAT: {e}",
            ) from e

        for raw_line in cast(IO[str], process.stdout):
            line = raw_line.rstrip("\n")
            log_lines.append(line)
            logger.info("[UAT] %s", line)
        return_code = process.wait()

        if return_code != 0:
            raise DeploymentError(
                operation="package",
                message=f"UAT exited with code {return_code}",
            )

        server_build_path = staging / "LinuxServer"
        logger.info("Server packaged to %s", server_build_path)
        return PackageResult(
            server_build_path=server_build_path,
            command=command,
            log_lines=log_lines,
        )
