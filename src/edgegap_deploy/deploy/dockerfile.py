"""Docker build context preparation for packaged Unreal servers.

Writes a Dockerfile and a StartServer.sh launcher next to the packaged
LinuxServer build so the directory can be used directly as the build
context.
"""

from pathlib import Path

from jinja2 import Template

from edgegap_deploy.lib.errors import DeploymentError
from edgegap_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)

PROJECT_NAME_PLACEHOLDER = "<PROJECT_NAME>"

# Jinja2 template for the server image
SERVER_DOCKERFILE_TEMPLATE = """\
# Unreal Engine dedicated server image for {{ project_name }}
FROM {{ base_image }}

RUN apt-get update \\
    && apt-get install -y --no-install-recommends ca-certificates \\
    && rm -rf /var/lib/apt/lists/*

# Unreal refuses to run dedicated servers as root
RUN useradd --create-home --shell /bin/bash server

COPY --chown=server:server . /app
RUN chmod +x /app/StartServer.sh /app/{{ project_name }}/Binaries/Linux/{{ project_name }}Server

USER server
WORKDIR /app

EXPOSE {{ game_port }}/tcp
EXPOSE {{ game_port }}/udp

ENTRYPOINT ["/app/StartServer.sh"]
"""

START_SERVER_TEMPLATE = """\
#!/bin/bash
set -e

# Edgegap maps the public port; the server always listens on {{ game_port }}
exec /app/{{ project_name }}/Binaries/Linux/{{ project_name }}Server \\
    {{ project_name }} -log -port={{ game_port }} "$@"
"""

DOCKERFILE_NAME = "Dockerfile"
START_SCRIPT_NAME = "StartServer.sh"


def generate_dockerfile(
    project_name: str,
    game_port: int = 7777,
    *,
    base_image: str = "ubuntu:22.04",
) -> str:
    """Generate a Dockerfile for a packaged Linux server.

    Args:
        project_name: Unreal project name
        game_port: Port the server listens on
        base_image: Base Docker image to use

    Returns:
        Generated Dockerfile content as a string
    """
    template = Template(SERVER_DOCKERFILE_TEMPLATE)
    return template.render(
        project_name=project_name,
        game_port=game_port,
        base_image=base_image,
    )


def generate_start_script(project_name: str, game_port: int = 7777) -> str:
    """Generate the StartServer.sh launcher script."""
    template = Template(START_SERVER_TEMPLATE)
    return template.render(project_name=project_name, game_port=game_port)


def render_template_file(template_path: Path, project_name: str) -> str:
    """Read a user template and replace the ``<PROJECT_NAME>`` placeholder.

    Raises:
        DeploymentError: If the template cannot be read
    """
    try:
        content = template_path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeploymentError(
            operation="containerize",
            message=f"Could not read template {template_path}: {e}",
        ) from e
    return content.replace(PROJECT_NAME_PLACEHOLDER, project_name)


def prepare_build_context(
    server_build_path: Path,
    project_name: str,
    game_port: int = 7777,
    *,
    dockerfile_template: Path | None = None,
    start_script_template: Path | None = None,
) -> Path:
    """Write the Dockerfile and start script into the server build directory.

    Args:
        server_build_path: Packaged LinuxServer directory (the build context)
        project_name: Unreal project name substituted into the templates
        game_port: Server port
        dockerfile_template: Optional Dockerfile template file
        start_script_template: Optional StartServer.sh template file

    Returns:
        The build context directory

    Raises:
        DeploymentError: If the server build directory does not exist
    """
    if not server_build_path.is_dir():
        raise DeploymentError(
            operation="build",
            message=(
                f"Server build not found: {server_build_path}. "
                "Package the server first."
            ),
        )

    if dockerfile_template is not None:
        dockerfile = render_template_file(dockerfile_template, project_name)
    else:
        dockerfile = generate_dockerfile(project_name, game_port)

    if start_script_template is not None:
        start_script = render_template_file(start_script_template, project_name)
    else:
        start_script = generate_start_script(project_name, game_port)

    (server_build_path / DOCKERFILE_NAME).write_text(dockerfile, encoding="utf-8")
    script_path = server_build_path / START_SCRIPT_NAME
    # Keep LF endings so the script runs inside the Linux container
    script_path.write_bytes(start_script.replace("\r\n", "\n").encode("utf-8"))
    script_path.chmod(0o755)

    logger.debug(
        "Wrote %s and %s to %s", DOCKERFILE_NAME, START_SCRIPT_NAME, server_build_path
    )
    return server_build_path
