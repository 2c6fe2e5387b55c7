"""Entry point for the ``edgegap`` command."""

import click

from edgegap_deploy import __version__
from edgegap_deploy.cli.commands.app import (
    create_app,
    create_version,
    deploy,
    deployments,
    stop,
)
from edgegap_deploy.cli.commands.build import build_push, containerize, package, push
from edgegap_deploy.cli.commands.init import init
from edgegap_deploy.config.loader import DEFAULT_SETTINGS_FILE


@click.group()
@click.version_option(__version__, prog_name="edgegap")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_SETTINGS_FILE,
    show_default=True,
    envvar="EDGEGAP_CONFIG",
    help="Path to the edgegap settings file",
)
@click.pass_context
def main(ctx: click.Context, config_path: str) -> None:
    """Package Unreal dedicated servers and deploy them on Edgegap.

    Typical flow:

        edgegap init

        edgegap create-app

        edgegap build-push

        edgegap deploy

        edgegap deployments
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(init)
main.add_command(package)
main.add_command(containerize)
main.add_command(push)
main.add_command(build_push)
main.add_command(create_app)
main.add_command(create_version)
main.add_command(deploy)
main.add_command(deployments)
main.add_command(stop)


if __name__ == "__main__":
    main()
