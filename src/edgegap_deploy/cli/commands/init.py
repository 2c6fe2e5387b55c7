"""Click command for creating a starter edgegap settings file."""

import click

from edgegap_deploy.cli.utils import handle_errors, init_command, verbosity_options
from edgegap_deploy.config.loader import write_settings_template


@click.command(name="init")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing settings file",
)
@verbosity_options
@click.pass_context
def init(ctx: click.Context, force: bool, verbose: bool, quiet: bool) -> None:
    """Write a starter edgegap.yaml.

    Secrets are left as ${EDGEGAP_API_KEY}-style references so they can live
    in the environment or a .env file instead of the settings file.

    Example:

        edgegap init

        edgegap --config deploy/edgegap.yaml init --force
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        written = write_settings_template(settings_path, force=force)
        if not quiet:
            click.secho(f"Created {written}", fg="green")
            click.echo("Fill in the project and registry fields, then run:")
            click.echo("  edgegap create-app")
