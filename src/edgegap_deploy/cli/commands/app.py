"""CLI commands that talk to the Edgegap API.

Implements 'edgegap create-app', 'edgegap create-version', 'edgegap deploy',
'edgegap deployments' and 'edgegap stop'. Commands that poll deployments
save the resulting status list next to the settings file.
"""

from __future__ import annotations

import click

from edgegap_deploy.cli.utils import (
    echo_status_list,
    handle_errors,
    init_command,
    make_pipeline,
    refresh_and_save,
    verbosity_options,
)


@click.command(name="create-app")
@verbosity_options
@click.pass_context
def create_app(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Create the Edgegap application using application_name and image_path."""
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        settings, pipeline = make_pipeline(settings_path, quiet)
        pipeline.create_app()
        if not quiet:
            click.secho(
                f"Application {settings.application_name} created", fg="green"
            )


@click.command(name="create-version")
@verbosity_options
@click.pass_context
def create_version(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Create an application version pointing at the pushed image.

    Use this when the image was pushed separately; build-push already
    creates the version as its last stage.
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        settings, pipeline = make_pipeline(settings_path, quiet)
        pipeline.create_version()
        if not quiet:
            click.secho(
                f"Version {settings.version_name} of "
                f"{settings.application_name} created",
                fg="green",
            )
            click.echo(f"  Image: {settings.image_name}")


@click.command(name="deploy")
@verbosity_options
@click.pass_context
def deploy(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Deploy the configured application version.

    The deployment list is refreshed once the deployment request was
    accepted.
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        _, pipeline = make_pipeline(settings_path, quiet)
        result = pipeline.deploy(refresh=False)

        if not quiet:
            click.secho("Deployment requested", fg="green", bold=True)
            click.echo(f"  Request ID: {result.request_id}")
            if result.request_dns:
                click.echo(f"  DNS:        {result.request_dns}")
            click.echo()

        refresh_and_save(settings_path, pipeline)
        echo_status_list(pipeline)


@click.command(name="deployments")
@click.option(
    "--cached",
    is_flag=True,
    help="Show the last saved list without calling the API",
)
@verbosity_options
@click.pass_context
def deployments(ctx: click.Context, cached: bool, verbose: bool, quiet: bool) -> None:
    """List current deployments with their connection IP and status."""
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        _, pipeline = make_pipeline(settings_path, quiet)
        if not cached:
            refresh_and_save(settings_path, pipeline)
        echo_status_list(pipeline)


@click.command(name="stop")
@click.argument("request_id")
@click.option(
    "--force",
    is_flag=True,
    help="Stop even if the last listing showed the deployment as not ready",
)
@verbosity_options
@click.pass_context
def stop(
    ctx: click.Context,
    request_id: str,
    force: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Stop the deployment REQUEST_ID and refresh the list.

    Example:

        edgegap stop 9f3a1c2b7d4e
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        _, pipeline = make_pipeline(settings_path, quiet)
        pipeline.stop(request_id, force=force, refresh=False)

        if not quiet:
            click.secho(f"Stop requested for {request_id}", fg="green")
            click.echo()

        refresh_and_save(settings_path, pipeline)
        echo_status_list(pipeline)
