"""CLI commands that package, containerize and push the server image.

Implements 'edgegap package', 'edgegap containerize', 'edgegap push' and the
chained 'edgegap build-push'.
"""

from __future__ import annotations

import shlex
import sys

import click

from edgegap_deploy.cli.utils import (
    handle_errors,
    init_command,
    make_pipeline,
    verbosity_options,
)
from edgegap_deploy.config.loader import load_settings
from edgegap_deploy.deploy.dockerfile import generate_dockerfile
from edgegap_deploy.deploy.packager import build_uat_command
from edgegap_deploy.models.settings import EdgegapSettings


def _echo_build_configuration(settings: EdgegapSettings) -> None:
    click.echo()
    click.secho("Build Configuration:", bold=True)
    click.echo(f"  Project:   {settings.resolved_project_name or '-'}")
    click.echo(f"  Config:    {settings.packaging.server_config.value}")
    click.echo(f"  Staging:   {settings.resolved_staging_directory or '-'}")
    click.echo(f"  Image:     {settings.image_name}")
    click.echo(f"  Port:      {settings.game_port}")
    click.echo()


def _echo_dry_run(settings: EdgegapSettings, include_package: bool) -> None:
    if include_package:
        click.secho("[DRY RUN] Would run UAT:", fg="yellow")
        click.echo(f"  {shlex.join(build_uat_command(settings))}")
        click.echo()

    project_name = settings.resolved_project_name or "Project"
    click.secho("Generated Dockerfile:", bold=True)
    for line in generate_dockerfile(project_name, settings.game_port).split("\n"):
        click.echo(f"  {line}")

    click.secho(f"[DRY RUN] Would push {settings.image_name}", fg="yellow")
    click.secho("[DRY RUN] Nothing was executed", fg="yellow")


@click.command(name="package")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the UAT command without running it",
)
@verbosity_options
@click.pass_context
def package(ctx: click.Context, dry_run: bool, verbose: bool, quiet: bool) -> None:
    """Package the Linux dedicated server with UnrealAutomationTool.

    Runs Turnkey VerifySdk followed by BuildCookRun for the project's
    <Project>Server target and stages the result in the staging directory.

    Example:

        edgegap package

        edgegap package --dry-run
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        if dry_run:
            settings = load_settings(settings_path)
            click.secho("[DRY RUN] Would run UAT:", fg="yellow")
            click.echo(f"  {shlex.join(build_uat_command(settings))}")
            sys.exit(0)

        _, pipeline = make_pipeline(settings_path, quiet)
        result = pipeline.package()
        if not quiet:
            click.secho(
                f"Server packaged to {result.server_build_path}", fg="green"
            )


@click.command(name="containerize")
@verbosity_options
@click.pass_context
def containerize(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Build the server image from the packaged LinuxServer directory.

    Writes the Dockerfile and StartServer.sh into the build directory and
    runs a docker build tagged registry/image_repository:tag.
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        _, pipeline = make_pipeline(settings_path, quiet)
        result = pipeline.containerize()

        if verbose and result.log_lines:
            click.secho("Build Output:", bold=True)
            for line in result.log_lines:
                click.echo(f"  {line}")
            click.echo()

        if not quiet:
            click.secho("Image built", fg="green")
            click.echo(f"  Image:    {result.full_name}")
            click.echo(f"  Image ID: {result.image_id[:19]}")


@click.command(name="push")
@verbosity_options
@click.pass_context
def push(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Log into the registry and push the server image."""
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        _, pipeline = make_pipeline(settings_path, quiet)
        result = pipeline.push()
        if not quiet:
            click.secho(f"Pushed {result.full_name}", fg="green")
            if result.digest:
                click.echo(f"  Digest: {result.digest}")


@click.command(name="build-push")
@click.option(
    "--skip-package",
    is_flag=True,
    help="Use the existing server build instead of packaging again",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without executing",
)
@verbosity_options
@click.pass_context
def build_push(
    ctx: click.Context,
    skip_package: bool,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Package, containerize, push and create the Edgegap version.

    Stages run in order and the first failure stops the chain. Registry
    login only happens when the registry has not been logged into yet.

    Example:

        edgegap build-push

        edgegap build-push --skip-package
    """
    settings_path = init_command(ctx, verbose, quiet)

    with handle_errors():
        if dry_run:
            settings = load_settings(settings_path)
            _echo_build_configuration(settings)
            _echo_dry_run(settings, include_package=not skip_package)
            sys.exit(0)

        settings, pipeline = make_pipeline(settings_path, quiet)
        if not quiet:
            _echo_build_configuration(settings)

        result = pipeline.build_and_push(skip_package=skip_package)

        if not quiet:
            click.echo()
            click.secho("Build and push complete", fg="green", bold=True)
            click.echo(f"  Stages:  {', '.join(s.value for s in result.completed)}")
            click.echo(f"  Image:   {settings.image_name}")
            click.echo(
                f"  Version: {settings.application_name} {settings.version_name}"
            )
            click.echo()
            click.echo("Next: edgegap deploy")
