"""Shared helpers for the edgegap CLI commands."""

from __future__ import annotations

import sys
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import click

from edgegap_deploy.config.loader import load_settings
from edgegap_deploy.deploy.pipeline import DeployPipeline
from edgegap_deploy.deploy.state import (
    get_state_path,
    load_status_list,
    save_status_list,
)
from edgegap_deploy.lib.errors import (
    ConfigError,
    DeploymentError,
    DockerNotAvailableError,
    EdgegapAPIError,
    EdgegapError,
)
from edgegap_deploy.lib.logging_config import get_logger, setup_logging
from edgegap_deploy.models.deployment import PipelineStage
from edgegap_deploy.models.settings import EdgegapSettings

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def verbosity_options(func: F) -> F:
    """Add ``--verbose`` and ``--quiet`` to a command."""
    func = click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Suppress progress output",
    )(func)
    func = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose debug logging",
    )(func)
    return func


@contextmanager
def handle_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in CLI commands.

    Exit codes:
        2: Configuration error
        3: Packaging, Docker or Edgegap API error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.field}: {e.message}", err=True)
        sys.exit(2)
    except DockerNotAvailableError as e:
        logger.error(f"Docker not available: {e}")
        click.secho("Error: Docker is not available", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except EdgegapAPIError as e:
        logger.error(f"Edgegap API error: {e}")
        click.secho(
            f"Error: Edgegap API returned {e.status_code}", fg="red", err=True
        )
        click.echo(f"  {e.detail or e.url}", err=True)
        sys.exit(3)
    except EdgegapError as e:
        logger.error(f"Error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def init_command(ctx: click.Context, verbose: bool, quiet: bool) -> Path:
    """Configure logging and return the settings path for a command."""
    setup_logging(verbose=verbose, quiet=quiet)
    obj = ctx.find_object(dict) or {}
    return Path(obj.get("config_path", "edgegap.yaml"))


def stage_printer(quiet: bool) -> Callable[[PipelineStage, str], None] | None:
    """Return a pipeline callback echoing each stage, or None when quiet."""
    if quiet:
        return None

    def _print(stage: PipelineStage, message: str) -> None:
        click.secho(f"==> {message}", bold=True)

    return _print


def make_pipeline(
    settings_path: Path, quiet: bool
) -> tuple[EdgegapSettings, DeployPipeline]:
    """Load settings and the last status snapshot into a pipeline."""
    settings = load_settings(settings_path)
    status_list = load_status_list(get_state_path(settings_path))
    pipeline = DeployPipeline(
        settings,
        status_list=status_list,
        on_stage=stage_printer(quiet),
    )
    return settings, pipeline


def save_pipeline_status(settings_path: Path, pipeline: DeployPipeline) -> None:
    """Persist the pipeline's status list next to the settings file."""
    save_status_list(get_state_path(settings_path), pipeline.status_list)


def refresh_and_save(settings_path: Path, pipeline: DeployPipeline) -> None:
    """Poll deployments and save the result, even when the poll fails.

    A failed poll leaves the list empty, and that empty list is saved.
    """
    try:
        pipeline.refresh()
    finally:
        save_pipeline_status(settings_path, pipeline)


def echo_status_list(pipeline: DeployPipeline) -> None:
    """Print the status list as a table."""
    items = pipeline.status_list.items
    if not items:
        click.echo("No deployments.")
        return

    click.echo(f"  {'CONNECTION IP':<28}{'STATUS':<22}{'READY':<7}REQUEST ID")
    for item in items:
        ready = "yes" if item.ready else "no"
        click.echo(f"  {item.ip or '-':<28}{item.status:<22}{ready:<7}{item.request_id}")
    refreshed = pipeline.status_list.refreshed_at
    if refreshed is not None:
        click.echo()
        click.echo(f"  Refreshed: {refreshed.isoformat()}")
