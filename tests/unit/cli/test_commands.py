"""Unit tests for the edgegap CLI commands.

Tests cover:
- init writing the starter settings file
- Dry runs for package and build-push
- Pipeline commands with a mocked DeployPipeline
- Status snapshot persistence for deploy, deployments and stop
- Exit codes for configuration and deployment errors
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from edgegap_deploy.cli.main import main
from edgegap_deploy.deploy.builder import BuildResult, PushResult
from edgegap_deploy.deploy.pipeline import PipelineResult
from edgegap_deploy.deploy.state import get_state_path, load_status_list
from edgegap_deploy.lib.errors import (
    ConfigError,
    DeploymentError,
    DockerNotAvailableError,
    EdgegapAPIError,
)
from edgegap_deploy.models.deployment import (
    DeploymentStatusList,
    DeploymentStatusListItem,
    DeployResult,
    PipelineStage,
)


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def config_file(
    tmp_path: Path, unreal_project: Path, isolated_env: dict[str, str]
) -> Path:
    """Create an edgegap.yaml pointing at the fake Unreal project."""
    (tmp_path / "icon.png").write_bytes(b"png")
    path = tmp_path / "edgegap.yaml"
    path.write_text(
        f"""
application_name: my-game
version_name: v1
image_path: icon.png
api_key: token abc

registry: registry.edgegap.com
image_repository: my-org/my-game
tag: v1
private_registry_username: robot
private_registry_token: secret-token

project_path: {unreal_project}
engine_dir: {tmp_path / "Engine"}
staging_directory: Build
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_pipeline() -> Generator[MagicMock]:
    """Patch DeployPipeline in the CLI with a mock sharing a real status list."""
    with patch("edgegap_deploy.cli.utils.DeployPipeline") as mock_cls:
        pipeline = MagicMock()
        pipeline.status_list = DeploymentStatusList()

        def _construct(settings, status_list=None, on_stage=None):  # type: ignore[no-untyped-def]
            if status_list is not None:
                pipeline.status_list = status_list
            return pipeline

        mock_cls.side_effect = _construct
        yield pipeline


def _ready_items() -> list[DeploymentStatusListItem]:
    return [
        DeploymentStatusListItem(
            ip="a.pr.edgegap.net:31000",
            status="Status.READY",
            request_id="req-a",
            api_key="token abc",
            ready=True,
        )
    ]


def _invoke(runner: CliRunner, config_file: Path, *args: str):  # type: ignore[no-untyped-def]
    return runner.invoke(main, ["--config", str(config_file), *args])


class TestMainGroup:
    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in (
            "init",
            "package",
            "containerize",
            "push",
            "build-push",
            "create-app",
            "create-version",
            "deploy",
            "deployments",
            "stop",
        ):
            assert command in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestInitCommand:
    def test_writes_template(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "edgegap.yaml"

        result = runner.invoke(main, ["--config", str(path), "init"])

        assert result.exit_code == 0
        assert path.is_file()
        assert "Created" in result.output

    def test_existing_file_is_config_error(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        path = tmp_path / "edgegap.yaml"
        path.write_text("application_name: keep\n")

        result = runner.invoke(main, ["--config", str(path), "init"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        assert path.read_text() == "application_name: keep\n"

    def test_force(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "edgegap.yaml"
        path.write_text("application_name: old\n")

        result = runner.invoke(main, ["--config", str(path), "init", "--force"])

        assert result.exit_code == 0
        assert "my-game" in path.read_text()


class TestPackageCommand:
    def test_dry_run_prints_uat_command(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        with patch("subprocess.Popen") as mock_popen:
            result = _invoke(runner, config_file, "package", "--dry-run")

        assert result.exit_code == 0
        assert "[DRY RUN]" in result.output
        assert "BuildCookRun" in result.output
        assert "-target=MyGameServer" in result.output
        mock_popen.assert_not_called()

    def test_package(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.package.return_value = MagicMock(
            server_build_path=Path("/tmp/Build/LinuxServer")
        )

        result = _invoke(runner, config_file, "package")

        assert result.exit_code == 0
        mock_pipeline.package.assert_called_once()
        assert "Server packaged" in result.output

    def test_package_failure_exit_code(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.package.side_effect = DeploymentError(
            "package", "UAT exited with code 1"
        )

        result = _invoke(runner, config_file, "package")

        assert result.exit_code == 3
        assert "package failed" in result.output
        assert "UAT exited with code 1" in result.output

    def test_missing_settings_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            main, ["--config", str(tmp_path / "missing.yaml"), "package"]
        )

        assert result.exit_code == 2
        assert "edgegap init" in result.output


class TestContainerizeAndPush:
    def test_containerize(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.containerize.return_value = BuildResult(
            image_id="sha256:0123456789abcdef0123",
            image_name="registry.edgegap.com/my-org/my-game",
            tag="v1",
            full_name="registry.edgegap.com/my-org/my-game:v1",
        )

        result = _invoke(runner, config_file, "containerize")

        assert result.exit_code == 0
        assert "registry.edgegap.com/my-org/my-game:v1" in result.output

    def test_docker_not_available(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.containerize.side_effect = DockerNotAvailableError()

        result = _invoke(runner, config_file, "containerize")

        assert result.exit_code == 3
        assert "Docker is not available" in result.output

    def test_push(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.push.return_value = PushResult(
            full_name="registry.edgegap.com/my-org/my-game:v1", digest="sha256:d1"
        )

        result = _invoke(runner, config_file, "push")

        assert result.exit_code == 0
        assert "sha256:d1" in result.output
        assert "secret-token" not in result.output


class TestBuildPushCommand:
    def test_dry_run(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "build-push", "--dry-run")

        assert result.exit_code == 0
        assert "BuildCookRun" in result.output
        assert "Generated Dockerfile" in result.output
        assert "registry.edgegap.com/my-org/my-game:v1" in result.output
        mock_pipeline.build_and_push.assert_not_called()

    def test_dry_run_skip_package(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(
            runner, config_file, "build-push", "--dry-run", "--skip-package"
        )

        assert result.exit_code == 0
        assert "BuildCookRun" not in result.output

    def test_build_push(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.build_and_push.return_value = PipelineResult(
            completed=[
                PipelineStage.CONTAINERIZE,
                PipelineStage.PUSH,
                PipelineStage.CREATE_VERSION,
            ]
        )

        result = _invoke(runner, config_file, "build-push", "--skip-package")

        assert result.exit_code == 0
        mock_pipeline.build_and_push.assert_called_once_with(skip_package=True)
        assert "Build and push complete" in result.output
        assert "containerize, push, create_version" in result.output

    def test_config_error(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.build_and_push.side_effect = ConfigError(
            "image_repository", "'image_repository' must be set for this operation"
        )

        result = _invoke(runner, config_file, "build-push")

        assert result.exit_code == 2
        assert "image_repository" in result.output


class TestApplicationCommands:
    def test_create_app(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "create-app")

        assert result.exit_code == 0
        mock_pipeline.create_app.assert_called_once()
        assert "my-game created" in result.output

    def test_create_app_api_error(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.create_app.side_effect = EdgegapAPIError(
            "https://api.edgegap.com/v1/app", 409, "Application already exists"
        )

        result = _invoke(runner, config_file, "create-app")

        assert result.exit_code == 3
        assert "409" in result.output
        assert "Application already exists" in result.output

    def test_create_version(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "create-version")

        assert result.exit_code == 0
        mock_pipeline.create_version.assert_called_once()


class TestDeploymentCommands:
    """Tests for deploy, deployments and stop."""

    def test_deploy_saves_snapshot(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        def _deploy() -> DeployResult:
            mock_pipeline.status_list.replace(
                _ready_items(), datetime(2024, 1, 1, tzinfo=timezone.utc)
            )
            return DeployResult(request_id="req-a")

        mock_pipeline.deploy.side_effect = _deploy

        result = _invoke(runner, config_file, "deploy")

        assert result.exit_code == 0
        assert "req-a" in result.output
        assert "a.pr.edgegap.net:31000" in result.output
        saved = load_status_list(get_state_path(config_file))
        assert [item.request_id for item in saved.items] == ["req-a"]
        assert "token abc" not in get_state_path(config_file).read_text()

    def test_deployments_refreshes(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.refresh.side_effect = lambda: mock_pipeline.status_list.replace(
            _ready_items(), datetime(2024, 1, 1, tzinfo=timezone.utc)
        )

        result = _invoke(runner, config_file, "deployments")

        assert result.exit_code == 0
        mock_pipeline.refresh.assert_called_once()
        assert "Status.READY" in result.output
        assert get_state_path(config_file).is_file()

    def test_deployments_cached(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        state_path = get_state_path(config_file)
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            DeploymentStatusList(items=_ready_items()).model_dump_json()
        )

        result = _invoke(runner, config_file, "deployments", "--cached")

        assert result.exit_code == 0
        mock_pipeline.refresh.assert_not_called()
        assert "req-a" in result.output

    def test_deployments_empty(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "deployments")

        assert result.exit_code == 0
        assert "No deployments." in result.output

    def test_deployments_failure_saves_empty_list(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        def _refresh() -> None:
            mock_pipeline.status_list.clear()
            raise EdgegapAPIError("https://api.edgegap.com/v1/deployments", 200)

        mock_pipeline.refresh.side_effect = _refresh

        result = _invoke(runner, config_file, "deployments")

        assert result.exit_code == 3
        assert load_status_list(get_state_path(config_file)).items == []

    def test_stop(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "stop", "req-a")

        assert result.exit_code == 0
        mock_pipeline.stop.assert_called_once_with("req-a", force=False, refresh=False)
        assert "Stop requested for req-a" in result.output

    def test_stop_force(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        result = _invoke(runner, config_file, "stop", "req-b", "--force")

        assert result.exit_code == 0
        mock_pipeline.stop.assert_called_once_with("req-b", force=True, refresh=False)

    def test_stop_not_ready(
        self, runner: CliRunner, config_file: Path, mock_pipeline: MagicMock
    ) -> None:
        mock_pipeline.stop.side_effect = DeploymentError(
            "stop", "Deployment req-b is not ready. Use --force to stop it anyway."
        )

        result = _invoke(runner, config_file, "stop", "req-b")

        assert result.exit_code == 3
        assert "--force" in result.output

    def test_stop_loads_snapshot(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        """Test stop hands the saved status list to the pipeline."""
        state_path = get_state_path(config_file)
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            DeploymentStatusList(items=_ready_items()).model_dump_json()
        )

        with patch("edgegap_deploy.cli.utils.DeployPipeline") as mock_cls:
            mock_cls.return_value.status_list = DeploymentStatusList()
            _invoke(runner, config_file, "stop", "req-a")

        status_list = mock_cls.call_args.kwargs["status_list"]
        assert status_list.find("req-a") is not None


class TestPollAfterRequestFails:
    """The request succeeded but the poll after it did not."""

    @pytest.fixture
    def stale_snapshot(self, config_file: Path) -> Path:
        state_path = get_state_path(config_file)
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            DeploymentStatusList(
                items=[DeploymentStatusListItem(request_id="old", ready=True)]
            ).model_dump_json()
        )
        return state_path

    @staticmethod
    def _failing_refresh(pipeline: MagicMock) -> None:
        def _refresh() -> None:
            pipeline.status_list.clear()
            raise EdgegapAPIError("https://api.edgegap.com/v1/deployments", 500)

        pipeline.refresh.side_effect = _refresh

    def test_deploy_reports_request_and_saves_empty_list(
        self,
        runner: CliRunner,
        config_file: Path,
        stale_snapshot: Path,
        mock_pipeline: MagicMock,
    ) -> None:
        mock_pipeline.deploy.return_value = DeployResult(request_id="new-req")
        self._failing_refresh(mock_pipeline)

        result = _invoke(runner, config_file, "deploy")

        assert result.exit_code == 3
        assert "new-req" in result.output
        mock_pipeline.deploy.assert_called_once_with(refresh=False)
        assert load_status_list(stale_snapshot).items == []

    def test_stop_saves_empty_list(
        self,
        runner: CliRunner,
        config_file: Path,
        stale_snapshot: Path,
        mock_pipeline: MagicMock,
    ) -> None:
        self._failing_refresh(mock_pipeline)

        result = _invoke(runner, config_file, "stop", "old")

        assert result.exit_code == 3
        assert "Stop requested for old" in result.output
        assert load_status_list(stale_snapshot).items == []
