"""Pytest configuration and shared fixtures for edgegap-deploy tests."""

import os
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from pydantic import SecretStr

from edgegap_deploy.models.settings import EdgegapSettings

EDGEGAP_ENV_VARS = (
    "EDGEGAP_API_KEY",
    "EDGEGAP_REGISTRY_USERNAME",
    "EDGEGAP_REGISTRY_TOKEN",
    "EDGEGAP_CONFIG",
)


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment, drops EDGEGAP_* overrides and restores the
    original environment after the test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    for name in EDGEGAP_ENV_VARS:
        os.environ.pop(name, None)
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def unreal_project(tmp_path: Path) -> Path:
    """Create a fake Unreal project and engine layout.

    Returns:
        Path to the ``MyGame.uproject`` file
    """
    project_dir = tmp_path / "MyGame"
    project_dir.mkdir()
    uproject = project_dir / "MyGame.uproject"
    uproject.write_text('{"FileVersion": 3}\n')

    batch_files = tmp_path / "Engine" / "Build" / "BatchFiles"
    batch_files.mkdir(parents=True)
    (batch_files / "RunUAT.sh").write_text("#!/bin/sh\n")
    (batch_files / "RunUAT.bat").write_text("@echo off\n")
    return uproject


@pytest.fixture
def settings(tmp_path: Path, unreal_project: Path) -> EdgegapSettings:
    """Fully populated settings pointing at the fake project."""
    icon = tmp_path / "icon.png"
    icon.write_bytes(b"\x89PNG\r\n")
    return EdgegapSettings(
        application_name="my-game",
        image_path=icon,
        api_key=SecretStr("token abc"),
        version_name="v1",
        registry="registry.edgegap.com",
        image_repository="my-org/my-game",
        tag="v1",
        private_registry_username="robot",
        private_registry_token=SecretStr("secret-token"),
        staging_directory=tmp_path / "Build",
        project_path=unreal_project,
        engine_dir=tmp_path / "Engine",
    )
