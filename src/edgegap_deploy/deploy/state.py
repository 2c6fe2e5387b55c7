"""Deployment status snapshot helpers.

The status list of the most recent poll is written next to the settings
file so it can be shown again without calling the API. API keys are never
written.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from edgegap_deploy.lib.errors import DeploymentError
from edgegap_deploy.models.deployment import DeploymentStatusList

STATE_VERSION = "1.0"


def get_state_path(settings_path: Path) -> Path:
    """Return the status snapshot path for a settings file."""
    return settings_path.resolve().parent / ".edgegap" / "deployments.json"


def load_status_list(state_path: Path) -> DeploymentStatusList:
    """Load the last saved status list, or an empty one."""
    if not state_path.exists():
        return DeploymentStatusList(version=STATE_VERSION)

    try:
        content = state_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to read deployment status at {state_path}: {exc}",
        ) from exc

    if not content.strip():
        return DeploymentStatusList(version=STATE_VERSION)

    try:
        return DeploymentStatusList.model_validate_json(content)
    except ValidationError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Invalid deployment status format in {state_path}: {exc}",
        ) from exc


def save_status_list(state_path: Path, status_list: DeploymentStatusList) -> None:
    """Persist a status list to disk (``api_key`` is excluded by the model)."""
    try:
        state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(status_list.model_dump(mode="json"), indent=2)
        state_path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to write deployment status to {state_path}: {exc}",
        ) from exc
