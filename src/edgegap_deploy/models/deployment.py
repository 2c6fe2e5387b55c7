"""Pydantic models for Edgegap deployments and pipeline progress."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PipelineStage(str, Enum):
    """Stages of the deploy pipeline, in execution order."""

    PACKAGE = "package"
    CONTAINERIZE = "containerize"
    LOGIN = "login"
    PUSH = "push"
    CREATE_APP = "create_app"
    CREATE_VERSION = "create_version"
    DEPLOY = "deploy"
    POLL_STATUS = "poll_status"
    STOP = "stop"


class DeploymentStatusListItem(BaseModel):
    """One row of the deployment status list.

    Attributes:
        ip: Game port link (``host:port``) of the deployment
        status: Edgegap deployment status (e.g. ``Status.READY``)
        request_id: Deployment request ID, used to stop it
        api_key: API key the deployment was listed with
        ready: Whether the deployment is ready for connections
    """

    model_config = ConfigDict(extra="forbid")

    ip: str = Field(default="", description="Game port link")
    status: str = Field(default="", description="Deployment status")
    request_id: str = Field(..., description="Deployment request ID")
    api_key: str = Field(default="", repr=False, exclude=True)
    ready: bool = Field(default=False, description="Ready for connections")

    @classmethod
    def from_api(cls, data: dict[str, Any], api_key: str) -> DeploymentStatusListItem:
        """Build an item from one entry of the ``GET /deployments`` data array.

        Args:
            data: Deployment object returned by the API
            api_key: API key used for the listing

        Returns:
            DeploymentStatusListItem instance
        """
        ports = data.get("ports") or {}
        gameport = ports.get("gameport") or {}
        return cls(
            ip=str(gameport.get("link") or ""),
            status=str(data.get("status") or ""),
            request_id=str(data.get("request_id") or ""),
            api_key=api_key,
            ready=bool(data.get("ready", False)),
        )


class DeploymentStatusList(BaseModel):
    """Deployment status rows from the most recent poll.

    A refresh replaces ``items`` as a whole; nothing is merged.
    """

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1.0", description="Snapshot file version")
    refreshed_at: datetime | None = Field(
        default=None, description="When the list was last polled"
    )
    items: list[DeploymentStatusListItem] = Field(default_factory=list)

    def replace(self, items: list[DeploymentStatusListItem], when: datetime) -> None:
        """Replace every row with the result of a new poll."""
        self.items = list(items)
        self.refreshed_at = when

    def clear(self) -> None:
        """Drop all rows, e.g. after a failed poll."""
        self.items = []
        self.refreshed_at = None

    def find(self, request_id: str) -> DeploymentStatusListItem | None:
        """Return the row for ``request_id``, if present."""
        for item in self.items:
            if item.request_id == request_id:
                return item
        return None


class DeployResult(BaseModel):
    """Result of a ``POST /deploy`` call."""

    model_config = ConfigDict(extra="ignore")

    request_id: str = Field(..., description="Deployment request ID")
    request_dns: str | None = Field(default=None)
    request_app: str | None = Field(default=None)
    request_version: str | None = Field(default=None)
    request_user_count: int | None = Field(default=None)
