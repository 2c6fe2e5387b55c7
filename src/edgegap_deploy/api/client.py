"""Edgegap REST API client.

This module provides the EdgegapClient for the Edgegap cloud-hosting API at
https://api.edgegap.com/v1: applications, versions, deployments.
"""

from __future__ import annotations

import base64
import contextlib
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests
from pydantic import ValidationError
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from edgegap_deploy.lib.errors import (
    ConfigError,
    EdgegapAPIError,
    EdgegapConnectionError,
    EdgegapResponseError,
)
from edgegap_deploy.models.deployment import DeploymentStatusListItem, DeployResult
from edgegap_deploy.models.settings import (
    DEFAULT_API_BASE_URL,
    DEFAULT_IP_LIST,
    VersionConfig,
)

logger = logging.getLogger(__name__)

USER_AGENT = "edgegap-deploy"


class EdgegapClient:
    """Client for the Edgegap API.

    Every request carries the raw API key in the ``Authorization`` header.
    Failures are never retried.

    Example:
        >>> client = EdgegapClient(api_key="token ...")
        >>> for item in client.get_deployments():
        ...     print(item.request_id, item.status)
    """

    DEFAULT_BASE_URL = DEFAULT_API_BASE_URL
    DEFAULT_TIMEOUT = 30.0  # seconds

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize client with credentials, base URL and timeout.

        Args:
            api_key: Edgegap API token
            base_url: API base URL
            timeout: Request timeout in seconds

        Raises:
            ConfigError: If api_key is empty
        """
        if not api_key:
            raise ConfigError("api_key", "An Edgegap API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Authorization": api_key,
            }
        )

    def create_app(self, name: str, image_path: Path) -> dict[str, Any]:
        """Create an application with a base64-encoded icon.

        Args:
            name: Application name
            image_path: Path to the application icon

        Returns:
            Parsed response body

        Raises:
            ConfigError: If the image file does not exist (no request is sent)
            EdgegapAPIError: API rejected the request
            EdgegapConnectionError: Network/timeout issues
        """
        if not image_path.is_file():
            raise ConfigError("image_path", f"File does not exist: {image_path}")

        encoded_image = base64.b64encode(image_path.read_bytes()).decode("ascii")
        payload = {
            "name": name,
            "image": encoded_image,
            "is_active": True,
        }
        logger.info("Creating application '%s'", name)
        return self._request("POST", "/app", payload=payload)

    def create_version(
        self,
        app_name: str,
        version_name: str,
        *,
        registry: str,
        image_repository: str,
        tag: str,
        private_username: str,
        private_token: str,
        game_port: int,
        resources: VersionConfig | None = None,
    ) -> dict[str, Any]:
        """Create an application version pointing at a pushed image.

        Args:
            app_name: Application name
            version_name: Version name
            registry: Registry host the image was pushed to
            image_repository: Image repository in the registry
            tag: Image tag
            private_username: Registry username Edgegap pulls with
            private_token: Registry token Edgegap pulls with
            game_port: Port exposed as ``gameport``
            resources: Resource sizing (defaults to 128 CPU units, 256 MB)

        Returns:
            Parsed response body
        """
        sizing = resources or VersionConfig()
        payload = {
            "name": version_name,
            "docker_repository": registry,
            "docker_image": image_repository,
            "docker_tag": tag,
            "private_username": private_username,
            "private_token": private_token,
            **sizing.model_dump(),
            "ports": [
                {
                    "port": game_port,
                    "protocol": "TCP/UDP",
                    "to_check": False,
                    "tls_upgrade": False,
                    "name": "gameport",
                }
            ],
        }
        logger.info("Creating version '%s' of application '%s'", version_name, app_name)
        return self._request(
            "POST", f"/app/{quote(app_name, safe='')}/version", payload=payload
        )

    def deploy_app(
        self,
        app_name: str,
        version_name: str,
        ip_list: list[str] | None = None,
    ) -> DeployResult:
        """Start a deployment of an application version.

        Args:
            app_name: Application name
            version_name: Version name
            ip_list: Player IPs used to select the location

        Returns:
            DeployResult with the deployment request ID
        """
        payload = {
            "app_name": app_name,
            "version_name": version_name,
            "ip_list": ip_list if ip_list else list(DEFAULT_IP_LIST),
        }
        logger.info("Deploying '%s' version '%s'", app_name, version_name)
        data = self._request("POST", "/deploy", payload=payload)
        try:
            return DeployResult.model_validate(data)
        except ValidationError as e:
            raise EdgegapResponseError(self._url("/deploy"), str(data)) from e

    def get_deployments(self) -> list[DeploymentStatusListItem]:
        """List current deployments.

        Returns:
            One status item per deployment

        Raises:
            EdgegapAPIError: Response has no ``data`` field
        """
        url = self._url("/deployments")
        data = self._request("GET", "/deployments", check_message=False)
        if "data" not in data:
            raise EdgegapAPIError(url, 200, _message_of(data))

        return [
            DeploymentStatusListItem.from_api(entry, self.api_key)
            for entry in data.get("data") or []
            if isinstance(entry, dict)
        ]

    def stop_deployment(self, request_id: str) -> dict[str, Any]:
        """Stop a deployment by request ID."""
        logger.info("Stopping deployment %s", request_id)
        return self._request(
            "DELETE",
            f"/stop/{quote(request_id, safe='')}",
            check_message=False,
            require_json=False,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        check_message: bool = True,
        require_json: bool = True,
    ) -> dict[str, Any]:
        """Execute an API request and parse the JSON body.

        Args:
            method: HTTP method
            path: Path under the base URL
            payload: JSON body
            check_message: Treat a ``message`` field in a 2xx body as failure
            require_json: Fail when the body is not JSON

        Returns:
            Parsed JSON object (empty dict for empty bodies when allowed)

        Raises:
            EdgegapConnectionError: Connection/timeout issues
            EdgegapAPIError: Non-2xx status, or ``message`` in the body
            EdgegapResponseError: Body is not valid JSON
        """
        url = self._url(path)
        logger.debug("%s %s", method, url)

        try:
            response = self._session.request(
                method=method,
                url=url,
                json=payload,
                timeout=self.timeout,
            )
        except (Timeout, RequestsConnectionError) as e:
            raise EdgegapConnectionError(url, original_error=e) from e

        if not response.ok:
            detail = None
            with contextlib.suppress(Exception):
                detail = _message_of(response.json())
            logger.warning(
                "HTTP request failed with code %d and response: %s",
                response.status_code,
                response.text,
            )
            raise EdgegapAPIError(url, response.status_code, detail or response.text)

        try:
            data = response.json()
        except ValueError as e:
            if not require_json:
                return {}
            raise EdgegapResponseError(url, response.text) from e

        if not isinstance(data, dict):
            if not require_json:
                return {}
            raise EdgegapResponseError(url, response.text)

        if check_message and "message" in data:
            raise EdgegapAPIError(url, response.status_code, _message_of(data))

        return data


def _message_of(data: Any) -> str | None:
    if isinstance(data, dict):
        message = data.get("message")
        return str(message) if message is not None else None
    return None
