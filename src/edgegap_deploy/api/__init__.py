"""Edgegap REST API client."""

from edgegap_deploy.api.client import EdgegapClient

__all__ = ["EdgegapClient"]
