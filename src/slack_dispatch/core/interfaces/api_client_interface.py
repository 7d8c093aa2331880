"""
Interfaces for the outbound clients used by listeners to call back to Slack.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IApiClient(ABC):
    """Client for the Slack Web API."""

    @abstractmethod
    def call(self, api: str, params: dict[str, Any]) -> dict[str, Any]:
        """Call a Web API method (e.g. ``chat.postMessage``).

        Returns:
            The decoded JSON response of a successful call.

        Raises:
            ApiCallError: If the call fails or Slack reports ``ok: false``.
        """


class IRespondClient(ABC):
    """Client for posting messages to a payload's ``response_url``."""

    @abstractmethod
    def respond(self, response_url: str, message: dict[str, Any]) -> None:
        """Send *message* to *response_url*."""
