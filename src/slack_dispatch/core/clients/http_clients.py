"""
httpx-based clients for calling back to Slack.

``SimpleApiClient`` calls Web API methods; ``SimpleRespondClient`` posts
follow-up messages to a payload's ``response_url``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from slack_dispatch.core.common.exceptions import ApiCallError
from slack_dispatch.core.interfaces.api_client_interface import (
    IApiClient,
    IRespondClient,
)

logger = logging.getLogger(__name__)

SLACK_API_BASE_URL = "https://slack.com/api/"
DEFAULT_TIMEOUT_SECONDS = 5.0
USER_AGENT = "slack-dispatch"

# Web API methods that accept JSON bodies; everything else is form encoded.
JSON_API_METHODS = frozenset(
    {
        "admin.apps.approve",
        "admin.apps.restrict",
        "admin.conversations.archive",
        "admin.conversations.create",
        "admin.conversations.delete",
        "admin.conversations.invite",
        "admin.conversations.rename",
        "admin.conversations.search",
        "admin.teams.create",
        "admin.teams.list",
        "admin.users.assign",
        "admin.users.invite",
        "admin.users.list",
        "admin.users.remove",
        "api.test",
        "apps.event.authorizations.list",
        "auth.test",
        "calls.add",
        "calls.end",
        "calls.info",
        "calls.update",
        "chat.delete",
        "chat.deleteScheduledMessage",
        "chat.meMessage",
        "chat.postEphemeral",
        "chat.postMessage",
        "chat.scheduleMessage",
        "chat.scheduledMessages.list",
        "chat.unfurl",
        "chat.update",
        "conversations.archive",
        "conversations.close",
        "conversations.create",
        "conversations.invite",
        "conversations.join",
        "conversations.kick",
        "conversations.leave",
        "conversations.mark",
        "conversations.open",
        "conversations.rename",
        "conversations.setPurpose",
        "conversations.setTopic",
        "conversations.unarchive",
        "dialog.open",
        "dnd.endDnd",
        "dnd.endSnooze",
        "files.delete",
        "pins.add",
        "pins.remove",
        "reactions.add",
        "reactions.remove",
        "reminders.add",
        "reminders.complete",
        "reminders.delete",
        "stars.add",
        "stars.remove",
        "usergroups.create",
        "usergroups.disable",
        "usergroups.enable",
        "usergroups.update",
        "usergroups.users.update",
        "users.profile.set",
        "users.setActive",
        "users.setPresence",
        "views.open",
        "views.publish",
        "views.push",
        "views.update",
        "workflows.stepCompleted",
        "workflows.stepFailed",
        "workflows.updateStep",
    }
)


def build_http_client(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.Client:
    """Create the connection pool used for outbound Slack calls."""
    return httpx.Client(timeout=timeout, headers={"User-Agent": USER_AGENT})


class _HttpSender:
    """Shared request/response handling for Slack HTTP calls.

    A client passed in is borrowed and left open by :meth:`close`; one built
    here is owned and closed.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_client = client is None
        self._client = client or build_http_client(timeout)

    def _send(
        self,
        url: str,
        *,
        json_body: dict[str, Any] | None = None,
        form_body: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        error_context: dict[str, Any] = {"method": "POST", "url": url}
        headers = {"Authorization": f"Bearer {token}"} if token else None

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Sending Slack request to %s", url)

        try:
            if json_body is not None:
                response = self._client.post(url, json=json_body, headers=headers)
            else:
                response = self._client.post(url, data=form_body, headers=headers)
        except httpx.TimeoutException as e:
            raise ApiCallError(
                "Slack API request could not be completed", details=error_context
            ) from e
        except httpx.RequestError as e:
            raise ApiCallError(
                f"Slack API request experienced an unexpected error: {e}",
                details=error_context,
            ) from e

        error_context["status_code"] = response.status_code
        body = response.text
        if not body:
            raise ApiCallError(
                "Slack API request could not be completed", details=error_context
            )
        # response_url endpoints answer with a bare "ok".
        if body == "ok":
            return {"ok": True}

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ApiCallError(
                f"Slack API response contained invalid JSON: {e}",
                details=error_context,
            ) from e

        if isinstance(data, dict) and data.get("ok") is True:
            return data

        error = data.get("error", "Unknown") if isinstance(data, dict) else "Unknown"
        error_context["error"] = error
        raise ApiCallError(
            f"Slack API response was unsuccessful: {error}", details=error_context
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class SimpleApiClient(_HttpSender, IApiClient):
    """Web API client authenticated with a single bot token."""

    def __init__(
        self,
        api_token: str | None = None,
        client: httpx.Client | None = None,
        base_url: str = SLACK_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_token = api_token
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"

    def call(self, api: str, params: dict[str, Any]) -> dict[str, Any]:
        params = dict(params)
        token = params.pop("token", None) or self._api_token
        url = self._base_url + api

        try:
            if api in JSON_API_METHODS:
                return self._send(url, json_body=params, token=token)
            form = {
                key: json.dumps(value) if isinstance(value, dict | list) else value
                for key, value in params.items()
            }
            if token:
                form["token"] = token
            return self._send(url, form_body=form)
        except ApiCallError as e:
            raise e.add_context(api=api)


class SimpleRespondClient(_HttpSender, IRespondClient):
    """Posts messages to ``response_url`` webhooks."""

    def respond(self, response_url: str, message: dict[str, Any]) -> None:
        self._send(response_url, json_body=message)
