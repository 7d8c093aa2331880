"""
FastAPI request adapters.

This module converts FastAPI requests into a framework-neutral
:class:`SlackRequest` and builds the dispatch :class:`Context` from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import Request

from slack_dispatch.core.common.exceptions import (
    InvalidRequestError,
    MethodNotAllowedError,
)
from slack_dispatch.core.constants import SLACK_HEADER_PREFIX
from slack_dispatch.core.domain.context import Context
from slack_dispatch.core.domain.payload import Payload
from slack_dispatch.core.interfaces.model_bases import InternalDTO

logger = logging.getLogger(__name__)

# Context key under which request metadata is exposed to listeners.
HTTP_CONTEXT_KEY = "http"


@dataclass(frozen=True)
class SlackRequest(InternalDTO):
    """The parts of an HTTP request needed for auth and dispatch."""

    method: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def slack_headers(self) -> dict[str, str]:
        return {
            name: value
            for name, value in self.headers.items()
            if name.startswith(SLACK_HEADER_PREFIX)
        }


async def fastapi_to_slack_request(request: Request) -> SlackRequest:
    """Read a FastAPI request into a :class:`SlackRequest`.

    Header names are lower-cased. The body is read in full, as the signature
    covers the raw bytes.
    """
    return SlackRequest(
        method=request.method.upper(),
        body=await request.body(),
        headers={name.lower(): value for name, value in request.headers.items()},
        query=dict(request.query_params),
    )


def validate_slack_request(slack_request: SlackRequest) -> None:
    """
    Raises:
        MethodNotAllowedError: If the request is not a POST.
        InvalidRequestError: If the body is empty.
    """
    if slack_request.method != "POST":
        raise MethodNotAllowedError(details={"method": slack_request.method})
    if not slack_request.body:
        raise InvalidRequestError("Request body is empty")


def slack_request_to_context(slack_request: SlackRequest) -> Context:
    """Decode the request body and wrap it in a new Context.

    Raises:
        MethodNotAllowedError: If the request is not a POST.
        InvalidRequestError: If the body is empty or cannot be decoded.
    """
    validate_slack_request(slack_request)

    payload = Payload.from_http_request(slack_request.body, slack_request.content_type)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Decoded %s payload", payload.type.value)

    return Context(
        payload,
        {
            HTTP_CONTEXT_KEY: {
                "query": dict(slack_request.query),
                "headers": slack_request.slack_headers(),
            }
        },
    )
