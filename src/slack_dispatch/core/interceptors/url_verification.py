from __future__ import annotations

from typing import TYPE_CHECKING

from slack_dispatch.core.domain.payload import PayloadType
from slack_dispatch.core.interfaces.listener_interface import IInterceptor, IListener

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class UrlVerification(IInterceptor):
    """Answers the Events API ``url_verification`` handshake with its challenge."""

    def intercept(self, context: Context, listener: IListener) -> None:
        payload = context.payload
        if payload.is_type(PayloadType.URL_VERIFICATION):
            challenge = str(payload.get("challenge", required=True))
            context.ack({"challenge": challenge})
        else:
            listener.handle(context)
