"""
The top-level router.

A :class:`Router` is itself a listener: it resolves the payload against its
routing table and runs the match behind the router-wide interceptor chain.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from slack_dispatch.core.commands.command_router import CommandRouter
from slack_dispatch.core.domain.messages import MessageLike
from slack_dispatch.core.domain.payload import PayloadType
from slack_dispatch.core.interceptors.callbacks import Tap
from slack_dispatch.core.interceptors.chain import (
    Chain,
    InterceptorLike,
    coerce_interceptor,
)
from slack_dispatch.core.interceptors.url_verification import UrlVerification
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.interfaces.listener_resolver_interface import (
    IListenerResolver,
)
from slack_dispatch.core.listeners.basic import Ack, Intercepted, ListenerLike, coerce_listener
from slack_dispatch.core.services.route import Route
from slack_dispatch.core.services.routing_table import (
    DEFAULT_KEY,
    RouteResolution,
    RoutingTable,
)

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context

logger = logging.getLogger(__name__)


class Router(IListener):
    def __init__(self, resolver: IListenerResolver | None = None) -> None:
        self.routes = RoutingTable()
        self.interceptors = Chain()
        self._resolver = resolver
        self._command_ack: IListener | None = None
        self._url_verification_added = False

    # Router-wide behaviour

    def with_command_ack(self, message: MessageLike | None) -> Router:
        """Use *message* as the immediate ack for async commands."""
        self._command_ack = Ack(message)
        return self

    def with_url_verification(self) -> Router:
        """Answer Events API URL verification ahead of every other interceptor."""
        if not self._url_verification_added:
            self.interceptors.add(UrlVerification(), prepend=True)
            self._url_verification_added = True
        return self

    def with_resolver(self, resolver: IListenerResolver) -> Router:
        self._resolver = resolver
        return self

    def use(self, interceptor: InterceptorLike) -> Router:
        self.interceptors.add(coerce_interceptor(interceptor))
        return self

    def tap(self, callback: Callable[[Context], object]) -> Router:
        return self.use(Tap(callback))

    # Registration

    def register(
        self, payload_type: PayloadType | str, identifier: str, listener: ListenerLike
    ) -> Router:
        self.routes.register(
            payload_type, identifier, coerce_listener(listener, self._resolver)
        )
        return self

    def _async(
        self, listener: ListenerLike, sync_listener: ListenerLike | None = None
    ) -> IListener:
        return Route.async_(listener, sync_listener, resolver=self._resolver)

    def _command_router(self, sub_commands: Mapping[str, ListenerLike]) -> CommandRouter:
        return CommandRouter(sub_commands, resolver=self._resolver)

    def command(self, name: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.COMMAND, name, listener)

    def command_async(self, name: str, listener: ListenerLike) -> Router:
        return self.command(name, self._async(listener, self._command_ack))

    def command_group(self, name: str, sub_commands: Mapping[str, ListenerLike]) -> Router:
        return self.register(PayloadType.COMMAND, name, self._command_router(sub_commands))

    def command_group_async(self, name: str, sub_commands: Mapping[str, ListenerLike]) -> Router:
        return self.register(
            PayloadType.COMMAND,
            name,
            self._async(self._command_router(sub_commands), self._command_ack),
        )

    def event(self, name: str, listener: ListenerLike) -> Router:
        return self.with_url_verification().register(PayloadType.EVENT_CALLBACK, name, listener)

    def event_async(self, name: str, listener: ListenerLike) -> Router:
        return self.event(name, self._async(listener))

    def global_shortcut(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.SHORTCUT, callback_id, listener)

    def global_shortcut_async(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.global_shortcut(callback_id, self._async(listener))

    def message_shortcut(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.MESSAGE_ACTION, callback_id, listener)

    def message_shortcut_async(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.message_shortcut(callback_id, self._async(listener))

    def block_action(self, action_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.BLOCK_ACTIONS, action_id, listener)

    def block_action_async(self, action_id: str, listener: ListenerLike) -> Router:
        return self.block_action(action_id, self._async(listener))

    def block_suggestion(self, action_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.BLOCK_SUGGESTION, action_id, listener)

    def view_submission(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.VIEW_SUBMISSION, callback_id, listener)

    def view_submission_async(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.view_submission(callback_id, self._async(listener))

    def view_closed(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.VIEW_CLOSED, callback_id, listener)

    def view_closed_async(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.view_closed(callback_id, self._async(listener))

    def workflow_step_edit(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.register(PayloadType.WORKFLOW_STEP_EDIT, callback_id, listener)

    def workflow_step_edit_async(self, callback_id: str, listener: ListenerLike) -> Router:
        return self.workflow_step_edit(callback_id, self._async(listener))

    def on(self, payload_type: PayloadType | str, listener: ListenerLike) -> Router:
        """Catch-all for one payload type."""
        return self.register(payload_type, DEFAULT_KEY, listener)

    def on_async(self, payload_type: PayloadType | str, listener: ListenerLike) -> Router:
        return self.on(payload_type, self._async(listener))

    def any(self, listener: ListenerLike) -> Router:
        """Global catch-all."""
        return self.register(DEFAULT_KEY, DEFAULT_KEY, listener)

    def any_async(self, listener: ListenerLike) -> Router:
        return self.any(self._async(listener))

    # Dispatch

    def resolve(self, context: Context) -> RouteResolution:
        payload = context.payload
        return self.routes.resolve(payload.type, payload.get_type_id())

    def get_listener(self, context: Context) -> IListener:
        resolution = self.resolve(context)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Resolved %s to %r (matched=%s)",
                resolution.key,
                resolution.listener,
                resolution.matched,
            )
        return Intercepted(self.interceptors, resolution.listener)

    def handle(self, context: Context) -> None:
        self.get_listener(context).handle(context)
