"""
Core listener variants.

Every "listener-like" value accepted by the router (a listener instance, a
callable, a listener class or a registered name) is turned into one of these
by :func:`coerce_listener` when the route is registered.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Union

from slack_dispatch.core.common.exceptions import ListenerResolutionError
from slack_dispatch.core.domain.messages import MessageLike, coerce_message
from slack_dispatch.core.domain.payload import PayloadType
from slack_dispatch.core.interfaces.listener_interface import IInterceptor, IListener
from slack_dispatch.core.interfaces.listener_resolver_interface import (
    IListenerResolver,
)
from slack_dispatch.core.services.listener_registry import qualified_name

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context

logger = logging.getLogger(__name__)

ListenerLike = Union[IListener, Callable[["Context"], Any], type[IListener], str]

DEFAULT_CASE = "*"


class Callback(IListener):
    """Wraps a plain function taking the context."""

    def __init__(self, callback: Callable[[Context], Any]) -> None:
        self.callback = callback

    def handle(self, context: Context) -> None:
        self.callback(context)

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"<Callback {name}>"


class Ack(IListener):
    """Acks the request, optionally with a message."""

    def __init__(self, message: MessageLike | None = None) -> None:
        self.message = coerce_message(message) if message else None

    def handle(self, context: Context) -> None:
        context.ack(self.message)


class Undefined(IListener):
    """Fallback used when nothing matches the payload; only logs."""

    def handle(self, context: Context) -> None:
        context.logger.error("No listener matching payload")


class WorkInProgress(IListener):
    """Placeholder for features that are not built yet."""

    message = "Work in progress"

    def handle(self, context: Context) -> None:
        payload = context.payload
        if payload.is_type(PayloadType.COMMAND) and not context.is_acknowledged:
            context.ack(self.message)
        elif payload.response_url:
            context.respond(self.message)
        else:
            context.logger.debug(self.message)


class Intercepted(IListener):
    """A listener behind an interceptor."""

    def __init__(self, interceptor: IInterceptor, listener: IListener) -> None:
        self.interceptor = interceptor
        self.listener = listener

    def handle(self, context: Context) -> None:
        self.interceptor.intercept(context, self.listener)


class ClassResolver(IListener):
    """Listener looked up by name through an ``IListenerResolver``.

    The target may be a registered name or a listener class. When a resolver
    is known up front the lookup happens immediately; otherwise the resolver
    of the context's app config is used on first use and the result is kept.
    Unregistered classes are instantiated directly.
    """

    def __init__(
        self,
        target: str | type[IListener],
        resolver: IListenerResolver | None = None,
    ) -> None:
        self.target = target
        self.name = target if isinstance(target, str) else qualified_name(target)
        self._listener: IListener | None = None
        if resolver is not None and resolver.has(self.name):
            self._listener = resolver.resolve(self.name)

    def resolve(self, resolver: IListenerResolver) -> IListener:
        if self._listener is not None:
            return self._listener

        if resolver.has(self.name):
            listener = resolver.resolve(self.name)
        elif isinstance(self.target, type):
            listener = self.target()
        else:
            raise ListenerResolutionError(
                "Could not resolve class name to Listener", listener_name=self.name
            )

        if not isinstance(listener, IListener):
            raise ListenerResolutionError(
                "Resolved class name to a non-Listener", listener_name=self.name
            )
        self._listener = listener
        return listener

    def handle(self, context: Context) -> None:
        self.resolve(context.app_config.get_listener_resolver()).handle(context)

    def __repr__(self) -> str:
        return f"<ClassResolver {self.name}>"


class FieldSwitch(IListener):
    """Picks a listener by the value of a payload field.

    The ``"*"`` case (or *default*) handles values without a case.
    """

    def __init__(
        self,
        field: str,
        cases: Mapping[str, ListenerLike],
        default: ListenerLike | None = None,
        resolver: IListenerResolver | None = None,
    ) -> None:
        cases = dict(cases)
        fallback = cases.pop(DEFAULT_CASE, None)
        if default is None:
            default = fallback
        self.field = field
        self.default = coerce_listener(default, resolver) if default is not None else None
        self.cases = {key: coerce_listener(value, resolver) for key, value in cases.items()}

    def handle(self, context: Context) -> None:
        value = context.payload.get(self.field)
        listener = self.cases.get(value) if isinstance(value, str) else None
        (listener or self.default or Undefined()).handle(context)


def coerce_listener(
    listener: ListenerLike, resolver: IListenerResolver | None = None
) -> IListener:
    """Turn a listener-like value into a listener.

    Raises:
        ListenerResolutionError: If the value cannot be used as a listener.
    """
    if isinstance(listener, IListener):
        return listener
    if isinstance(listener, str):
        return ClassResolver(listener, resolver)
    if isinstance(listener, type) and issubclass(listener, IListener):
        return ClassResolver(listener, resolver)
    if callable(listener):
        return Callback(listener)

    raise ListenerResolutionError(
        "Invalid listener", details={"type": type(listener).__name__}
    )
