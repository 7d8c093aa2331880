"""Helpers for building composite listeners inline when registering routes.

Each helper takes an optional listener resolver; named listeners are looked
up through it at build time when it knows them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.interceptors.callbacks import Tap
from slack_dispatch.core.interceptors.chain import InterceptorLike, coerce_interceptor
from slack_dispatch.core.interceptors.filters import CallbackFilter, FieldFilter, Filter
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.listeners.basic import (
    FieldSwitch,
    Intercepted,
    ListenerLike,
    coerce_listener,
)
from slack_dispatch.core.listeners.two_phase import Async

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context
    from slack_dispatch.core.interfaces.listener_resolver_interface import (
        IListenerResolver,
    )


class Route:
    @staticmethod
    def async_(
        async_listener: ListenerLike,
        sync_listener: ListenerLike | None = None,
        resolver: IListenerResolver | None = None,
    ) -> IListener:
        """Ack with *sync_listener* (empty ack by default), then run *async_listener* post-ack."""
        return Async(
            coerce_listener(async_listener, resolver),
            coerce_listener(sync_listener, resolver) if sync_listener is not None else None,
        )

    @staticmethod
    def filter(
        condition: Callable[[Context], bool] | Mapping[str, str],
        listener: ListenerLike,
        resolver: IListenerResolver | None = None,
    ) -> IListener:
        """Run *listener* only if *condition* (a predicate or field map) matches."""
        interceptor: Filter
        if isinstance(condition, Mapping):
            interceptor = FieldFilter(condition)
        elif callable(condition):
            interceptor = CallbackFilter(condition)
        else:
            raise ConfigurationError(
                "Invalid listener filter", details={"type": type(condition).__name__}
            )
        return Intercepted(interceptor, coerce_listener(listener, resolver))

    @staticmethod
    def intercept(
        interceptor: InterceptorLike,
        listener: ListenerLike,
        resolver: IListenerResolver | None = None,
    ) -> IListener:
        return Intercepted(coerce_interceptor(interceptor), coerce_listener(listener, resolver))

    @staticmethod
    def switch(
        field: str,
        listeners: Mapping[str, ListenerLike],
        resolver: IListenerResolver | None = None,
    ) -> IListener:
        return FieldSwitch(field, listeners, resolver=resolver)

    @staticmethod
    def tap(
        callback: Callable[[Context], object],
        listener: ListenerLike,
        resolver: IListenerResolver | None = None,
    ) -> IListener:
        return Intercepted(Tap(callback), coerce_listener(listener, resolver))
