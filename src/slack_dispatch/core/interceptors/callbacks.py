"""Interceptors built from plain callables."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from slack_dispatch.core.interfaces.listener_interface import IInterceptor, IListener

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class Lazy(IInterceptor):
    """Builds the real interceptor from a factory each time it runs."""

    def __init__(self, factory: Callable[[], IInterceptor]) -> None:
        self.factory = factory

    def intercept(self, context: Context, listener: IListener) -> None:
        self.factory().intercept(context, listener)


class Tap(IInterceptor):
    """Calls a function with the context, then continues to the listener."""

    def __init__(self, callback: Callable[[Context], object]) -> None:
        self.callback = callback

    def intercept(self, context: Context, listener: IListener) -> None:
        self.callback(context)
        listener.handle(context)
