"""
Interceptor chains.

A chain is an ordered list of interceptors folded around a terminal listener
at dispatch time. The first interceptor added runs first on the way in.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Union

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.interceptors.callbacks import Lazy
from slack_dispatch.core.interfaces.listener_interface import IInterceptor, IListener
from slack_dispatch.core.listeners.basic import Intercepted

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context

InterceptorLike = Union[IInterceptor, Iterable[IInterceptor], Callable[[], IInterceptor]]


def compose(interceptors: Iterable[IInterceptor], listener: IListener) -> IListener:
    """Wrap *listener* so that the first interceptor is outermost."""
    return functools.reduce(
        lambda inner, interceptor: Intercepted(interceptor, inner),
        reversed(list(interceptors)),
        listener,
    )


class Chain(IInterceptor):
    """Composite interceptor.

    Adding a chain to a chain splices its interceptors in place. The same
    interceptor instance may be added more than once and then runs once per
    occurrence.
    """

    def __init__(self, interceptors: Iterable[IInterceptor] = ()) -> None:
        self._interceptors: list[IInterceptor] = []
        self.add_multiple(interceptors)

    def add(self, interceptor: IInterceptor, prepend: bool = False) -> Chain:
        if isinstance(interceptor, Chain):
            return self.add_multiple(interceptor._interceptors, prepend)

        if prepend:
            self._interceptors.insert(0, interceptor)
        else:
            self._interceptors.append(interceptor)
        return self

    def add_multiple(self, interceptors: Iterable[IInterceptor], prepend: bool = False) -> Chain:
        items = list(interceptors)
        # Prepending one at a time in reverse keeps the group's own order.
        for interceptor in reversed(items) if prepend else items:
            self.add(interceptor, prepend)
        return self

    @property
    def interceptors(self) -> list[IInterceptor]:
        return list(self._interceptors)

    def intercept(self, context: Context, listener: IListener) -> None:
        compose(self._interceptors, listener).handle(context)

    def __len__(self) -> int:
        return len(self._interceptors)

    def __repr__(self) -> str:
        return f"<Chain {self._interceptors!r}>"


def coerce_interceptor(interceptor: InterceptorLike) -> IInterceptor:
    """Turn an interceptor, a list of interceptors, or a factory into an interceptor."""
    if isinstance(interceptor, IInterceptor):
        return interceptor
    if isinstance(interceptor, list | tuple):
        return Chain([coerce_interceptor(i) for i in interceptor])
    if callable(interceptor):
        return Lazy(interceptor)

    raise ConfigurationError(
        "Invalid interceptor", details={"type": type(interceptor).__name__}
    )
