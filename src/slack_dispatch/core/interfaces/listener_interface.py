"""
Defines the interfaces for listeners and interceptors.

A listener consumes a Context and may acknowledge or defer it. An interceptor
wraps a listener with cross-cutting behaviour and decides whether (and with
which listener) handling continues.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class IListener(ABC):
    """Interface for a unit of behaviour handling a single Context."""

    @abstractmethod
    def handle(self, context: Context) -> None:
        """Handle the context.

        Listeners are invoked once before the ack and, if the context was
        deferred, once more afterwards with ``context.is_acknowledged`` set.
        """


class IInterceptor(ABC):
    """Interface for middleware that wraps a listener."""

    @abstractmethod
    def intercept(self, context: Context, listener: IListener) -> None:
        """Observe or transform the context and optionally delegate to *listener*."""
