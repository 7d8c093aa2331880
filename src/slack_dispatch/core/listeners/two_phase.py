"""Listeners that split their work between the ack and the post-ack phase."""

from __future__ import annotations

from typing import TYPE_CHECKING

from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.listeners.basic import Ack

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class Async(IListener):
    """Runs *sync_listener* (an empty ack by default) before the ack and defers
    *async_listener* until after it."""

    def __init__(self, async_listener: IListener, sync_listener: IListener | None = None) -> None:
        self.async_listener = async_listener
        self.sync_listener = sync_listener or Ack()

    def handle(self, context: Context) -> None:
        if context.is_acknowledged:
            self.async_listener.handle(context)
        else:
            self.sync_listener.handle(context)
            context.defer()


class Base(IListener):
    """Template listener: override :meth:`handle_ack` and :meth:`handle_after_ack`.

    The context is always deferred, so :meth:`handle_after_ack` runs once the
    ack has been sent. An empty ack is sent if :meth:`handle_ack` does not ack.
    """

    def handle(self, context: Context) -> None:
        if context.is_acknowledged:
            self.handle_after_ack(context)
            return

        context.defer(True)
        self.handle_ack(context)
        if not context.is_acknowledged:
            context.ack()

    def handle_ack(self, context: Context) -> None:
        pass

    def handle_after_ack(self, context: Context) -> None:
        pass


class Dual(IListener):
    """Dispatches to :meth:`handle_ack` or :meth:`handle_after_ack` by phase,
    without deferring on its own."""

    def handle(self, context: Context) -> None:
        if context.is_acknowledged:
            self.handle_after_ack(context)
        else:
            self.handle_ack(context)

    def handle_ack(self, context: Context) -> None:
        raise NotImplementedError

    def handle_after_ack(self, context: Context) -> None:
        raise NotImplementedError
