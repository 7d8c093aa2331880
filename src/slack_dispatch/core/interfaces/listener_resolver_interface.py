from __future__ import annotations

from abc import ABC, abstractmethod

from slack_dispatch.core.interfaces.listener_interface import IListener


class IListenerResolver(ABC):
    """Capability-injection interface that turns a registered name into a listener."""

    @abstractmethod
    def has(self, name: str) -> bool:
        """Return True if *name* can be resolved."""

    @abstractmethod
    def resolve(self, name: str) -> IListener:
        """Return the listener registered under *name*.

        Raises:
            ListenerResolutionError: If nothing is registered under the name.
        """
