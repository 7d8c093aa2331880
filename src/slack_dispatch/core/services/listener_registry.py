"""
A decorator-based listener registry.

Listeners registered here can be referenced by name when building routes; the
registry is the ``IListenerResolver`` an app config hands to class-resolved
listeners.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Union

from slack_dispatch.core.common.exceptions import ListenerResolutionError
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.interfaces.listener_resolver_interface import (
    IListenerResolver,
)

ListenerFactory = Union[IListener, type[IListener], Callable[[], IListener]]


class ListenerRegistry(IListenerResolver):
    """Maps names to listener instances or zero-argument factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ListenerFactory] = {}
        self._instances: dict[str, IListener] = {}

    def register(self, name: str, listener: ListenerFactory) -> ListenerRegistry:
        """
        Register a listener (or a factory for one) under a name.

        Raises:
            ValueError: If the name is already registered.
        """
        if name in self._factories:
            raise ValueError(f"Listener '{name}' is already registered.")
        self._factories[name] = listener
        return self

    def listener(self, name: str | None = None) -> Callable[[type[IListener]], type[IListener]]:
        """
        A decorator to register a listener class.

        Args:
            name: The name to register under; defaults to the class's qualified name.

        Returns:
            A decorator that registers the listener class.
        """

        def decorator(cls: type[IListener]) -> type[IListener]:
            self.register(name or qualified_name(cls), cls)
            return cls

        return decorator

    def has(self, name: str) -> bool:
        return name in self._factories

    def resolve(self, name: str) -> IListener:
        if name in self._instances:
            return self._instances[name]

        factory = self._factories.get(name)
        if factory is None:
            raise ListenerResolutionError(
                "Could not resolve class name to Listener", listener_name=name
            )

        instance = factory if isinstance(factory, IListener) else factory()
        if not isinstance(instance, IListener):
            raise ListenerResolutionError(
                "Resolved class name to a non-Listener",
                listener_name=name,
                details={"resolved_type": type(instance).__name__},
            )
        self._instances[name] = instance
        return instance

    def names(self) -> list[str]:
        return sorted(self._factories)

    def clear(self) -> None:
        self._factories.clear()
        self._instances.clear()


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
