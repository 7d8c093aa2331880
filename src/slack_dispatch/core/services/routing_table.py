"""
Routing table keyed by payload type and identifier.

Resolution falls back from the most specific key to the most generic one:
``(type, id)`` then ``(type, _default)`` then ``(_default, _default)``. When
nothing is registered at any level the result carries the ``Undefined``
listener and ``matched=False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from slack_dispatch.core.domain.payload import PayloadType
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.interfaces.model_bases import InternalDTO
from slack_dispatch.core.listeners.basic import Undefined

logger = logging.getLogger(__name__)

DEFAULT_KEY = "_default"
_STRIP_CHARS = "/ "


def normalize_identifier(identifier: str | None) -> str:
    """Strip slashes and spaces; empty identifiers become the default key."""
    if identifier is None:
        return DEFAULT_KEY
    identifier = identifier.strip(_STRIP_CHARS)
    return identifier or DEFAULT_KEY


def _type_key(payload_type: PayloadType | str) -> str:
    return payload_type.value if isinstance(payload_type, PayloadType) else payload_type


@dataclass(frozen=True)
class RouteKey(InternalDTO):
    payload_type: str
    identifier: str

    def __str__(self) -> str:
        return f"{self.payload_type}:{self.identifier}"


@dataclass(frozen=True)
class RouteResolution(InternalDTO):
    """Outcome of a lookup; ``key`` is None when nothing matched."""

    listener: IListener
    key: RouteKey | None
    matched: bool


class RoutingTable:
    def __init__(self) -> None:
        self._routes: dict[RouteKey, IListener] = {}
        self._undefined = Undefined()

    def register(
        self,
        payload_type: PayloadType | str,
        identifier: str | None,
        listener: IListener,
    ) -> RouteKey:
        """Store *listener* at the normalized key. Last write wins."""
        key = RouteKey(_type_key(payload_type), normalize_identifier(identifier))
        if key in self._routes and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Replacing listener registered for %s", key)
        self._routes[key] = listener
        return key

    def resolve(
        self, payload_type: PayloadType | str, identifier: str | None
    ) -> RouteResolution:
        type_key = _type_key(payload_type)
        candidates = (
            RouteKey(type_key, normalize_identifier(identifier)),
            RouteKey(type_key, DEFAULT_KEY),
            RouteKey(DEFAULT_KEY, DEFAULT_KEY),
        )
        for key in candidates:
            listener = self._routes.get(key)
            if listener is not None:
                return RouteResolution(listener=listener, key=key, matched=True)

        return RouteResolution(listener=self._undefined, key=None, matched=False)

    def keys(self) -> list[RouteKey]:
        return list(self._routes)

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    def __len__(self) -> int:
        return len(self._routes)
