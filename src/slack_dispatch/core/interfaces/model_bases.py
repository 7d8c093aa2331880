"""Marker bases separating validated models from internal value objects.

Configuration (`AppConfig`, `AppCredentials`) derives from `DomainModel`;
request-scoped values such as route keys, parse results and HTTP request
snapshots are dataclasses tagged with `InternalDTO`.
"""

from __future__ import annotations

from pydantic import BaseModel

# Fields that identify an app in logs; secrets must never appear here.
_IDENTITY_FIELDS = ("id", "alias")


class DomainModel(BaseModel):
    """Base for pydantic configuration models."""

    def __repr__(self) -> str:
        identity = " ".join(
            f'{name}="{getattr(self, name)}"'
            for name in _IDENTITY_FIELDS
            if getattr(self, name, None) is not None
        )
        return f"<{type(self).__name__} {identity}>" if identity else f"<{type(self).__name__}>"


class InternalDTO:
    """Marker for dataclasses passed between the transport and the dispatch core."""
