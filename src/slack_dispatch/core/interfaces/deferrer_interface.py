from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context


class IDeferrer(ABC):
    """Continues processing of an acknowledged context after the reply."""

    @abstractmethod
    def defer(self, context: Context) -> None:
        """Hand off an acknowledged-and-deferred context for post-ack handling."""
