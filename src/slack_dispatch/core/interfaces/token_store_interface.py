from __future__ import annotations

from abc import ABC, abstractmethod


class ITokenStore(ABC):
    """Stores bot tokens per workspace (team) or enterprise installation."""

    @abstractmethod
    def get(self, team_id: str | None, enterprise_id: str | None) -> str:
        """Return the bot token for the installation.

        Raises:
            ConfigurationError: If no token is available.
        """

    @abstractmethod
    def set(self, team_id: str | None, enterprise_id: str | None, token: str) -> None:
        """Store the bot token for the installation."""
