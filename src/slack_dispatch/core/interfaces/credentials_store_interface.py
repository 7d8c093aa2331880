from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slack_dispatch.core.config.app_config import AppCredentials


class IAppCredentialsStore(ABC):
    """Looks up per-app credentials for multi-tenant deployments."""

    @abstractmethod
    def get_app_credentials(self, app_id: str) -> AppCredentials:
        """Return the credentials for *app_id*."""
