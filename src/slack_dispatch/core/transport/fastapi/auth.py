"""
Signature authentication for inbound HTTP requests.
"""

from __future__ import annotations

import logging

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.config.app_config import AppConfig
from slack_dispatch.core.interfaces.credentials_store_interface import (
    IAppCredentialsStore,
)
from slack_dispatch.core.security.signature import SignatureAuthenticator
from slack_dispatch.core.transport.fastapi.request_adapters import SlackRequest

logger = logging.getLogger(__name__)


class RequestAuthenticator:
    """Checks the Slack signature of a request against an app's signing key.

    The key comes from the credentials store when one is given, otherwise
    from the app configuration.
    """

    def __init__(
        self,
        config: AppConfig,
        credentials_store: IAppCredentialsStore | None = None,
        authenticator: SignatureAuthenticator | None = None,
    ) -> None:
        self.config = config
        self.credentials_store = credentials_store
        self.authenticator = authenticator or SignatureAuthenticator(
            max_clock_skew=config.max_clock_skew
        )
        if not config.skip_auth and credentials_store is None:
            # Fail at startup rather than on the first request.
            config.require_signing_key()

    def signing_key(self) -> str:
        """Look up the key for this request without touching the shared config."""
        if self.credentials_store is None or self.config.id is None:
            return self.config.require_signing_key()

        credentials = self.credentials_store.get_app_credentials(self.config.id)
        if not credentials.signing_key:
            raise ConfigurationError(
                "No signing key provided", details={"app_id": self.config.id}
            )
        return credentials.signing_key

    def authenticate(self, slack_request: SlackRequest) -> None:
        """Raises :class:`AuthenticationError` if the request is not from Slack."""
        if self.config.skip_auth:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Skipping request authentication (skip_auth enabled)")
            return

        self.authenticator.verify_headers(
            slack_request.headers, slack_request.body, self.signing_key()
        )
