"""
HTTP servers for Slack apps.

:func:`build_http_app` exposes one application at a single FastAPI route.
:class:`MultiTenantHttpServer` exposes several applications at one route and
picks the app for each request by its app id.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from slack_dispatch.core.common.exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
)
from slack_dispatch.core.common.logging_utils import install_secret_redaction_filter
from slack_dispatch.core.constants import APP_ID_QUERY_PARAM
from slack_dispatch.core.domain.payload import Payload
from slack_dispatch.core.interfaces.credentials_store_interface import (
    IAppCredentialsStore,
)
from slack_dispatch.core.interfaces.deferrer_interface import IDeferrer
from slack_dispatch.core.services.application import AppHandler, Application
from slack_dispatch.core.transport.fastapi.auth import RequestAuthenticator
from slack_dispatch.core.transport.fastapi.exception_adapters import (
    register_exception_handlers,
)
from slack_dispatch.core.transport.fastapi.request_adapters import (
    SlackRequest,
    fastapi_to_slack_request,
    slack_request_to_context,
    validate_slack_request,
)
from slack_dispatch.core.transport.fastapi.response_adapters import ack_to_response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

AppFactory = Callable[[], Application]
AppIdDetector = Callable[[SlackRequest], "str | None"]


class HttpDispatcher:
    """Authenticates, decodes and dispatches one request for one application."""

    def __init__(
        self,
        app: Application,
        deferrer: IDeferrer | None = None,
        credentials_store: IAppCredentialsStore | None = None,
    ) -> None:
        self.app = app
        self.handler = AppHandler(app, deferrer)
        self.authenticator = RequestAuthenticator(app.config, credentials_store)
        # Opened before serving so concurrent requests share one pool.
        app.config.get_http_client()

    def close(self) -> None:
        self.app.config.close()

    def dispatch(self, slack_request: SlackRequest) -> str | None:
        """Return the ack body for *slack_request*.

        Raises:
            SlackDispatchError: Mapped to an HTTP error response by the
                registered exception handlers.
        """
        validate_slack_request(slack_request)
        self.authenticator.authenticate(slack_request)
        context = slack_request_to_context(slack_request)
        return self.handler.handle(context)


def _add_dispatch_route(
    fastapi_app: FastAPI,
    path: str,
    dispatch: Callable[[SlackRequest], str | None],
) -> None:
    async def slack_endpoint(request: Request) -> Response:
        slack_request = await fastapi_to_slack_request(request)
        # Listeners are synchronous and may block on Slack API calls.
        ack_body = await run_in_threadpool(dispatch, slack_request)
        return ack_to_response(ack_body)

    fastapi_app.add_api_route(
        path, slack_endpoint, methods=ALLOWED_METHODS, include_in_schema=False
    )


def build_http_app(
    app: Application,
    deferrer: IDeferrer | None = None,
    credentials_store: IAppCredentialsStore | None = None,
    path: str = "/",
) -> FastAPI:
    """Create a FastAPI application serving *app* at *path*.

    Raises:
        ConfigurationError: If auth is enabled but no signing key is configured.
    """
    dispatcher = HttpDispatcher(app, deferrer, credentials_store)
    secrets = app.config.get_app_credentials().secret_values()
    if secrets:
        install_secret_redaction_filter(secrets)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Closing Slack API connections")
        dispatcher.close()

    fastapi_app = FastAPI(
        title="slack-dispatch", docs_url=None, redoc_url=None, lifespan=lifespan
    )
    fastapi_app.state.slack_app = app
    register_exception_handlers(fastapi_app)
    _add_dispatch_route(fastapi_app, path, dispatcher.dispatch)
    return fastapi_app


def detect_app_id(slack_request: SlackRequest) -> str | None:
    """Read the app id from the ``_app`` query parameter, else from the payload."""
    app_id = slack_request.query.get(APP_ID_QUERY_PARAM)
    if app_id:
        return app_id
    if not slack_request.body:
        return None
    try:
        payload = Payload.from_http_request(slack_request.body, slack_request.content_type)
    except InvalidRequestError:
        return None
    return payload.app_id


class MultiTenantHttpServer:
    """Serves several Slack apps from one endpoint.

    Apps are registered by id with a factory; each app is built on first
    use and its dispatcher is reused for later requests.
    """

    def __init__(
        self,
        deferrer: IDeferrer | None = None,
        credentials_store: IAppCredentialsStore | None = None,
    ) -> None:
        self.deferrer = deferrer
        self.credentials_store = credentials_store
        self._factories: dict[str, AppFactory] = {}
        self._dispatchers: dict[str, HttpDispatcher] = {}
        self._app_id_detector: AppIdDetector = detect_app_id

    def register_app(self, app_id: str, factory: AppFactory | Application) -> MultiTenantHttpServer:
        if isinstance(factory, Application):
            instance = factory
            factory = lambda: instance  # noqa: E731
        self._factories[app_id] = factory
        replaced = self._dispatchers.pop(app_id, None)
        if replaced is not None:
            replaced.close()
        return self

    def with_app_id_detector(self, detector: AppIdDetector) -> MultiTenantHttpServer:
        self._app_id_detector = detector
        return self

    @property
    def app_ids(self) -> list[str]:
        return list(self._factories)

    def get_dispatcher(self, app_id: str) -> HttpDispatcher:
        dispatcher = self._dispatchers.get(app_id)
        if dispatcher is not None:
            return dispatcher

        factory = self._factories.get(app_id)
        if factory is None:
            raise AuthenticationError(
                f"No app registered for app ID: {app_id}", details={"app_id": app_id}
            )

        app = factory()
        if app.config.id is None:
            app.config.with_id(app_id)
        elif app.config.id != app_id:
            raise ConfigurationError(
                f"ID mismatch for app ID: {app_id}",
                details={"app_id": app_id, "config_app_id": app.config.id},
            )

        dispatcher = HttpDispatcher(app, self.deferrer, self.credentials_store)
        self._dispatchers[app_id] = dispatcher
        if logger.isEnabledFor(logging.INFO):
            logger.info("Initialized app %s", app_id)
        return dispatcher

    def dispatch(self, slack_request: SlackRequest) -> str | None:
        validate_slack_request(slack_request)
        app_id = self._app_id_detector(slack_request)
        if not app_id:
            raise AuthenticationError("Cannot determine app ID")
        return self.get_dispatcher(app_id).dispatch(slack_request)

    def close(self) -> None:
        """Close the outbound connections of every app built so far."""
        for dispatcher in self._dispatchers.values():
            dispatcher.close()

    def build_http_app(self, path: str = "/") -> FastAPI:
        if not self._factories:
            raise ConfigurationError("No apps registered with the multi-tenant server")

        @asynccontextmanager
        async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
            yield
            logger.info("Closing Slack API connections")
            self.close()

        fastapi_app = FastAPI(
            title="slack-dispatch", docs_url=None, redoc_url=None, lifespan=lifespan
        )
        fastapi_app.state.slack_server = self
        register_exception_handlers(fastapi_app)
        _add_dispatch_route(fastapi_app, path, self.dispatch)
        return fastapi_app
