"""
Two-phase dispatch.

An :class:`Application` runs a listener against a context and makes sure the
request is always acknowledged. :class:`AppHandler` adds the second phase: if
the listener deferred the context, the configured deferrer continues the work
after the ack has been produced.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from slack_dispatch.core.common.exceptions import DispatchError
from slack_dispatch.core.config.app_config import AppConfig, AppCredentials
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.listeners.basic import Ack, ListenerLike
from slack_dispatch.core.services.router import Router

if TYPE_CHECKING:
    from slack_dispatch.core.domain.context import Context
    from slack_dispatch.core.interfaces.deferrer_interface import IDeferrer
    from slack_dispatch.core.interfaces.listener_resolver_interface import (
        IListenerResolver,
    )
    from slack_dispatch.core.interfaces.token_store_interface import ITokenStore

logger = logging.getLogger(__name__)


class Application(IListener):
    def __init__(self, listener: IListener | None = None, config: AppConfig | None = None) -> None:
        self.listener = listener or Ack()
        self.config = config or AppConfig()

    def handle(self, context: Context) -> None:
        """Run the listener, acking with an empty body if it did not ack.

        Raises:
            DispatchError: If the listener raises. Details carry the payload
                summary and the phase (``pre_ack`` or ``post_ack``).
        """
        phase = "post_ack" if context.is_acknowledged else "pre_ack"
        try:
            context.with_app_config(self.config)
            self.listener.handle(context)
        except DispatchError as e:
            raise e.add_context(phase=phase, **context.payload.summary())
        except Exception as e:
            context.logger.exception("Listener failed", phase=phase)
            raise DispatchError(
                f"Error while handling {context.payload.type.value} payload",
                details={
                    "phase": phase,
                    "app_id": context.app_id,
                    "error_type": type(e).__name__,
                    **context.payload.summary(),
                },
            ) from e

        if not context.is_acknowledged:
            context.ack()


class AppHandler:
    """Runs an application for one request and hands deferred contexts on."""

    def __init__(self, app: Application, deferrer: IDeferrer | None = None) -> None:
        from slack_dispatch.core.services.deferrers import PreAckDeferrer

        self.app = app
        self.deferrer = deferrer or PreAckDeferrer(app)

    def handle(self, context: Context) -> str | None:
        """Dispatch *context* and return the ack body (None for an empty ack).

        Errors before the ack propagate. Errors raised by the deferrer are
        logged and do not change the ack.
        """
        self.app.handle(context)

        if not context.is_acknowledged:
            raise DispatchError(
                "No ack provided by the app", details=context.payload.summary()
            )

        if context.is_deferred:
            try:
                self.deferrer.defer(context)
            except Exception:
                context.logger.exception("Error occurred during processing of deferred context")

        return context.ack_body


_ROUTER_METHODS = (
    "with_command_ack",
    "with_url_verification",
    "command",
    "command_async",
    "command_group",
    "command_group_async",
    "event",
    "event_async",
    "global_shortcut",
    "global_shortcut_async",
    "message_shortcut",
    "message_shortcut_async",
    "block_action",
    "block_action_async",
    "block_suggestion",
    "view_submission",
    "view_submission_async",
    "view_closed",
    "view_closed_async",
    "workflow_step_edit",
    "workflow_step_edit_async",
    "on",
    "on_async",
    "any",
    "any_async",
    "tap",
    "use",
)


class App(Application):
    """An application whose listener is a :class:`Router`.

    Router registration methods are available directly on the app and return
    the app, so configuration reads as one fluent chain::

        app = App().with_signing_key(key).command("hello", Ack("Hi!"))
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        config = config or AppConfig()
        self.router = Router(resolver=config.get_listener_resolver())
        super().__init__(self.router, config)

    @classmethod
    def from_env(cls, prefix: str | None = None, *, environ: Mapping[str, str] | None = None) -> App:
        return cls(AppConfig.from_env(prefix, environ=environ))

    # Configuration proxies

    def with_id(self, app_id: str) -> App:
        self.config.with_id(app_id)
        return self

    def with_alias(self, alias: str) -> App:
        self.config.with_alias(alias)
        return self

    def with_signing_key(self, signing_key: str) -> App:
        self.config.with_signing_key(signing_key)
        return self

    def with_bot_token(self, bot_token: str) -> App:
        self.config.with_bot_token(bot_token)
        return self

    def with_app_credentials(self, credentials: AppCredentials) -> App:
        self.config.with_app_credentials(credentials)
        return self

    def with_token_store(self, token_store: ITokenStore) -> App:
        self.config.with_token_store(token_store)
        return self

    def with_listener_resolver(self, resolver: IListenerResolver) -> App:
        self.config.with_listener_resolver(resolver)
        self.router.with_resolver(resolver)
        return self

    def register(self, payload_type: Any, identifier: str, listener: ListenerLike) -> App:
        self.router.register(payload_type, identifier, listener)
        return self


def _router_proxy(name: str) -> Callable[..., App]:
    def proxy(self: App, *args: Any, **kwargs: Any) -> App:
        getattr(self.router, name)(*args, **kwargs)
        return self

    proxy.__name__ = name
    proxy.__qualname__ = f"App.{name}"
    proxy.__doc__ = getattr(Router, name).__doc__
    return proxy


for _name in _ROUTER_METHODS:
    setattr(App, _name, _router_proxy(_name))


class BaseApp(App):
    """Subclassable app: override :meth:`prepare_router` (and optionally
    :meth:`prepare_config`) instead of configuring an instance."""

    def __init__(self, config: AppConfig | None = None) -> None:
        super().__init__(config)
        self.prepare_config(self.config)
        self.prepare_router(self.router)

    def prepare_router(self, router: Router) -> None:
        raise NotImplementedError

    def prepare_config(self, config: AppConfig) -> None:
        pass
