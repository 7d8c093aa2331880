"""
slack-dispatch: a dispatch engine for Slack webhook requests.

Typical use::

    from slack_dispatch import Ack, App
    from slack_dispatch.core.transport.fastapi import build_http_app

    app = App.from_env().command("hello", Ack("Hello!"))
    http_app = build_http_app(app)
"""

from slack_dispatch.core.domain.context import Context
from slack_dispatch.core.domain.payload import Payload, PayloadType
from slack_dispatch.core.listeners.basic import Ack, Callback, WorkInProgress
from slack_dispatch.core.listeners.two_phase import Async, Base, Dual
from slack_dispatch.core.services.application import App, AppHandler, Application, BaseApp
from slack_dispatch.core.services.route import Route
from slack_dispatch.core.services.router import Router

__version__ = "0.1.0"

__all__ = [
    "Ack",
    "App",
    "AppHandler",
    "Application",
    "Async",
    "Base",
    "BaseApp",
    "Callback",
    "Context",
    "Dual",
    "Payload",
    "PayloadType",
    "Route",
    "Router",
    "WorkInProgress",
]
