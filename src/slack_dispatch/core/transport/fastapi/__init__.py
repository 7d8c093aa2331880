"""
FastAPI transport adapters.

This module contains adapters for converting between Slack HTTP requests
and the dispatch engine.
"""

from __future__ import annotations

from slack_dispatch.core.transport.fastapi.http_app import (
    HttpDispatcher,
    MultiTenantHttpServer,
    build_http_app,
)

__all__ = ["HttpDispatcher", "MultiTenantHttpServer", "build_http_app"]
