"""
Entry point that resumes a deferred context in a separate process.

Usage::

    slack-dispatch-deferred --app myproject.slack:app <serialized-context>

The app path names a module attribute holding an ``Application`` or a
zero-argument factory returning one. The exit status is 0 on success and 1
if the context could not be loaded or handling failed.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from collections.abc import Sequence

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.common.logging_utils import configure_logging
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.services.deferrers import deserialize_context

logger = logging.getLogger(__name__)


def load_app(app_path: str) -> IListener:
    """Import ``module:attribute`` and return the application it names."""
    module_name, sep, attribute = app_path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(
            "App path must look like 'module:attribute'", details={"app": app_path}
        )

    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Could not load app: {e}", details={"app": app_path}
        ) from e

    if not isinstance(target, IListener) and callable(target):
        target = target()
    if not isinstance(target, IListener):
        raise ConfigurationError(
            "App path does not name an application", details={"app": app_path}
        )
    return target


def run_deferred(app: IListener, serialized: str) -> int:
    """Resume a serialized context with *app*; returns the process exit code."""
    try:
        logger.debug("Started processing of deferred context")
        context = deserialize_context(serialized)
        app.handle(context)
        logger.debug("Completed processing of deferred context")
    except Exception:
        logger.exception("Error occurred during processing of deferred context")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slack-dispatch-deferred",
        description="Resume a Slack request that was deferred after its ack.",
    )
    parser.add_argument("context", help="Serialized context (base64 JSON)")
    parser.add_argument(
        "--app",
        required=True,
        help="Application to run, as 'module:attribute'",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    return parser


def main(argv: Sequence[str] | None = None, app: IListener | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    if app is None:
        try:
            app = load_app(args.app)
        except ConfigurationError:
            logger.exception("Could not load application for deferred context")
            return 1

    return run_deferred(app, args.context)


if __name__ == "__main__":
    sys.exit(main())
