"""
Deferrers continue work on a context after it has been acknowledged.

``PreAckDeferrer`` re-runs the listener in-process before the response is
returned. ``SubprocessDeferrer`` serializes the context and resumes it in a
detached background process through the ``slack-dispatch-deferred`` entry
point, so the response is not held up.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from slack_dispatch.core.common.exceptions import ConfigurationError, ContextError
from slack_dispatch.core.domain.context import Context
from slack_dispatch.core.interfaces.deferrer_interface import IDeferrer
from slack_dispatch.core.interfaces.listener_interface import IListener

logger = logging.getLogger(__name__)

DEFERRED_CLI_MODULE = "slack_dispatch.core.deferred_cli"


def serialize_context(context: Context) -> str:
    """Encode a context as base64 of its JSON flat map."""
    data = json.dumps(context.to_flat_map(), separators=(",", ":"))
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def deserialize_context(serialized: str) -> Context:
    """Decode a context produced by :func:`serialize_context`.

    Raises:
        ContextError: If the data is missing or malformed, or if the context
            was not both acknowledged and deferred.
    """
    if not serialized:
        raise ContextError("No context provided")

    try:
        data = json.loads(base64.b64decode(serialized, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ContextError("Invalid context data") from e

    if not isinstance(data, dict) or not data:
        raise ContextError("Invalid context data")

    context = Context.from_flat_map(data)
    if not (context.is_acknowledged and context.is_deferred):
        raise ContextError(
            "Context was not deferred", details=context.payload.summary()
        )
    return context


class PreAckDeferrer(IDeferrer):
    """Runs the listener again, synchronously, with the context already acked."""

    def __init__(self, listener: IListener) -> None:
        self.listener = listener

    def defer(self, context: Context) -> None:
        context.logger.debug(
            "Handling deferred processing before the ack response (synchronously)"
        )
        self.listener.handle(context)


class SubprocessDeferrer(IDeferrer):
    """Spawns a background process that resumes the serialized context.

    Args:
        command: Program and leading arguments; the serialized context is
            appended as the final argument.
        cwd: Working directory for the process.
        serializer: Replaces :func:`serialize_context`.
        popen: Replaces :class:`subprocess.Popen` (for tests).
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: str | Path | None = None,
        serializer: Callable[[Context], str] | None = None,
        popen: Callable[..., object] = subprocess.Popen,
    ) -> None:
        if not command:
            raise ConfigurationError("A command is required for the deferrer")
        if cwd is not None and not Path(cwd).is_dir():
            raise ConfigurationError(
                "Invalid dir for deferrer script", details={"cwd": str(cwd)}
            )
        self.command = list(command)
        self.cwd = cwd
        self.serializer = serializer or serialize_context
        self._popen = popen

    @classmethod
    def for_app(cls, app_path: str, **kwargs) -> SubprocessDeferrer:
        """Resume with this package's deferred CLI; *app_path* is ``module:attribute``."""
        return cls([sys.executable, "-m", DEFERRED_CLI_MODULE, "--app", app_path], **kwargs)

    def defer(self, context: Context) -> None:
        context.logger.debug("Deferring processing to a background process")
        argv = [*self.command, self.serializer(context)]
        self._popen(
            argv,
            cwd=self.cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            env=dict(os.environ),
        )
