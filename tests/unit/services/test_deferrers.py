"""
Tests for deferrers and context serialization.
"""

import base64
import subprocess
import sys

import pytest
from slack_dispatch.core.common.exceptions import ConfigurationError, ContextError
from slack_dispatch.core.services.deferrers import (
    DEFERRED_CLI_MODULE,
    PreAckDeferrer,
    SubprocessDeferrer,
    deserialize_context,
    serialize_context,
)

from tests.doubles import RecordingListener


@pytest.fixture
def deferred_context(command_context):
    context = command_context("/report", "weekly", api_app_id="A1").set("job", {"id": 7})
    context.ack()
    context.defer()
    return context


class FakePopen:
    def __init__(self) -> None:
        self.calls: list[tuple[list[str], dict]] = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        return object()


class TestSerialization:
    def test_round_trip(self, deferred_context) -> None:
        restored = deserialize_context(serialize_context(deferred_context))

        assert restored.payload == deferred_context.payload
        assert restored.is_acknowledged and restored.is_deferred
        assert restored.app_id == "A1"
        assert restored["job"] == {"id": 7}

    def test_empty(self) -> None:
        with pytest.raises(ContextError, match="No context provided"):
            deserialize_context("")

    @pytest.mark.parametrize(
        "data",
        [
            "not base64!",
            base64.b64encode(b"\xff\xfe").decode(),
            base64.b64encode(b"{not json").decode(),
            base64.b64encode(b"[1, 2]").decode(),
            base64.b64encode(b"{}").decode(),
        ],
    )
    def test_invalid_data(self, data) -> None:
        with pytest.raises(ContextError, match="Invalid context data"):
            deserialize_context(data)

    def test_must_be_acked_and_deferred(self, command_context) -> None:
        context = command_context("/report")
        context.ack()

        with pytest.raises(ContextError, match="Context was not deferred"):
            deserialize_context(serialize_context(context))


class TestPreAckDeferrer:
    def test_runs_listener_again(self, deferred_context) -> None:
        listener = RecordingListener()

        PreAckDeferrer(listener).defer(deferred_context)

        assert listener.contexts == [deferred_context]


class TestSubprocessDeferrer:
    def test_spawns_detached_process_with_context(self, deferred_context, tmp_path) -> None:
        popen = FakePopen()
        deferrer = SubprocessDeferrer(["worker", "--flag"], cwd=tmp_path, popen=popen)

        deferrer.defer(deferred_context)

        [(argv, kwargs)] = popen.calls
        assert argv[:2] == ["worker", "--flag"]
        assert deserialize_context(argv[2]).payload == deferred_context.payload
        assert kwargs["cwd"] == tmp_path
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] is subprocess.DEVNULL

    def test_custom_serializer(self, deferred_context) -> None:
        popen = FakePopen()

        SubprocessDeferrer(["worker"], serializer=lambda ctx: "ctx", popen=popen).defer(
            deferred_context
        )

        assert popen.calls[0][0] == ["worker", "ctx"]

    def test_for_app(self) -> None:
        deferrer = SubprocessDeferrer.for_app("myproject.slack:app")

        assert deferrer.command == [
            sys.executable,
            "-m",
            DEFERRED_CLI_MODULE,
            "--app",
            "myproject.slack:app",
        ]

    def test_invalid_cwd(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Invalid dir for deferrer script"):
            SubprocessDeferrer(["worker"], cwd=tmp_path / "missing")

    def test_command_required(self) -> None:
        with pytest.raises(ConfigurationError):
            SubprocessDeferrer([])
