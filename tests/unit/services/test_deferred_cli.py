"""
Tests for the deferred-context entry point.
"""

import pytest
from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.deferred_cli import load_app, main, run_deferred
from slack_dispatch.core.services.application import App
from slack_dispatch.core.services.deferrers import serialize_context

from tests.doubles import RecordingListener


@pytest.fixture
def work() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def app(work) -> App:
    return App().command_async("report", work)


@pytest.fixture
def serialized(command_context) -> str:
    context = command_context("/report", "weekly")
    context.ack()
    context.defer()
    return serialize_context(context)


class TestRunDeferred:
    def test_resumes_context(self, app, work, serialized) -> None:
        assert run_deferred(app, serialized) == 0

        [context] = work.contexts
        assert context.is_acknowledged
        assert context.payload.get("text") == "weekly"

    def test_invalid_context(self, app, work) -> None:
        assert run_deferred(app, "garbage") == 1
        assert work.contexts == []

    def test_listener_failure(self, serialized) -> None:
        def fail(context) -> None:
            raise RuntimeError("boom")

        assert run_deferred(App().command_async("report", fail), serialized) == 1


class TestMain:
    def test_main_with_app(self, app, work, serialized) -> None:
        assert main(["--app", "unused:app", serialized], app=app) == 0
        assert len(work.contexts) == 1

    def test_main_with_unloadable_app(self, serialized) -> None:
        assert main(["--app", "no_such_module_xyz:app", serialized]) == 1

    def test_main_loads_app_by_path(self, serialized) -> None:
        # The App class is a zero-argument factory; no route matches, which is not an error.
        assert main(["--app", "slack_dispatch.core.services.application:App", serialized]) == 0

    def test_app_is_required(self, serialized) -> None:
        with pytest.raises(SystemExit):
            main([serialized])


class TestLoadApp:
    @pytest.mark.parametrize("path", ["no_colon", ":app", "module:"])
    def test_malformed_path(self, path) -> None:
        with pytest.raises(ConfigurationError, match="module:attribute"):
            load_app(path)

    def test_missing_attribute(self) -> None:
        with pytest.raises(ConfigurationError, match="Could not load app"):
            load_app("slack_dispatch.core.services.application:Nope")

    def test_not_an_application(self) -> None:
        with pytest.raises(ConfigurationError, match="does not name an application"):
            load_app("os:sep")

    def test_instance(self) -> None:
        import slack_dispatch.core.services.application as module

        assert isinstance(load_app(f"{module.__name__}:App"), App)
