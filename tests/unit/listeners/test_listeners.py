"""
Tests for the core listener variants.
"""

import json

import pytest
from slack_dispatch.core.common.exceptions import ListenerResolutionError
from slack_dispatch.core.config.app_config import AppConfig
from slack_dispatch.core.interfaces.listener_interface import IListener
from slack_dispatch.core.listeners.basic import (
    Ack,
    Callback,
    ClassResolver,
    FieldSwitch,
    Undefined,
    WorkInProgress,
    coerce_listener,
)
from slack_dispatch.core.listeners.two_phase import Async, Base, Dual
from slack_dispatch.core.services.listener_registry import ListenerRegistry, qualified_name

from tests.doubles import RecordingListener, RecordingRespondClient


class Greeter(IListener):
    def handle(self, context) -> None:
        context.ack("Hi from Greeter")


class TestBasicListeners:
    def test_callback(self, make_context) -> None:
        seen = []
        context = make_context(command="/x")

        Callback(seen.append).handle(context)

        assert seen == [context]

    def test_ack_with_and_without_message(self, make_context) -> None:
        empty, with_message = make_context(command="/x"), make_context(command="/x")

        Ack().handle(empty)
        Ack("Working on it").handle(with_message)

        assert empty.is_acknowledged and empty.ack_body is None
        assert json.loads(with_message.ack_body) == {"text": "Working on it"}

    def test_undefined_does_not_ack(self, make_context) -> None:
        context = make_context(command="/x")

        Undefined().handle(context)

        assert not context.is_acknowledged

    def test_work_in_progress_acks_commands(self, make_context) -> None:
        context = make_context(command="/x")

        WorkInProgress().handle(context)

        assert json.loads(context.ack_body) == {"text": "Work in progress"}

    def test_work_in_progress_responds_post_ack(self, make_context) -> None:
        respond = RecordingRespondClient()
        context = make_context(
            type="block_actions", response_url="https://hooks.slack.com/a"
        ).with_respond_client(respond)

        WorkInProgress().handle(context)

        assert respond.messages == [("https://hooks.slack.com/a", {"text": "Work in progress"})]

    def test_field_switch(self, make_context) -> None:
        approve, reject, other = RecordingListener(), RecordingListener(), RecordingListener()
        switch = FieldSwitch("actions.0.value", {"approve": approve, "reject": reject, "*": other})

        switch.handle(make_context(type="block_actions", actions=[{"value": "approve"}]))
        switch.handle(make_context(type="block_actions", actions=[{"value": "maybe"}]))

        assert len(approve.contexts) == 1
        assert reject.contexts == []
        assert len(other.contexts) == 1

    def test_field_switch_without_default(self, make_context) -> None:
        context = make_context(type="block_actions", actions=[{"value": "maybe"}])

        FieldSwitch("actions.0.value", {"approve": Ack()}).handle(context)

        assert not context.is_acknowledged


class TestCoerceListener:
    def test_listener_instance(self) -> None:
        listener = Ack()

        assert coerce_listener(listener) is listener

    def test_callable(self) -> None:
        assert isinstance(coerce_listener(lambda ctx: None), Callback)

    def test_class_and_name(self) -> None:
        assert isinstance(coerce_listener(Greeter), ClassResolver)
        assert isinstance(coerce_listener("greeter"), ClassResolver)

    def test_invalid(self) -> None:
        with pytest.raises(ListenerResolutionError):
            coerce_listener(42)  # type: ignore[arg-type]


class TestClassResolver:
    def test_unregistered_class_is_instantiated(self, make_context) -> None:
        context = make_context(command="/x").with_app_config(AppConfig())

        ClassResolver(Greeter).handle(context)

        assert json.loads(context.ack_body) == {"text": "Hi from Greeter"}

    def test_resolves_eagerly_with_resolver(self) -> None:
        registry = ListenerRegistry().register("greeter", Greeter)

        resolver = ClassResolver("greeter", registry)

        assert isinstance(resolver.resolve(ListenerRegistry()), Greeter)

    def test_resolves_through_app_config(self, make_context) -> None:
        registry = ListenerRegistry().register("greeter", Greeter)
        config = AppConfig().with_listener_resolver(registry)
        context = make_context(command="/x").with_app_config(config)

        ClassResolver("greeter").handle(context)

        assert context.is_acknowledged

    def test_unknown_name(self, make_context) -> None:
        context = make_context(command="/x").with_app_config(AppConfig())

        with pytest.raises(ListenerResolutionError, match="Could not resolve class name"):
            ClassResolver("nobody").handle(context)

    def test_registered_class_by_qualified_name(self) -> None:
        registry = ListenerRegistry()
        registry.listener()(Greeter)

        assert isinstance(
            ClassResolver(Greeter, registry).resolve(registry), Greeter
        )
        assert registry.names() == [qualified_name(Greeter)]


class TestListenerRegistry:
    def test_duplicate_names(self) -> None:
        registry = ListenerRegistry().register("a", Ack())

        with pytest.raises(ValueError, match="already registered"):
            registry.register("a", Ack())

    def test_instances_are_cached(self) -> None:
        registry = ListenerRegistry().register("greeter", Greeter)

        assert registry.resolve("greeter") is registry.resolve("greeter")

    def test_factory_returning_non_listener(self) -> None:
        registry = ListenerRegistry().register("bad", lambda: object())  # type: ignore[arg-type]

        with pytest.raises(ListenerResolutionError, match="non-Listener"):
            registry.resolve("bad")

    def test_decorator_with_name_and_clear(self) -> None:
        registry = ListenerRegistry()

        @registry.listener("hello")
        class Hello(Greeter):
            pass

        assert registry.has("hello")
        registry.clear()
        assert not registry.has("hello")


class TestTwoPhaseListeners:
    def test_async_acks_and_defers_then_runs_post_ack(self, make_context) -> None:
        work = RecordingListener()
        listener = Async(work, Ack("Queued"))
        context = make_context(command="/x")

        listener.handle(context)

        assert context.is_acknowledged and context.is_deferred
        assert json.loads(context.ack_body) == {"text": "Queued"}
        assert work.contexts == []

        listener.handle(context)

        assert work.contexts == [context]

    def test_base_template(self, make_context) -> None:
        calls = []

        class Report(Base):
            def handle_ack(self, context) -> None:
                calls.append("ack")

            def handle_after_ack(self, context) -> None:
                calls.append("after")

        context = make_context(command="/report")
        listener = Report()

        listener.handle(context)
        assert context.is_acknowledged and context.is_deferred
        listener.handle(context)

        assert calls == ["ack", "after"]

    def test_dual_dispatches_by_phase(self, make_context) -> None:
        calls = []

        class Both(Dual):
            def handle_ack(self, context) -> None:
                calls.append("ack")
                context.ack()

            def handle_after_ack(self, context) -> None:
                calls.append("after")

        context = make_context(command="/x")
        Both().handle(context)
        Both().handle(context)

        assert calls == ["ack", "after"]
        assert not context.is_deferred
