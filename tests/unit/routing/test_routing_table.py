"""
Tests for the routing table and its fallback order.
"""

import pytest
from slack_dispatch.core.domain.payload import PayloadType
from slack_dispatch.core.listeners.basic import Undefined
from slack_dispatch.core.services.routing_table import (
    DEFAULT_KEY,
    RouteKey,
    RoutingTable,
    normalize_identifier,
)

from tests.doubles import RecordingListener


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [("/deploy", "deploy"), (" deploy ", "deploy"), ("/", DEFAULT_KEY), ("", DEFAULT_KEY), (None, DEFAULT_KEY)],
)
def test_normalize_identifier(identifier, expected) -> None:
    assert normalize_identifier(identifier) == expected


class TestRoutingTable:
    def test_exact_match(self) -> None:
        table = RoutingTable()
        listener = RecordingListener()
        table.register(PayloadType.COMMAND, "/deploy", listener)

        resolution = table.resolve(PayloadType.COMMAND, "deploy")

        assert resolution.listener is listener
        assert resolution.matched
        assert resolution.key == RouteKey("command", "deploy")

    def test_resolution_is_stable(self) -> None:
        table = RoutingTable()
        table.register("command", "deploy", RecordingListener())

        assert table.resolve("command", "deploy") == table.resolve("command", "/deploy")

    def test_last_write_wins(self) -> None:
        table = RoutingTable()
        first, second = RecordingListener(), RecordingListener()
        table.register(PayloadType.COMMAND, "deploy", first)
        table.register(PayloadType.COMMAND, "/deploy", second)

        assert table.resolve(PayloadType.COMMAND, "deploy").listener is second
        assert len(table) == 1

    def test_fallback_order(self) -> None:
        table = RoutingTable()
        exact, type_default, global_default = (
            RecordingListener(name="exact"),
            RecordingListener(name="type"),
            RecordingListener(name="global"),
        )
        table.register(PayloadType.COMMAND, "deploy", exact)
        table.register(PayloadType.COMMAND, DEFAULT_KEY, type_default)
        table.register(DEFAULT_KEY, DEFAULT_KEY, global_default)

        assert table.resolve(PayloadType.COMMAND, "deploy").listener is exact
        assert table.resolve(PayloadType.COMMAND, "other").listener is type_default
        assert table.resolve(PayloadType.SHORTCUT, "open").listener is global_default
        assert table.resolve(PayloadType.SHORTCUT, None).key == RouteKey(DEFAULT_KEY, DEFAULT_KEY)

    def test_type_default_without_global(self) -> None:
        table = RoutingTable()
        table.register(PayloadType.EVENT_CALLBACK, None, RecordingListener())

        assert table.resolve(PayloadType.EVENT_CALLBACK, "app_mention").matched
        assert not table.resolve(PayloadType.COMMAND, "deploy").matched

    def test_miss_is_undefined(self) -> None:
        resolution = RoutingTable().resolve(PayloadType.COMMAND, "deploy")

        assert not resolution.matched
        assert resolution.key is None
        assert isinstance(resolution.listener, Undefined)

    def test_keys_and_contains(self) -> None:
        table = RoutingTable()
        table.register("command", "a", RecordingListener())

        assert table.keys() == [RouteKey("command", "a")]
        assert RouteKey("command", "a") in table
