"""
Tests for serving several apps from one endpoint.
"""

import pytest
from fastapi.testclient import TestClient
from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.listeners.basic import Ack
from slack_dispatch.core.services.application import App
from slack_dispatch.core.transport.fastapi import MultiTenantHttpServer
from slack_dispatch.core.transport.fastapi.request_adapters import SlackRequest

FORM_HEADERS = {"content-type": "application/x-www-form-urlencoded"}


@pytest.fixture
def server(signing_key) -> MultiTenantHttpServer:
    return (
        MultiTenantHttpServer()
        .register_app("A1", lambda: App().with_signing_key(signing_key).command("hi", Ack("one")))
        .register_app("A2", App().with_signing_key(signing_key).command("hi", Ack("two")))
    )


@pytest.fixture
def client(server) -> TestClient:
    return TestClient(server.build_http_app())


def test_app_selected_by_query_param(client, command_body, signed_headers) -> None:
    body = command_body("/hi")

    response = client.post("/?_app=A1", content=body, headers=signed_headers(body))

    assert response.json() == {"text": "one"}


def test_app_selected_by_payload(client, command_body, signed_headers) -> None:
    body = command_body("/hi", api_app_id="A2")

    response = client.post("/", content=body, headers=signed_headers(body))

    assert response.json() == {"text": "two"}


def test_unknown_app(client, command_body, signed_headers) -> None:
    body = command_body("/hi", api_app_id="A9")

    response = client.post("/", content=body, headers=signed_headers(body))

    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized"}


def test_app_id_cannot_be_determined(client, command_body, signed_headers) -> None:
    body = command_body("/hi")

    response = client.post("/", content=body, headers=signed_headers(body))

    assert response.status_code == 401


def test_body_that_is_not_utf8_is_unauthorized(client) -> None:
    response = client.post("/", content=b"\xff\xfe", headers=FORM_HEADERS)

    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized"}


def test_malformed_json_is_unauthorized(client) -> None:
    response = client.post(
        "/", content=b'{"api_app_id": ', headers={"content-type": "application/json"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized"}


def test_id_mismatch(signing_key, command_body, signed_headers) -> None:
    server = MultiTenantHttpServer().register_app(
        "A1", lambda: App().with_id("A7").with_signing_key(signing_key)
    )
    client = TestClient(server.build_http_app())
    body = command_body("/hi", api_app_id="A1")

    response = client.post("/", content=body, headers=signed_headers(body))

    assert response.status_code == 500


def test_factory_app_adopts_registered_id(server) -> None:
    dispatcher = server.get_dispatcher("A1")

    assert dispatcher.app.config.id == "A1"
    assert server.get_dispatcher("A1") is dispatcher


def test_custom_detector(server, command_body, signed_headers) -> None:
    server.with_app_id_detector(lambda request: request.headers.get("x-app"))
    body = command_body("/hi")
    request = SlackRequest(
        method="POST",
        body=body.encode(),
        headers={**{k.lower(): v for k, v in signed_headers(body).items()}, "x-app": "A2"},
    )

    assert server.dispatch(request) == '{"text": "two"}'


def test_no_apps_registered() -> None:
    with pytest.raises(ConfigurationError):
        MultiTenantHttpServer().build_http_app()


def test_app_ids(server) -> None:
    assert server.app_ids == ["A1", "A2"]


def test_shutdown_closes_every_built_app(server) -> None:
    http_app = server.build_http_app()
    pools = [server.get_dispatcher(app_id).app.config.get_http_client() for app_id in ("A1", "A2")]

    with TestClient(http_app):
        assert not any(pool.is_closed for pool in pools)

    assert all(pool.is_closed for pool in pools)


def test_reregistering_closes_the_replaced_app(server, signing_key) -> None:
    pool = server.get_dispatcher("A1").app.config.get_http_client()

    server.register_app("A1", App().with_signing_key(signing_key))

    assert pool.is_closed
