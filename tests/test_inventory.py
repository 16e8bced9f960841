"""Tests for the inventory HTTP client."""

from types import SimpleNamespace

import pytest
import requests

from scripts.propagation.config import InventoryConfig
from scripts.propagation.errors import SinkRejected, SinkUnavailable
from scripts.propagation.inventory import InventoryClient
from scripts.propagation.models import Attribute


@pytest.fixture
def session():
    return requests.Session()


@pytest.fixture
def requests_made(session, monkeypatch):
    calls = []
    responses = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return responses.pop(0) if responses else SimpleNamespace(status_code=200, text="")

    monkeypatch.setattr(session, "request", fake_request)
    return SimpleNamespace(calls=calls, responses=responses)


@pytest.fixture
def client(session):
    return InventoryClient(
        InventoryConfig(addr="http://inventory:8080/", timeout_s=3.0, token="tok"),
        session=session,
    )


def test_upsert_attributes(client, session, requests_made):
    attrs = [Attribute("mac", "identity", '"m"')]

    client.upsert_attributes("dev-1", "acme", "deviceauth", 1234, attrs)

    method, url, kwargs = requests_made.calls[0]
    assert method == "PATCH"
    assert url == "http://inventory:8080/api/internal/v1/inventory/devices/dev-1"
    assert kwargs["params"] == {"tenant_id": "acme"}
    assert kwargs["headers"] == {"X-MEN-Source": "deviceauth", "X-MEN-Msg-Timestamp": "1234"}
    assert kwargs["json"] == [{"name": "mac", "scope": "identity", "value": '"m"'}]
    assert kwargs["timeout"] == 3.0
    assert session.headers["Authorization"] == "Bearer tok"


def test_upsert_without_tenant_sends_no_tenant_param(client, requests_made):
    client.upsert_attributes("dev-1", "", "deviceauth", 1, [])

    assert requests_made.calls[0][2]["params"] is None


def test_set_status(client, requests_made):
    client.set_status("acme", ["a", "b"], "accepted")

    method, url, kwargs = requests_made.calls[0]
    assert method == "POST"
    assert url.endswith("/tenants/acme/devices/status/accepted")
    assert kwargs["json"] == [{"id": "a"}, {"id": "b"}]


def test_set_identity_sends_name_value_pairs(client, requests_made):
    client.set_identity("acme", "dev/1", [
        Attribute("mac", "identity", '"m"'),
        Attribute("sn", "identity", '"9"'),
    ])

    method, url, kwargs = requests_made.calls[0]
    assert method == "PATCH"
    assert url.endswith("/tenants/acme/device/dev%2F1/attribute/scope/identity")
    assert kwargs["json"] == [
        {"name": "mac", "value": '"m"'},
        {"name": "sn", "value": '"9"'},
    ]


def test_server_error_is_unavailable(client, requests_made):
    requests_made.responses.append(SimpleNamespace(status_code=503, text="busy"))

    with pytest.raises(SinkUnavailable) as excinfo:
        client.set_status("acme", ["a"], "pending")
    assert excinfo.value.status_code == 503


def test_client_error_is_rejected(client, requests_made):
    requests_made.responses.append(SimpleNamespace(status_code=400, text="bad status"))

    with pytest.raises(SinkRejected) as excinfo:
        client.set_status("acme", ["a"], "bogus")
    assert excinfo.value.status_code == 400


def test_connection_error_is_unavailable(client, session, monkeypatch):
    def refuse(*_args, **_kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(session, "request", refuse)

    with pytest.raises(SinkUnavailable, match="connection refused"):
        client.set_identity("acme", "dev-1", [])


def test_no_token_no_auth_header():
    client = InventoryClient(InventoryConfig(addr="http://inventory"))

    assert "Authorization" not in client._session.headers
