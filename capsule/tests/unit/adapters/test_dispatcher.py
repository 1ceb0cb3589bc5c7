from __future__ import annotations

import json
import logging

import pytest
import requests
import requests_mock

from capsule.adapters import xml_codec
from capsule.adapters.api_errors import ApiDecodeError, ApiTimeoutError, ApiTransportError
from capsule.adapters.dispatcher import RequestDispatcher
from capsule.adapters.http_client import CapsuleSession
from capsule.domain.commands import Command, Failure, JsonPayload, Success, Verb, XmlPayload
from capsule.domain.settings import ClientConfig

BASE = "https://api2.capsulecrm.com/api/v2/"
TOKEN = "secret-token"


@pytest.fixture
def dispatcher() -> RequestDispatcher:
    return RequestDispatcher(ClientConfig(token=TOKEN), CapsuleSession())


@pytest.fixture
def mocker():
    with requests_mock.Mocker() as m:
        yield m


def test_endpoint_uri_uses_configured_host() -> None:
    disp = RequestDispatcher(ClientConfig(token=TOKEN, host="capsule.test/"), CapsuleSession())

    assert disp.endpoint_uri == "https://capsule.test/api/v2/"


def test_get_sends_payload_as_query_string_without_body(dispatcher, mocker) -> None:
    mocker.get(BASE + "parties/search", json={"parties": [{"id": 1}]})

    outcome = dispatcher.talk("parties/search", Verb.GET, JsonPayload({"q": "Acme"}))

    assert outcome == Success({"parties": [{"id": 1}]}, status_code=200)
    sent = mocker.last_request
    assert sent.method == "GET"
    assert sent.url == BASE + "parties/search?q=Acme"
    assert sent.body is None


def test_every_request_carries_host_and_bearer_token(dispatcher, mocker) -> None:
    mocker.get(BASE + "party", json={})

    dispatcher.talk("party")

    headers = mocker.last_request.headers
    assert headers["Host"] == "api.capsulecrm.com"
    assert headers["Authorization"] == f"Bearer {TOKEN}"
    assert headers["User-Agent"] == "python-capsule"


def test_post_mapping_is_json_encoded(dispatcher, mocker) -> None:
    mocker.post(BASE + "person", json={"person": {"id": 3}})
    payload = {"person": {"firstName": "Simon", "tags": [{"name": "vip"}], "age": 41}}

    outcome = dispatcher.talk("person", Verb.POST, JsonPayload(payload))

    sent = mocker.last_request
    assert json.loads(sent.body) == payload
    assert sent.headers["Accept"] == "application/json"
    assert sent.headers["Content-Type"] == "application/json"
    assert outcome.value == {"person": {"id": 3}}


def test_plain_mapping_payload_is_treated_as_json(dispatcher, mocker) -> None:
    mocker.post(BASE + "organisation", status_code=200, text="")

    dispatcher.send(Command("organisation", Verb.POST, {"organisation": {"name": "Acme"}}))

    assert json.loads(mocker.last_request.body) == {"organisation": {"name": "Acme"}}


def test_post_structured_payload_is_xml_encoded_under_last_segment(dispatcher, mocker) -> None:
    mocker.post(BASE + "party/7/history", text="<history><id>9</id></history>")
    entry = {"entryDate": "2024-01-01", "note": "Called"}

    outcome = dispatcher.talk("party/7/history", Verb.POST, XmlPayload(entry))

    sent = mocker.last_request
    assert sent.headers["Accept"] == "text/xml"
    assert sent.headers["Content-Type"] == "text/xml"
    assert sent.body.startswith(b"<?xml")
    assert b"<history>" in sent.body
    assert xml_codec.loads(sent.body) == entry
    assert outcome.value == {"id": "9"}


def test_xml_payload_root_name_override(dispatcher, mocker) -> None:
    mocker.post(BASE + "party/7/tags", status_code=200, text="")

    dispatcher.talk("party/7/tags", Verb.POST, XmlPayload({"tag": {"name": "vip"}}, root_name="tags"))

    assert b"<tags><tag><name>vip</name></tag></tags>" in mocker.last_request.body


def test_post_without_payload_sends_empty_body_with_json_headers(dispatcher, mocker) -> None:
    mocker.post(BASE + "party/5/tag/vip", status_code=201, headers={"Location": BASE + "party/5/tag/vip"})

    dispatcher.talk("party/5/tag/vip", Verb.POST)

    sent = mocker.last_request
    assert not sent.body
    assert sent.headers["Accept"] == "application/json"
    assert sent.headers["Content-Type"] == "application/json"


def test_put_is_json_without_accept_header(dispatcher, mocker) -> None:
    mocker.put(BASE + "parties/5", json={"party": {"id": 5}})

    outcome = dispatcher.talk("parties/5", "put", JsonPayload({"party": {"about": "x"}}))

    sent = mocker.last_request
    assert sent.method == "PUT"
    assert json.loads(sent.body) == {"party": {"about": "x"}}
    assert sent.headers["Content-Type"] == "application/json"
    assert "Accept" not in sent.headers
    assert outcome.value == {"party": {"id": 5}}


def test_created_returns_location_identifier_and_ignores_body(dispatcher, mocker) -> None:
    mocker.post(
        BASE + "person",
        status_code=201,
        headers={"Location": "https://host/api/v2/person/12345"},
        text="this is { not json",
    )

    outcome = dispatcher.talk("person", Verb.POST, JsonPayload({"person": {}}))

    assert outcome == Success("12345", status_code=201)


def test_created_without_location_falls_back_to_body(dispatcher, mocker) -> None:
    mocker.post(BASE + "person", status_code=201, json={"person": {"id": 8}})

    outcome = dispatcher.talk("person", Verb.POST, JsonPayload({"person": {}}))

    assert outcome.value == {"person": {"id": 8}}


def test_empty_success_body_is_true(dispatcher, mocker) -> None:
    mocker.post(BASE + "party/1/tag/a", status_code=204, text="")

    assert dispatcher.talk("party/1/tag/a", Verb.POST) == Success(True, status_code=204)


def test_empty_success_body_for_xml_request_is_true(dispatcher, mocker) -> None:
    mocker.post(BASE + "tags", status_code=200, text="")

    assert dispatcher.talk("tags", Verb.POST, XmlPayload({"tag": "a"})).value is True


def test_non_2xx_records_status_line_and_skips_decoding(dispatcher, mocker) -> None:
    mocker.get(BASE + "parties/404", status_code=404, reason="Not Found", text="<html>gone")

    outcome = dispatcher.talk("parties/404")

    assert isinstance(outcome, Failure)
    assert outcome.ok is False
    assert outcome.status_code == 404
    assert outcome.status_line == "404 Not Found"
    assert outcome.context == "GET parties/404"
    assert dispatcher.last_error == "404 Not Found"
    assert dispatcher.has_error


def test_last_error_is_overwritten_by_failures_and_kept_on_success(dispatcher, mocker) -> None:
    mocker.get(BASE + "a", status_code=404, reason="Not Found")
    mocker.get(BASE + "b", status_code=500, reason="Internal Server Error")
    mocker.get(BASE + "c", json={"ok": True})

    dispatcher.talk("a")
    dispatcher.talk("b")
    dispatcher.talk("c")

    assert dispatcher.last_error == "500 Internal Server Error"


def test_failure_keeps_error_payload_for_diagnostics(dispatcher, mocker) -> None:
    mocker.post(
        BASE + "person",
        status_code=422,
        reason="Unprocessable Entity",
        json={"message": "Validation failed", "errors": [{"message": "lastName is required"}]},
    )

    outcome = dispatcher.talk("person", Verb.POST, JsonPayload({"person": {}}))

    assert outcome.payload["message"] == "Validation failed"


def test_invalid_json_on_success_raises_decode_error(dispatcher, mocker) -> None:
    mocker.get(BASE + "party", status_code=200, text="{oops")

    with pytest.raises(ApiDecodeError) as excinfo:
        dispatcher.talk("party")
    assert excinfo.value.status == 200


def test_invalid_xml_on_success_raises_decode_error(dispatcher, mocker) -> None:
    mocker.post(BASE + "tags", status_code=200, text="<tags><tag></tags>")

    with pytest.raises(ApiDecodeError):
        dispatcher.talk("tags", Verb.POST, XmlPayload({"tag": "a"}))


def test_timeout_is_a_transport_error_not_an_http_failure(dispatcher, mocker) -> None:
    mocker.get(BASE + "party", exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ApiTimeoutError):
        dispatcher.talk("party")
    assert dispatcher.last_error is None


def test_connection_error_is_a_transport_error(dispatcher, mocker) -> None:
    mocker.get(BASE + "party", exc=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(ApiTransportError) as excinfo:
        dispatcher.talk("party")
    assert not isinstance(excinfo.value, ApiTimeoutError)
    assert excinfo.value.context == "GET " + BASE + "party"


def test_debug_mode_dumps_exchange_without_changing_result(mocker, caplog) -> None:
    disp = RequestDispatcher(ClientConfig(token=TOKEN, debug=True), CapsuleSession())
    mocker.post(BASE + "person", status_code=201, headers={"Location": BASE + "person/77"})

    with caplog.at_level(logging.DEBUG, logger="capsule"):
        outcome = disp.talk("person", Verb.POST, JsonPayload({"person": {"firstName": "Ann"}}))

    assert outcome.value == "77"
    assert "Uri: " + BASE + "person" in caplog.text
    assert "Request: POST" in caplog.text
    assert "Response: 201" in caplog.text
    assert TOKEN not in caplog.text


def test_quiet_mode_logs_nothing_at_debug(dispatcher, mocker, caplog) -> None:
    mocker.get(BASE + "party", json={})

    with caplog.at_level(logging.DEBUG, logger="capsule"):
        dispatcher.talk("party")

    assert "Uri:" not in caplog.text


def test_xml_payload_is_rejected_for_get_and_put() -> None:
    with pytest.raises(ValueError):
        Command("parties", Verb.GET, XmlPayload({"q": "x"}))
    with pytest.raises(ValueError):
        Command("parties/1", Verb.PUT, XmlPayload({"party": {}}))
