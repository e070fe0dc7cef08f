import pytest
import requests

from echobot.telegram.client import (
    TelegramAPIError,
    TelegramClient,
    TelegramTransportError,
)
from echobot.telegram.models import BotInfo, DecodeError, Message, SendMessageRequest


class FakeResponse:
    def __init__(self, payload=None, error: Exception | None = None) -> None:
        self._payload = payload
        self._error = error

    def json(self):
        if self._error is not None:
            raise self._error
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _client(session: FakeSession, **kwargs) -> TelegramClient:
    return TelegramClient("123:abc", session=session, **kwargs)


def test_api_url_joins_base_token_and_method() -> None:
    client = TelegramClient("123:abc", base_url="http://localhost:8081/")
    assert client.api_url("getMe") == "http://localhost:8081/bot123:abc/getMe"


def test_call_posts_compact_json_with_charset_header() -> None:
    session = FakeSession(FakeResponse({"ok": True}))
    request = SendMessageRequest(chat_id=42, text="héllo", reply_to_message_id=5, parse_mode="Markdown")

    assert _client(session).call("sendMessage", request) is None

    url, kwargs = session.requests[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert kwargs["headers"] == {"Content-Type": "application/json; charset=utf-8"}
    assert kwargs["data"] == (
        '{"chat_id":42,"text":"héllo","reply_to_message_id":5,"parse_mode":"Markdown"}'.encode("utf-8")
    )
    assert kwargs["timeout"] is None


def test_call_without_params_sends_empty_body() -> None:
    session = FakeSession(FakeResponse({"ok": True, "result": True}))
    _client(session).call("deleteWebhook")
    assert session.requests[0][1]["data"] == b""


def test_call_accepts_plain_mapping() -> None:
    session = FakeSession(FakeResponse({"ok": True}))
    _client(session).call("sendChatAction", {"chat_id": 1, "action": "typing"})
    assert session.requests[0][1]["data"] == b'{"chat_id":1,"action":"typing"}'


def test_call_passes_configured_timeout() -> None:
    session = FakeSession(FakeResponse({"ok": True}))
    _client(session, timeout_seconds=5.0).call("getMe")
    assert session.requests[0][1]["timeout"] == 5.0


def test_call_reports_api_failure() -> None:
    session = FakeSession(FakeResponse({"ok": False, "error_code": 400, "description": "Bad Request: chat not found"}))

    with pytest.raises(TelegramAPIError) as excinfo:
        _client(session).call("sendMessage", {"chat_id": 1}, result_type=Message)

    assert str(excinfo.value) == "got: Bad Request: chat not found [400]"
    assert excinfo.value.error_code == 400
    assert excinfo.value.description == "Bad Request: chat not found"


def test_call_failure_without_details() -> None:
    session = FakeSession(FakeResponse({}))
    with pytest.raises(TelegramAPIError) as excinfo:
        _client(session).call("getMe")
    assert str(excinfo.value) == "got:  [0]"


def test_call_failure_skips_result_decoding() -> None:
    session = FakeSession(FakeResponse({"ok": False, "error_code": 401, "description": "Unauthorized", "result": 7}))
    with pytest.raises(TelegramAPIError):
        _client(session).call("getMe", result_type=BotInfo)


def test_call_ignores_result_when_no_type_requested() -> None:
    session = FakeSession(FakeResponse({"ok": True, "result": ["anything", 1, None]}))
    assert _client(session).call("sendMessage", {"chat_id": 1}) is None


def test_call_decodes_typed_result() -> None:
    session = FakeSession(
        FakeResponse(
            {
                "ok": True,
                "result": {"id": 99, "is_bot": True, "first_name": "Echo", "username": "echo_bot"},
            }
        )
    )
    me = _client(session).call("getMe", result_type=BotInfo)
    assert me == BotInfo(id=99, is_bot=True, first_name="Echo", username="echo_bot")


def test_call_result_shape_mismatch_raises_decode_error() -> None:
    session = FakeSession(FakeResponse({"ok": True, "result": True}))
    with pytest.raises(DecodeError):
        _client(session).call("sendMessage", {"chat_id": 1}, result_type=Message)


def test_transport_failure_is_not_retried() -> None:
    session = FakeSession(error=requests.ConnectionError("connection refused"))

    with pytest.raises(TelegramTransportError) as excinfo:
        _client(session).call("sendMessage", {"chat_id": 1})

    assert "connection refused" in str(excinfo.value)
    assert len(session.requests) == 1


def _raw_response(status_code: int, content: bytes) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = content
    response.encoding = "utf-8"
    return response


def test_malformed_response_body() -> None:
    session = FakeSession(_raw_response(502, b"<html>502 Bad Gateway</html>"))
    with pytest.raises(TelegramTransportError) as excinfo:
        _client(session).call("sendMessage", {"chat_id": 1})
    assert str(excinfo.value).startswith("Malformed response from sendMessage: ")


def test_error_envelope_with_http_error_status() -> None:
    session = FakeSession(_raw_response(400, b'{"ok":false,"error_code":400,"description":"Bad Request: chat not found"}'))
    with pytest.raises(TelegramAPIError) as excinfo:
        _client(session).call("sendMessage", {"chat_id": 1})
    assert str(excinfo.value) == "got: Bad Request: chat not found [400]"


def test_null_result_decodes_to_zero_value() -> None:
    session = FakeSession(FakeResponse({"ok": True, "result": None}))
    assert _client(session).call("sendMessage", {"chat_id": 1}, result_type=Message) == Message()


def test_response_that_is_not_an_envelope() -> None:
    session = FakeSession(FakeResponse(["ok"]))
    with pytest.raises(TelegramTransportError):
        _client(session).call("getMe")


def test_get_me() -> None:
    session = FakeSession(FakeResponse({"ok": True, "result": {"id": 1, "is_bot": True, "first_name": "Echo"}}))
    me = _client(session).get_me()
    assert me.id == 1
    assert me.username == ""
    assert session.requests[0][0].endswith("/getMe")


def test_send_message_returns_sent_message() -> None:
    session = FakeSession(
        FakeResponse({"ok": True, "result": {"message_id": 8, "chat": {"id": 42, "type": "private"}, "date": 5}})
    )
    sent = _client(session).send_message(
        SendMessageRequest(chat_id=42, text="*You just said:*hi", reply_to_message_id=5, parse_mode="Markdown")
    )
    assert sent.message_id == 8
    assert sent.chat.type == "private"
    assert int(sent.date) == 5
