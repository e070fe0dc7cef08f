from __future__ import annotations

import json
import logging
from typing import Any, Mapping, TypeVar

import requests

from .models import APIEnvelope, BotInfo, Decodable, DecodeError, Message, SendMessageRequest

TELEGRAM_API_BASE_URL = "https://api.telegram.org"

METHOD_GET_ME = "getMe"
METHOD_SEND_MESSAGE = "sendMessage"

_CONTENT_TYPE = "application/json; charset=utf-8"
_LOGGER = logging.getLogger("echobot.telegram")

T = TypeVar("T", bound=Decodable)


class TelegramError(RuntimeError):
    pass


class TelegramTransportError(TelegramError):
    pass


class TelegramAPIError(TelegramError):
    def __init__(self, *, error_code: int, description: str) -> None:
        super().__init__(f"got: {description} [{error_code}]")
        self.error_code = error_code
        self.description = description


def _encode_params(params: Any) -> bytes:
    if params is None:
        return b""
    if hasattr(params, "to_dict"):
        params = params.to_dict()
    elif not isinstance(params, Mapping):
        raise TypeError(f"Unsupported request payload: {type(params).__name__}")
    return json.dumps(dict(params), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class TelegramClient:
    def __init__(
        self,
        bot_token: str,
        base_url: str = TELEGRAM_API_BASE_URL,
        timeout_seconds: float | None = None,
        session: Any = None,
    ) -> None:
        self._bot_token = bot_token
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        # Either a requests.Session or the requests module itself.
        self._http = session if session is not None else requests

    def api_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._bot_token}/{method}"

    def call(self, method: str, params: Any = None, result_type: type[T] | None = None) -> T | None:
        """Perform one Bot API call.

        The response envelope is always decoded; its result is decoded into
        ``result_type`` only when the call succeeded and a type was requested.
        Nothing is retried.
        """
        body = _encode_params(params)
        _LOGGER.debug("Calling Telegram method %s", method)

        try:
            response = self._http.post(
                self.api_url(method),
                data=body,
                headers={"Content-Type": _CONTENT_TYPE},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TelegramTransportError(str(exc)) from exc

        # requests.JSONDecodeError is a ValueError as well as a RequestException.
        try:
            payload = response.json()
        except ValueError as exc:
            raise TelegramTransportError(f"Malformed response from {method}: {exc}") from exc

        try:
            envelope = APIEnvelope.from_dict(payload)
        except DecodeError as exc:
            raise TelegramTransportError(f"Malformed response from {method}: {exc}") from exc

        if not envelope.ok:
            raise TelegramAPIError(error_code=envelope.error_code, description=envelope.description)

        if result_type is None:
            return None
        if envelope.result is None:
            return result_type()
        return result_type.from_dict(envelope.result)

    def get_me(self) -> BotInfo:
        return self.call(METHOD_GET_ME, result_type=BotInfo)

    def send_message(self, request: SendMessageRequest) -> Message:
        return self.call(METHOD_SEND_MESSAGE, request, result_type=Message)
