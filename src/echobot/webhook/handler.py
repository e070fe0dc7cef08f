from __future__ import annotations

import logging
from typing import Any, Protocol

from flask import Flask, Response, request

from echobot.config import Settings
from echobot.telegram.client import METHOD_SEND_MESSAGE, TelegramClient, TelegramError
from echobot.telegram.models import DecodeError, SendMessageRequest, Update

REPLY_PREFIX = "*You just said:*"
REPLY_PARSE_MODE = "Markdown"

_LOGGER = logging.getLogger("echobot.webhook")


class APICaller(Protocol):
    def call(self, method: str, params: Any = None, result_type: Any = None) -> Any:
        ...


def build_reply(update: Update) -> SendMessageRequest:
    message = update.message
    return SendMessageRequest(
        chat_id=message.chat.id,
        text=REPLY_PREFIX + message.text,
        reply_to_message_id=message.message_id,
        parse_mode=REPLY_PARSE_MODE,
    )


def handle_update(body: bytes | str, client: APICaller) -> None:
    """Echo the message carried by a raw webhook body back to its chat.

    Raises DecodeError for a body that is not an Update, before any call is
    made, and lets client errors propagate.
    """
    update = Update.from_json(body)
    client.call(METHOD_SEND_MESSAGE, build_reply(update))


def _bad_request(message: str) -> Response:
    return Response(message, status=400, mimetype="text/plain")


def _redact(text: str, token: str) -> str:
    return text.replace(token, "<token>") if token else text


def create_app(settings: Settings, client: APICaller | None = None) -> Flask:
    if client is None:
        client = TelegramClient(settings.telegram_bot_token, base_url=settings.telegram_api_base_url)

    app = Flask(__name__)

    @app.route("/webhook", methods=["POST"])
    def webhook() -> Response | tuple[str, int]:
        try:
            handle_update(request.get_data(), client)
        except (TelegramError, DecodeError) as exc:
            _LOGGER.warning("Webhook request failed: %s", _redact(str(exc), settings.telegram_bot_token))
            return _bad_request(str(exc))
        return "", 200

    return app
