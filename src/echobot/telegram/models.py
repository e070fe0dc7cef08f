from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DecodeError(ValueError):
    """Raised when a JSON payload does not have the shape of the target record."""


class Decodable(Protocol):
    @classmethod
    def from_dict(cls, data: Any) -> Any:
        ...


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _expect_object(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"expected object, got {_json_type(data)}")
    return data


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{key}: expected integer, got {_json_type(value)}")
    return value


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{key}: expected string, got {_json_type(value)}")
    return value


def _bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"{key}: expected boolean, got {_json_type(value)}")
    return value


def _record(data: dict[str, Any], key: str, record_type: Any) -> Any:
    value = data.get(key)
    if value is None:
        return record_type()
    if not isinstance(value, dict):
        raise DecodeError(f"{key}: expected object, got {_json_type(value)}")
    try:
        return record_type.from_dict(value)
    except DecodeError as exc:
        raise DecodeError(f"{key}.{exc}") from exc


class UnixTime(int):
    """Telegram timestamp: whole seconds since the Unix epoch."""

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=int(self))

    def __str__(self) -> str:
        return self.to_datetime().strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class User:
    id: int = 0
    is_bot: bool = False
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> User:
        data = _expect_object(data)
        return cls(
            id=_int(data, "id"),
            is_bot=_bool(data, "is_bot"),
            first_name=_str(data, "first_name"),
            last_name=_str(data, "last_name"),
            username=_str(data, "username"),
            language_code=_str(data, "language_code"),
        )


@dataclass(frozen=True)
class Chat:
    id: int = 0
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    type: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Chat:
        data = _expect_object(data)
        return cls(
            id=_int(data, "id"),
            first_name=_str(data, "first_name"),
            last_name=_str(data, "last_name"),
            username=_str(data, "username"),
            type=_str(data, "type"),
        )


@dataclass(frozen=True)
class Message:
    message_id: int = 0
    from_user: User = field(default_factory=User)
    chat: Chat = field(default_factory=Chat)
    date: UnixTime = UnixTime(0)
    text: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        data = _expect_object(data)
        return cls(
            message_id=_int(data, "message_id"),
            from_user=_record(data, "from", User),
            chat=_record(data, "chat", Chat),
            date=UnixTime(_int(data, "date")),
            text=_str(data, "text"),
        )


@dataclass(frozen=True)
class Update:
    update_id: int = 0
    message: Message = field(default_factory=Message)

    @classmethod
    def from_dict(cls, data: Any) -> Update:
        data = _expect_object(data)
        return cls(
            update_id=_int(data, "update_id"),
            message=_record(data, "message", Message),
        )

    @classmethod
    def from_json(cls, raw: bytes | str) -> Update:
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise DecodeError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)


@dataclass(frozen=True)
class BotInfo:
    id: int = 0
    is_bot: bool = False
    first_name: str = ""
    username: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> BotInfo:
        data = _expect_object(data)
        return cls(
            id=_int(data, "id"),
            is_bot=_bool(data, "is_bot"),
            first_name=_str(data, "first_name"),
            username=_str(data, "username"),
        )


@dataclass(frozen=True)
class SendMessageRequest:
    chat_id: int
    text: str
    reply_to_message_id: int
    parse_mode: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "chat_id": self.chat_id,
            "text": self.text,
            "reply_to_message_id": self.reply_to_message_id,
            "parse_mode": self.parse_mode,
        }


@dataclass(frozen=True)
class APIEnvelope:
    """Response wrapper shared by every Bot API method."""

    ok: bool = False
    error_code: int = 0
    description: str = ""
    result: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> APIEnvelope:
        data = _expect_object(data)
        return cls(
            ok=_bool(data, "ok"),
            error_code=_int(data, "error_code"),
            description=_str(data, "description"),
            result=data.get("result"),
        )
