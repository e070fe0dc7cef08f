from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from echobot.telegram.client import TELEGRAM_API_BASE_URL

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    telegram_api_base_url: str
    port: int
    log_level: str


class ConfigError(ValueError):
    pass


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _parse_port(raw: str) -> int:
    if not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid PORT value: {raw.strip()}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")
    return port


def load_settings() -> Settings:
    load_dotenv()

    base_url = os.getenv("TELEGRAM_API_BASE_URL", "").strip().rstrip("/") or TELEGRAM_API_BASE_URL

    return Settings(
        telegram_bot_token=_require_env("TELEGRAM_API_BOT_TOKEN"),
        telegram_api_base_url=base_url,
        port=_parse_port(os.getenv("PORT", "")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
    )
