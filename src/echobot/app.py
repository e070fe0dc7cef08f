from __future__ import annotations

import logging

from echobot.config import load_settings
from echobot.logging_config import configure_logging
from echobot.telegram.client import TelegramClient
from echobot.webhook.handler import create_app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    logger = logging.getLogger("echobot")
    telegram = TelegramClient(settings.telegram_bot_token, base_url=settings.telegram_api_base_url)
    app = create_app(settings, client=telegram)

    logger.info("Listening on port %s", settings.port)
    app.run(host="0.0.0.0", port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
