import json
import logging
from typing import Any, Mapping, Optional, Tuple
import requests

from reminders.enums import DeliveryFailure
from reminders.interfaces import DeliveryResult
from .config import TelegramConfig

# Setup logger
logger = logging.getLogger(__name__)

# Telegram answers these when the user blocked the bot or the chat is gone
PERMANENT_ERROR_CODES = (400, 403)


def _get_text_payload(
    chat_id: str,
    text: str,
    parse_mode: str = "HTML",
    reply_markup: Optional[Mapping[str, Any]] = None,
) -> str:
    body = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": parse_mode,
    }
    if reply_markup:
        body["reply_markup"] = reply_markup
    return json.dumps(body)


def send_telegram_text(
    chat_id: str,
    text: str,
    reply_markup: Optional[Mapping[str, Any]] = None,
    config: Optional[TelegramConfig] = None,
) -> Tuple[Mapping, int]:
    """
    Sends a Telegram message.

    Arguments:
        chat_id (str): The recipient chat id.
        text (str): The message body (HTML).
        reply_markup (dict, optional): Inline keyboard.
        config (TelegramConfig, optional): Dependency injection for config.

    Returns the Bot API JSON body and the HTTP status code.
    """
    cfg = config or TelegramConfig()

    if not (cfg.BOT_TOKEN and chat_id):
        logger.error("Missing Telegram configuration or recipient")
        return {"ok": False, "description": "Missing configuration"}, 500

    try:
        resp = requests.post(
            f"{cfg.api_url}/sendMessage",
            data=_get_text_payload(str(chat_id), text, reply_markup=reply_markup),
            headers={"Content-Type": "application/json"},
            timeout=cfg.TIMEOUT_SECONDS,
        )
    except requests.Timeout:
        logger.error("Telegram request timed out")
        return {"ok": False, "description": "Request timed out"}, 408
    except requests.RequestException as e:
        logger.error(f"Telegram send error: {e}")
        return {"ok": False, "description": "Failed to send message"}, 500

    try:
        body = resp.json()
    except ValueError:
        body = {"ok": resp.ok, "description": resp.text[:200]}
    return body, resp.status_code


class TelegramSink:
    """Messaging sink backed by the Telegram Bot API."""

    def __init__(self, config: Optional[TelegramConfig] = None) -> None:
        self.config = config or TelegramConfig()

    def send(self, user_id: str, text: str, keyboard: Optional[Mapping[str, Any]] = None) -> DeliveryResult:
        body, status_code = send_telegram_text(user_id, text, reply_markup=keyboard, config=self.config)

        if status_code == 200 and body.get("ok", True):
            return DeliveryResult.success()

        error_code = body.get("error_code", status_code)
        detail = f"{error_code}: {body.get('description', 'unknown error')}"
        if error_code in PERMANENT_ERROR_CODES:
            return DeliveryResult.failed(DeliveryFailure.permanent, detail)
        return DeliveryResult.failed(DeliveryFailure.transient, detail)
