"""Telegram delivery via the Bot API ``sendMessage`` method."""

import logging
import re
from dataclasses import dataclass

import httpx

from nemory.constants import (
    TELEGRAM_API_BASE,
    TELEGRAM_API_TIMEOUT,
    TELEGRAM_MAX_MESSAGE_LENGTH,
    TELEGRAM_PARSE_MODE,
)
from nemory.utils import utf16_len

logger = logging.getLogger(__name__)

# Numeric chat ids (groups/channels are negative) or public @channel usernames
_CHAT_ID_RE = re.compile(r"^(-?\d+|@[A-Za-z][A-Za-z0-9_]{4,31})$")


class DeliveryError(Exception):
    """Base class for delivery failures."""


class DeliveryConfigError(DeliveryError):
    """The deliverer itself is not configured (no bot token)."""


class InvalidDestinationError(DeliveryError):
    """The chat id is empty or not a valid Telegram chat reference."""


class InvalidMessageError(DeliveryError):
    """The message is empty or longer than Telegram accepts."""


class TelegramDeliveryError(DeliveryError):
    """Telegram refused the message; ``description`` is Telegram's own text."""

    def __init__(self, description: str, status_code: int | None = None):
        self.description = description
        self.status_code = status_code
        super().__init__(f"Telegram API error: {description}")


@dataclass
class TelegramAck:
    chat_id: str
    message_id: int | None


def validate_chat_id(chat_id: str | None) -> str:
    if not chat_id or not str(chat_id).strip():
        raise InvalidDestinationError("Chat ID is required")
    chat_id = str(chat_id).strip()
    if not _CHAT_ID_RE.match(chat_id):
        raise InvalidDestinationError(f"Invalid Telegram chat ID: {chat_id!r}")
    return chat_id


def validate_message(text: str | None) -> str:
    if not text or not text.strip():
        raise InvalidMessageError("Message text is required")
    length = utf16_len(text)
    if length > TELEGRAM_MAX_MESSAGE_LENGTH:
        raise InvalidMessageError(
            f"Message is {length} UTF-16 units; Telegram allows {TELEGRAM_MAX_MESSAGE_LENGTH}"
        )
    return text


class TelegramDeliverer:
    """Sends pre-formatted HTML messages. No retries; the caller decides."""

    channel = "telegram"

    def __init__(self, client: httpx.AsyncClient, bot_token: str):
        if not bot_token:
            raise DeliveryConfigError("Telegram bot token not configured")
        self.client = client
        self.bot_token = bot_token

    async def send_message(self, chat_id: str, text: str) -> TelegramAck:
        """Send *text* to *chat_id*, validating both before touching the network."""
        chat_id = validate_chat_id(chat_id)
        text = validate_message(text)

        url = f"{TELEGRAM_API_BASE.format(token=self.bot_token)}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": TELEGRAM_PARSE_MODE,
            "disable_web_page_preview": True,
        }

        try:
            resp = await self.client.post(url, json=payload, timeout=TELEGRAM_API_TIMEOUT)
        except httpx.HTTPError as e:
            logger.error("Connection error to Telegram: %s", type(e).__name__)
            raise TelegramDeliveryError(f"network error ({type(e).__name__})") from e

        if resp.is_success:
            result = resp.json().get("result") or {}
            logger.info("Telegram message sent to chat %s", chat_id)
            return TelegramAck(chat_id=chat_id, message_id=result.get("message_id"))

        try:
            description = resp.json().get("description") or f"HTTP {resp.status_code}"
        except ValueError:
            description = f"HTTP {resp.status_code}"
        logger.error("Telegram API error: %s - %s", resp.status_code, description)
        raise TelegramDeliveryError(description, status_code=resp.status_code)
