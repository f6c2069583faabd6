"""Telegram Bot service – mirrors alerts and briefings to a Telegram chat."""

from __future__ import annotations

import logging

import httpx

from config import get_settings
from models.state import Message

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.telegram.org/bot{token}"

MAX_MESSAGE_LEN = 4000


def is_configured() -> bool:
    settings = get_settings()
    return bool(settings.telegram_bot_token and settings.telegram_chat_id)


def _api_url(method: str) -> str:
    settings = get_settings()
    return f"{_BASE_URL.format(token=settings.telegram_bot_token)}/{method}"


def _to_telegram_markdown(text: str) -> str:
    """Telegram's legacy Markdown uses single asterisks for bold."""
    return text.replace("**", "*")


async def send_message(text: str, parse_mode: str = "Markdown") -> bool:
    """Send a text message to the configured Telegram chat.

    Returns True on success. Unconfigured credentials are a silent no-op.
    """
    if not is_configured():
        logger.debug("Telegram credentials not configured – skipping send.")
        return False

    settings = get_settings()
    success = True
    try:
        async with httpx.AsyncClient(timeout=15) as client:
            for chunk in _split_message(_to_telegram_markdown(text), max_len=MAX_MESSAGE_LEN):
                resp = await client.post(
                    _api_url("sendMessage"),
                    json={
                        "chat_id": settings.telegram_chat_id,
                        "text": chunk,
                        "parse_mode": parse_mode,
                    },
                )
                if resp.status_code != 200:
                    logger.error("Telegram API error: %s", resp.text)
                    success = False
    except httpx.HTTPError as exc:
        logger.warning("Failed to send Telegram message: %s", exc)
        return False

    return success


async def notify_alerts(notifications: list[Message]) -> bool:
    """Forward alert notifications, one Telegram message each."""
    ok = True
    for message in notifications:
        ok = await send_message(message.text) and ok
    return ok


async def notify_briefing(title: str, message: Message) -> bool:
    header = f"📰 *{title}*\n{'─' * 30}\n\n"
    return await send_message(header + message.text)


def _split_message(text: str, max_len: int = MAX_MESSAGE_LEN) -> list[str]:
    """Split a long message into chunks that fit Telegram's limit."""
    chunks: list[str] = []
    while len(text) > max_len:
        # Prefer a newline near the limit
        split_idx = text.rfind("\n", 0, max_len)
        if split_idx <= 0:
            split_idx = max_len
        chunks.append(text[:split_idx])
        text = text[split_idx:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks
