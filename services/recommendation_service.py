"""Recommendation extraction – classify a model reply into an action and a symbol.

The classification policy is a precedence table: categories are tried top to
bottom and the first whose keyword appears in the uppercased text wins. A reply
that says both "MUA" and "BÁN" is therefore a BUY.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from models.state import Message, SavedRecommendation

logger = logging.getLogger(__name__)

ACTION_PRECEDENCE: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("BUY", ("MUA", "BUY")),
    ("SELL", ("BÁN", "SELL")),
    ("HOLD", ("NẮM GIỮ", "GIỮ", "HOLD", "KEEP")),
)
DEFAULT_ACTION = "WATCH"

ACTION_LABELS = {
    "BUY": "MUA",
    "SELL": "BÁN",
    "HOLD": "NẮM GIỮ",
    "WATCH": "THEO DÕI",
}

WATCHLIST_SYMBOLS: tuple[str, ...] = ("FPT", "VCB", "HPG", "MWG", "VNM", "TCB", "VPB")

NOTE_LENGTH = 100


def classify_action(text: str) -> str:
    upper = text.upper()
    for action, keywords in ACTION_PRECEDENCE:
        if any(keyword in upper for keyword in keywords):
            return action
    return DEFAULT_ACTION


def find_symbol(text: str, candidates: Sequence[str], fallback: str) -> str:
    """First candidate whose literal text appears in ``text``, else ``fallback``."""
    upper = text.upper()
    for symbol in candidates:
        if symbol in upper:
            return symbol
    return fallback


def extract(
    message_text: str,
    possible_symbols: Sequence[str] = WATCHLIST_SYMBOLS,
    fallback_symbol: str = "VN-INDEX",
) -> tuple[str, str]:
    """Return ``(action, symbol)`` for a model reply. Never fails."""
    return classify_action(message_text), find_symbol(message_text, possible_symbols, fallback_symbol)


def build_recommendation(
    message: Message,
    prices: dict[str, float],
    fallback_symbol: str,
    possible_symbols: Sequence[str] = WATCHLIST_SYMBOLS,
) -> SavedRecommendation:
    action, symbol = extract(message.text, possible_symbols, fallback_symbol)
    logger.info("💾 Saving recommendation %s %s from message %s", action, symbol, message.id)
    return SavedRecommendation(
        symbol=symbol,
        action=action,
        price_at_time=prices.get(symbol, 0),
        date=datetime.now().isoformat(),
        notes=message.text[:NOTE_LENGTH] + "...",
    )
