"""Price service – real-time price feed via the LLM, its line parser, and tick simulation."""

from __future__ import annotations

import logging
import math
import random
import re
from typing import Awaitable, Callable, Iterable

from config import get_settings
from prompts.system_prompts import PRICE_FEED_PROMPT
from services import llm_service

logger = logging.getLogger(__name__)

# "SYMBOL: PRICE" anywhere in a line; the symbol must not be the tail of a longer token
_PRICE_LINE = re.compile(
    r"(?<![A-Z0-9-])([A-Z0-9-]{3,10})\s*:\s*([0-9][0-9.,]*)",
    re.IGNORECASE,
)

Generate = Callable[..., Awaitable[llm_service.LLMResult]]


# ── Parsing ──────────────────────────────────────────────────────────────────


def parse_prices(raw_text: str | None) -> dict[str, float]:
    """Turn a loosely formatted ``SYMBOL: PRICE`` blob into a price mapping.

    Lines that do not match are skipped, thousands-separator commas are
    stripped, and non-numeric, non-finite or non-positive values are dropped.
    Tokens with a comma after a dot (decimal-comma notation) are dropped too.
    Repeated symbols keep the last value. Never raises.
    """
    prices: dict[str, float] = {}
    if not raw_text:
        return prices

    for line in raw_text.splitlines():
        match = _PRICE_LINE.search(line)
        if not match:
            continue

        symbol = match.group(1).upper()
        price = _to_price(match.group(2))
        if price is None:
            logger.debug("Discarding unusable price for %s: %r", symbol, match.group(2))
            continue
        prices[symbol] = price

    return prices


def _to_price(token: str) -> float | None:
    # "1.254,30" is decimal-comma notation, not a thousands separator
    if "." in token and token.rfind(",") > token.find("."):
        return None
    cleaned = token.replace(",", "").rstrip(".")
    if cleaned.count(".") > 1:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


# ── Fetching ─────────────────────────────────────────────────────────────────


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Uppercase and de-duplicate, keeping first occurrence order."""
    seen: dict[str, None] = {}
    for symbol in symbols:
        if symbol:
            seen.setdefault(symbol.upper(), None)
    return list(seen)


async def fetch_real_time_prices(
    symbols: Iterable[str],
    generate: Generate | None = None,
) -> dict[str, float]:
    """Ask the LLM (with web search) for current prices and parse the reply.

    Any failure yields an empty mapping, which callers treat as "no update".
    """
    wanted = unique_symbols(symbols)
    if not wanted:
        return {}

    settings = get_settings()
    generate = generate or llm_service.generate
    prompt = PRICE_FEED_PROMPT.format(symbols=", ".join(wanted))

    try:
        result = await generate(
            prompt,
            "",
            enable_search_grounding=True,
            temperature=settings.price_temperature,
        )
    except Exception:
        logger.exception("Error fetching real-time prices for %s", wanted)
        return {}

    logger.debug("Real-time price fetch result:\n%s", result.text)
    prices = parse_prices(result.text)
    logger.info("💹 Parsed %d/%d prices from feed", len(prices), len(wanted))
    return prices


# ── Simulation ───────────────────────────────────────────────────────────────


def simulate_tick(
    prices: dict[str, float],
    rng: random.Random | None = None,
    volatility: float | None = None,
) -> dict[str, float]:
    """Apply one small multiplicative random step to every price.

    Each price moves by at most ``volatility / 2`` (±0.05% with the default).
    Returns a new mapping; the input is left untouched.
    """
    rng = rng or random.Random()
    if volatility is None:
        volatility = get_settings().simulation_volatility
    return {
        symbol: price * (1 + (rng.random() - 0.5) * volatility)
        for symbol, price in prices.items()
    }


def format_price(value: float) -> str:
    """Thousands-separated price, decimals only when present (``1,254.3``)."""
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return text
