"""Prompt orchestration – assemble context + request, call the LLM, wrap the reply.

Every path funnels into :func:`ask`, which never raises: provider failures
become an apology message in the transcript.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence

from config import get_settings
from models.state import Message, PortfolioItem, TechnicalIndicators
from prompts.system_prompts import (
    BRIEFING_DIRECTIVE,
    DIVERSIFICATION_HEADING,
    DIVERSIFICATION_HINT,
    EMPTY_RESPONSE_TEXT,
    LLM_ERROR_TEXT,
    RESEARCH_CONTEXT_TEMPLATE,
    SYSTEM_INSTRUCTION,
)
from services import indicator_service, llm_service, portfolio_service
from services.price_service import format_price
from services.recommendation_service import find_symbol

logger = logging.getLogger(__name__)

Generate = Callable[..., Awaitable[llm_service.LLMResult]]

RESEARCH_SYMBOLS: tuple[str, ...] = ("FPT", "VCB", "HPG", "MWG", "TCB")


def build_prompt(user_text: str, context_prefix: Optional[str] = None) -> str:
    if not context_prefix:
        return user_text
    return f"{context_prefix}\n\n---\n\nYêu cầu của người dùng: {user_text}"


async def ask(
    history: Sequence[Message],
    user_text: str,
    context_prefix: Optional[str] = None,
    *,
    generate: Optional[Generate] = None,
    heading: str = "",
) -> Message:
    """Send one request and return the model-role reply message."""
    settings = get_settings()
    generate = generate or llm_service.generate
    turns = [m for m in history if m.role in ("user", "model")]
    window = turns[-settings.chat_history_turns:] if settings.chat_history_turns > 0 else []

    try:
        result = await generate(
            build_prompt(user_text, context_prefix),
            SYSTEM_INSTRUCTION,
            enable_search_grounding=True,
            temperature=settings.chat_temperature,
            history=window,
        )
    except Exception:
        logger.exception("LLM request failed")
        return Message(role="model", text=LLM_ERROR_TEXT, sources=[])

    text = result.text or EMPTY_RESPONSE_TEXT
    return Message(role="model", text=heading + text, sources=list(result.grounding_sources))


# ── Research mode ────────────────────────────────────────────────────────────


def resolve_research_symbol(text: str, active_symbol: str) -> str:
    return find_symbol(text, RESEARCH_SYMBOLS, active_symbol)


def research_context(symbol: str, indicators: TechnicalIndicators, price: Optional[float]) -> str:
    return RESEARCH_CONTEXT_TEMPLATE.format(
        symbol=symbol,
        rsi=indicators.rsi,
        rsi_label=indicator_service.rsi_label(indicators.rsi),
        macd=indicators.macd,
        signal=indicators.signal,
        macd_label=indicator_service.macd_label(indicators.macd, indicators.signal),
        price=format_price(price) if price else "N/A",
        sma20=indicators.sma20,
        sma50=indicators.sma50,
        trend=indicators.trend,
    )


# ── Portfolio & schedule ─────────────────────────────────────────────────────


async def diversification_review(
    history: Sequence[Message],
    portfolio: list[PortfolioItem],
    *,
    generate: Optional[Generate] = None,
) -> Message:
    logger.info("⚖️ Diversification review for %d holdings", len(portfolio))
    return await ask(
        history,
        DIVERSIFICATION_HINT,
        portfolio_service.diversification_context(portfolio),
        generate=generate,
        heading=DIVERSIFICATION_HEADING,
    )


async def briefing(
    history: Sequence[Message],
    briefing_prompt: str,
    *,
    generate: Optional[Generate] = None,
) -> Message:
    return await ask(history, briefing_prompt, BRIEFING_DIRECTIVE, generate=generate)
