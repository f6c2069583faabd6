"""Pure state transitions – every mutation of ``AppState`` goes through here.

Each function takes the current state plus one event payload and returns a new
state; nothing is modified in place, so callers can diff old and new.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Optional, Sequence

from models.state import Alert, AppState, Message
from services import alert_service, price_service, recommendation_service

logger = logging.getLogger(__name__)


# ── Conversation ─────────────────────────────────────────────────────────────


def append_message(state: AppState, message: Message) -> AppState:
    return state.model_copy(update={"messages": [*state.messages, message]})


def set_typing(state: AppState, typing: bool) -> AppState:
    return state.model_copy(update={"is_typing": typing})


def set_active_symbol(state: AppState, symbol: str) -> AppState:
    return state.model_copy(update={"active_symbol": symbol.upper()})


def new_notifications(before: AppState, after: AppState) -> list[Message]:
    """System messages appended between two states."""
    return [m for m in after.messages[len(before.messages):] if m.role == "system"]


# ── Prices ───────────────────────────────────────────────────────────────────


def set_updating_prices(state: AppState, updating: bool) -> AppState:
    return state.model_copy(update={"is_updating_prices": updating})


def evaluate_alerts(state: AppState) -> AppState:
    """Fire alerts against the current price table and append their notices."""
    alerts, triggered, notifications = alert_service.evaluate(state.alerts, state.prices)
    if not triggered:
        return state
    return state.model_copy(
        update={"alerts": alerts, "messages": [*state.messages, *notifications]}
    )


def apply_price_refresh(
    state: AppState, prices: dict[str, float], now: Optional[datetime] = None
) -> AppState:
    """Merge authoritative prices, reprice the portfolio and evaluate alerts.

    An empty mapping means "no update" and leaves the state unchanged.
    """
    if not prices:
        return state

    merged = {**state.prices, **prices}
    portfolio = [
        item.model_copy(update={"current_price": prices[item.symbol]})
        if item.symbol in prices else item
        for item in state.portfolio
    ]
    updated = state.model_copy(
        update={
            "prices": merged,
            "portfolio": portfolio,
            "last_updated": now or datetime.now(),
        }
    )
    return evaluate_alerts(updated)


def apply_simulated_tick(
    state: AppState,
    rng: Optional[random.Random] = None,
    volatility: Optional[float] = None,
) -> AppState:
    """One random-walk step on every price, skipped while a real refresh is in flight."""
    if state.is_updating_prices or not state.prices:
        return state
    ticked = price_service.simulate_tick(state.prices, rng=rng, volatility=volatility)
    return evaluate_alerts(state.model_copy(update={"prices": ticked}))


# ── Alerts ───────────────────────────────────────────────────────────────────


def add_alert(state: AppState, alert: Alert) -> AppState:
    return state.model_copy(update={"alerts": [*state.alerts, alert]})


def add_quick_alerts(
    state: AppState, symbol: str, current_price: Optional[float] = None
) -> AppState:
    """Add the ±5% pair for ``symbol`` around its current price."""
    symbol = symbol.upper()
    price = current_price if current_price is not None else state.prices.get(symbol)
    if not price:
        raise ValueError(f"No current price for {symbol}")
    return state.model_copy(
        update={"alerts": [*state.alerts, *alert_service.quick_fluctuation_alerts(symbol, price)]}
    )


def delete_alert(state: AppState, alert_id: str) -> AppState:
    return state.model_copy(update={"alerts": [a for a in state.alerts if a.id != alert_id]})


# ── Recommendations ──────────────────────────────────────────────────────────


def save_recommendation(
    state: AppState,
    message_id: str,
    possible_symbols: Sequence[str] = recommendation_service.WATCHLIST_SYMBOLS,
) -> AppState:
    """Snapshot a model message as a recommendation (newest first)."""
    message = next((m for m in state.messages if m.id == message_id and m.role == "model"), None)
    if message is None:
        raise KeyError(message_id)

    rec = recommendation_service.build_recommendation(
        message, state.prices, state.active_symbol, possible_symbols
    )
    return state.model_copy(update={"recommendations": [rec, *state.recommendations]})
