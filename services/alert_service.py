"""Alert service – evaluate one-shot price alerts against the price table."""

from __future__ import annotations

import logging
import math

from models.state import Alert, Message
from prompts.system_prompts import (
    ALERT_DIRECTION_ABOVE,
    ALERT_DIRECTION_BELOW,
    ALERT_NOTIFICATION_TEMPLATE,
)
from services.price_service import format_price

logger = logging.getLogger(__name__)

QUICK_ALERT_BAND = 0.05


def is_triggered(alert: Alert, price: float) -> bool:
    if alert.condition == "ABOVE":
        return price > alert.threshold
    if alert.condition == "BELOW":
        return price < alert.threshold
    raise ValueError(f"Unknown alert condition: {alert.condition}")


def notification_for(alert: Alert, price: float) -> Message:
    direction = ALERT_DIRECTION_ABOVE if alert.condition == "ABOVE" else ALERT_DIRECTION_BELOW
    return Message(
        role="system",
        text=ALERT_NOTIFICATION_TEMPLATE.format(
            symbol=alert.symbol,
            price=format_price(price),
            direction=direction,
            threshold=format_price(alert.threshold),
        ),
    )


def evaluate(
    alerts: list[Alert], prices: dict[str, float]
) -> tuple[list[Alert], list[Alert], list[Message]]:
    """Check every active alert against ``prices``.

    Returns ``(updated_alerts, triggered, notifications)``: the full alert list
    in stored order with triggered entries deactivated, the triggered alerts
    themselves, and one system message per trigger. Symbols without a price
    are skipped.
    """
    updated: list[Alert] = []
    triggered: list[Alert] = []
    notifications: list[Message] = []

    for alert in alerts:
        price = prices.get(alert.symbol)
        if not alert.active or price is None or not is_triggered(alert, price):
            updated.append(alert)
            continue

        fired = alert.model_copy(update={"active": False})
        logger.info(
            "🔔 Alert %s triggered: %s %s %s (price %s)",
            alert.id, alert.symbol, alert.condition, alert.threshold, price,
        )
        updated.append(fired)
        triggered.append(fired)
        notifications.append(notification_for(alert, price))

    return updated, triggered, notifications


def quick_fluctuation_alerts(symbol: str, current_price: float) -> list[Alert]:
    """ABOVE at +5% and BELOW at -5% of ``current_price``, both floored to whole VND."""
    symbol = symbol.upper()
    return [
        Alert(symbol=symbol, condition="ABOVE", threshold=_floor(current_price * (1 + QUICK_ALERT_BAND))),
        Alert(symbol=symbol, condition="BELOW", threshold=_floor(current_price * (1 - QUICK_ALERT_BAND))),
    ]


def _floor(value: float) -> int:
    # absorb binary rounding before flooring: 100 * 1.15 == 114.99999999999999
    return math.floor(round(value, 6))
