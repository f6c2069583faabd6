"""Technical indicator service – RSI / MACD / SMA for research mode."""

from __future__ import annotations

import logging
import random

import numpy as np
import pandas as pd

from models.state import TechnicalIndicators
from prompts.system_prompts import (
    MACD_BEARISH_LABEL,
    MACD_BULLISH_LABEL,
    RSI_NEUTRAL_LABEL,
    RSI_OVERBOUGHT_LABEL,
    RSI_OVERSOLD_LABEL,
)

logger = logging.getLogger(__name__)

DEFAULT_PRICE = 50000.0

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30


# ── Synthetic generator ──────────────────────────────────────────────────────


def generate_indicators(
    symbol: str,
    current_price: float | None,
    rng: random.Random | None = None,
) -> TechnicalIndicators:
    """Synthesize indicators around ``current_price``.

    RSI lands in [30, 80), MACD and its signal in [-1, 1), SMA20 within ±2.5%
    and SMA50 within ±5% of the price. Unknown prices fall back to 50,000.
    """
    rng = rng or random.Random()
    price = current_price or DEFAULT_PRICE

    rsi = float(int(rng.random() * (80 - 30) + 30))
    macd = rng.random() * 2 - 1
    signal = rng.random() * 2 - 1
    sma20 = price * (1 + (rng.random() * 0.05 - 0.025))
    sma50 = price * (1 + (rng.random() * 0.1 - 0.05))

    indicators = TechnicalIndicators(
        rsi=rsi,
        macd=macd,
        signal=signal,
        sma20=sma20,
        sma50=sma50,
        trend=_classify_trend(price, sma20, sma50),
    )
    logger.debug("Synthetic indicators for %s: %s", symbol, indicators)
    return indicators


# ── Candle-based variant ─────────────────────────────────────────────────────


def indicators_from_candles(df: pd.DataFrame) -> TechnicalIndicators:
    """Compute RSI-14, MACD(12, 26, 9), SMA20 and SMA50 from an OHLC frame.

    Only the ``close`` column is required. Raises ``ValueError`` when it is
    missing or empty.
    """
    close_col = _find_column(df, ["close"])
    if not close_col or df.empty:
        raise ValueError("Cannot find 'close' data in DataFrame")

    close = df[close_col].astype(float)

    sma20 = close.rolling(20, min_periods=1).mean()
    sma50 = close.rolling(50, min_periods=1).mean()

    ema12 = close.ewm(span=12, adjust=False).mean()
    ema26 = close.ewm(span=26, adjust=False).mean()
    macd = ema12 - ema26
    signal = macd.ewm(span=9, adjust=False).mean()

    rsi = _compute_rsi(close, period=14)
    latest_rsi = rsi.iloc[-1]
    if np.isnan(latest_rsi):
        latest_rsi = 50.0

    latest_close = float(close.iloc[-1])
    latest_sma20 = float(sma20.iloc[-1])
    latest_sma50 = float(sma50.iloc[-1])

    return TechnicalIndicators(
        rsi=round(float(latest_rsi), 2),
        macd=round(float(macd.iloc[-1]), 4),
        signal=round(float(signal.iloc[-1]), 4),
        sma20=round(latest_sma20, 2),
        sma50=round(latest_sma50, 2),
        trend=_classify_trend(latest_close, latest_sma20, latest_sma50),
    )


# ── Classification ───────────────────────────────────────────────────────────


def rsi_label(rsi: float) -> str:
    if rsi > RSI_OVERBOUGHT:
        return RSI_OVERBOUGHT_LABEL
    if rsi < RSI_OVERSOLD:
        return RSI_OVERSOLD_LABEL
    return RSI_NEUTRAL_LABEL


def macd_label(macd: float, signal: float) -> str:
    return MACD_BULLISH_LABEL if macd > signal else MACD_BEARISH_LABEL


def _classify_trend(price: float, sma20: float, sma50: float) -> str:
    if price > sma20 > sma50:
        return "UP"
    if price < sma20 < sma50:
        return "DOWN"
    return "SIDEWAYS"


# ── Helpers ──────────────────────────────────────────────────────────────────


def _find_column(df: pd.DataFrame, keywords: list[str]) -> str | None:
    """Find the first column name containing any of the keywords (case-insensitive)."""
    for col in df.columns:
        for kw in keywords:
            if kw.lower() in str(col).lower():
                return col
    return None


def _compute_rsi(series: pd.Series, period: int = 14) -> pd.Series:
    """Compute RSI from a price series."""
    delta = series.diff()
    gain = delta.clip(lower=0)
    loss = -delta.clip(upper=0)

    avg_gain = gain.rolling(window=period, min_periods=period).mean()
    avg_loss = loss.rolling(window=period, min_periods=period).mean()

    rs = avg_gain / avg_loss.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    # No losses in the window means RSI saturates at 100
    rsi = rsi.where(~((avg_loss == 0) & (avg_gain > 0)), 100.0)
    return rsi
