import random

import pandas as pd
import pytest

from services import indicator_service


@pytest.mark.parametrize("seed", range(25))
def test_generated_indicators_respect_bounds(seed):
    ind = indicator_service.generate_indicators("FPT", 100000, rng=random.Random(seed))

    assert 30 <= ind.rsi < 80
    assert ind.rsi == int(ind.rsi)
    assert -1 <= ind.macd < 1
    assert -1 <= ind.signal < 1
    assert 97500 <= ind.sma20 <= 102500
    assert 95000 <= ind.sma50 <= 105000
    assert ind.trend in ("UP", "DOWN", "SIDEWAYS")


def test_unknown_price_uses_default():
    ind = indicator_service.generate_indicators("XYZ", None, rng=random.Random(3))

    assert 50000 * 0.95 <= ind.sma50 <= 50000 * 1.05


def test_same_seed_same_indicators():
    a = indicator_service.generate_indicators("FPT", 1000, rng=random.Random(9))
    b = indicator_service.generate_indicators("FPT", 1000, rng=random.Random(9))

    assert a == b


def test_candles_uptrend():
    df = pd.DataFrame({"close": [float(p) for p in range(100, 160)]})

    ind = indicator_service.indicators_from_candles(df)

    assert ind.trend == "UP"
    assert ind.rsi == 100
    assert ind.sma20 == pytest.approx(149.5)
    assert ind.sma50 == pytest.approx(134.5)
    assert ind.macd > 0


def test_candles_downtrend():
    df = pd.DataFrame({"Close": [float(p) for p in range(160, 100, -1)]})

    ind = indicator_service.indicators_from_candles(df)

    assert ind.trend == "DOWN"
    assert ind.rsi == pytest.approx(0)
    assert ind.macd < 0


def test_candles_short_series_has_neutral_rsi():
    ind = indicator_service.indicators_from_candles(pd.DataFrame({"close": [10.0, 11.0, 10.5]}))

    assert ind.rsi == 50


def test_candles_require_close_column():
    with pytest.raises(ValueError):
        indicator_service.indicators_from_candles(pd.DataFrame({"open": [1.0, 2.0]}))


def test_labels():
    assert indicator_service.rsi_label(75) == indicator_service.RSI_OVERBOUGHT_LABEL
    assert indicator_service.rsi_label(25) == indicator_service.RSI_OVERSOLD_LABEL
    assert indicator_service.rsi_label(50) == indicator_service.RSI_NEUTRAL_LABEL
    assert "Tăng" in indicator_service.macd_label(0.5, 0.1)
    assert "Giảm" in indicator_service.macd_label(0.1, 0.5)
