import pytest

from agents import transitions
from models.state import Alert, AppState
from services import alert_service


def test_above_alert_fires_once():
    state = AppState(alerts=[Alert(symbol="HPG", condition="ABOVE", threshold=29000)])

    state = transitions.apply_price_refresh(state, {"HPG": 29500})

    notices = [m for m in state.messages if m.role == "system"]
    assert len(notices) == 1
    assert "HPG" in notices[0].text
    assert "29,500" in notices[0].text
    assert "29,000" in notices[0].text
    assert state.alerts[0].active is False

    state = transitions.apply_price_refresh(state, {"HPG": 30000})

    assert len([m for m in state.messages if m.role == "system"]) == 1


def test_below_alert_and_strict_threshold():
    alerts = [
        Alert(symbol="VCB", condition="BELOW", threshold=90000),
        Alert(symbol="FPT", condition="ABOVE", threshold=135000),
    ]

    updated, triggered, notices = alert_service.evaluate(alerts, {"VCB": 89000, "FPT": 135000})

    assert [a.symbol for a in triggered] == ["VCB"]
    assert "giảm xuống dưới" in notices[0].text
    assert [a.active for a in updated] == [False, True]


def test_unknown_price_is_skipped():
    alerts = [Alert(symbol="MWG", condition="ABOVE", threshold=1)]

    updated, triggered, notices = alert_service.evaluate(alerts, {"FPT": 100})

    assert updated == alerts
    assert triggered == [] and notices == []


def test_notifications_follow_stored_order():
    alerts = [
        Alert(symbol="FPT", condition="ABOVE", threshold=100),
        Alert(symbol="HPG", condition="BELOW", threshold=100),
        Alert(symbol="VCB", condition="ABOVE", threshold=100, active=False),
    ]

    _, triggered, notices = alert_service.evaluate(alerts, {"FPT": 200, "HPG": 50, "VCB": 200})

    assert [a.symbol for a in triggered] == ["FPT", "HPG"]
    assert "FPT" in notices[0].text and "HPG" in notices[1].text
    assert all(m.role == "system" for m in notices)


def test_quick_fluctuation_alerts():
    above, below = alert_service.quick_fluctuation_alerts("fpt", 100000)

    assert (above.symbol, above.condition, above.threshold) == ("FPT", "ABOVE", 105000)
    assert (below.symbol, below.condition, below.threshold) == ("FPT", "BELOW", 95000)
    assert above.active and below.active
    assert above.id != below.id


def test_quick_alerts_floor_fractional_prices():
    above, below = alert_service.quick_fluctuation_alerts("VN-INDEX", 1258.4)

    assert above.threshold == 1321
    assert below.threshold == 1195


def test_unknown_condition_is_a_defect():
    alert = Alert.model_construct(id="x", symbol="FPT", condition="SIDEWAYS", threshold=1, active=True)

    with pytest.raises(ValueError):
        alert_service.is_triggered(alert, 2)
