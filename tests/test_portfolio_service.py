import pytest

from models.state import PortfolioItem, SavedRecommendation, initial_state
from services import portfolio_service


def test_valuation_of_seed_portfolio():
    items = initial_state().portfolio

    result = portfolio_service.valuation(items)

    assert result["total_value"] == 240_000_000
    assert result["total_cost"] == 196_500_000
    assert result["total_pl"] == 43_500_000
    assert result["pl_percent"] == pytest.approx(43_500_000 / 196_500_000 * 100)


def test_zero_cost_has_zero_percent():
    items = [PortfolioItem(symbol="FPT", shares=0, avg_price=98000, current_price=135000)]

    result = portfolio_service.valuation(items)

    assert result == {"total_value": 0, "total_cost": 0, "total_pl": 0, "pl_percent": 0.0}
    assert portfolio_service.valuation([])["pl_percent"] == 0.0


def test_sector_allocation_sorted_with_default_sector():
    items = [
        PortfolioItem(symbol="FPT", shares=10, avg_price=1, current_price=100, sector="Công nghệ"),
        PortfolioItem(symbol="MWG", shares=30, avg_price=1, current_price=100),
        PortfolioItem(symbol="CMG", shares=10, avg_price=1, current_price=100, sector="Công nghệ"),
    ]

    rows = portfolio_service.sector_allocation(items)

    assert [r["sector"] for r in rows] == ["Khác", "Công nghệ"]
    assert rows[0]["percent"] == pytest.approx(60)
    assert rows[1]["value"] == 2000


def test_sector_allocation_empty_value():
    items = [PortfolioItem(symbol="FPT", shares=0, avg_price=1, current_price=100, sector="Công nghệ")]

    assert portfolio_service.sector_allocation(items)[0]["percent"] == 0.0


def test_diversification_context_lists_breakdown():
    text = portfolio_service.diversification_context(initial_state().portfolio)

    assert "240,000,000" in text
    assert "- Công nghệ: 56.2%" in text
    assert "- Thép: 24.6%" in text


def test_analysis_request_summary():
    text = portfolio_service.analysis_request(initial_state().portfolio)

    assert "FPT (Công nghệ, 1000 cp, Giá: 135,000)" in text


def test_recommendation_performance():
    rec = SavedRecommendation(symbol="FPT", action="BUY", price_at_time=100000, date="2026-01-01T09:00:00", notes="")

    perf = portfolio_service.recommendation_performance(rec, {"FPT": 110000})

    assert perf["gain"] == 10000
    assert perf["gain_percent"] == pytest.approx(10)


def test_recommendation_performance_without_saved_price():
    rec = SavedRecommendation(symbol="XYZ", action="WATCH", price_at_time=0, date="2026-01-01T09:00:00", notes="")

    assert portfolio_service.recommendation_performance(rec, {"XYZ": 5})["gain_percent"] == 0.0
