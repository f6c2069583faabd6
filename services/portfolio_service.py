"""Portfolio valuation, sector allocation and recommendation performance."""

from __future__ import annotations

from typing import Any

from models.state import DEFAULT_SECTOR, PortfolioItem, SavedRecommendation
from prompts.system_prompts import (
    DIVERSIFICATION_CONTEXT_TEMPLATE,
    PORTFOLIO_ANALYSIS_REQUEST,
)
from services.price_service import format_price


def total_value(items: list[PortfolioItem]) -> float:
    return sum(item.shares * item.current_price for item in items)


def total_cost(items: list[PortfolioItem]) -> float:
    return sum(item.shares * item.avg_price for item in items)


def valuation(items: list[PortfolioItem]) -> dict[str, float]:
    """Totals for the portfolio; ``pl_percent`` is 0 when there is no cost basis."""
    value = total_value(items)
    cost = total_cost(items)
    pl = value - cost
    return {
        "total_value": value,
        "total_cost": cost,
        "total_pl": pl,
        "pl_percent": (pl / cost) * 100 if cost > 0 else 0.0,
    }


def item_pl_percent(item: PortfolioItem) -> float:
    return (item.current_price - item.avg_price) / item.avg_price * 100


def sector_allocation(items: list[PortfolioItem]) -> list[dict[str, Any]]:
    """Current value per sector, largest first, with its share of the total."""
    value = total_value(items)
    sectors: dict[str, float] = {}
    for item in items:
        sector = item.sector or DEFAULT_SECTOR
        sectors[sector] = sectors.get(sector, 0) + item.shares * item.current_price

    ranked = sorted(sectors.items(), key=lambda kv: kv[1], reverse=True)
    return [
        {"sector": sector, "value": v, "percent": (v / value) * 100 if value > 0 else 0.0}
        for sector, v in ranked
    ]


def analysis_request(items: list[PortfolioItem]) -> str:
    summary = ", ".join(
        f"{p.symbol} ({p.sector or DEFAULT_SECTOR}, {p.shares} cp, Giá: {format_price(p.current_price)})"
        for p in items
    )
    return PORTFOLIO_ANALYSIS_REQUEST.format(summary=summary)


def diversification_context(items: list[PortfolioItem]) -> str:
    breakdown = "\n".join(
        f"- {row['sector']}: {row['percent']:.1f}%" for row in sector_allocation(items)
    )
    return DIVERSIFICATION_CONTEXT_TEMPLATE.format(
        total_value=format_price(total_value(items)),
        breakdown=breakdown,
    )


def recommendation_performance(
    rec: SavedRecommendation, prices: dict[str, float]
) -> dict[str, float]:
    """Price move since the recommendation was saved."""
    current = prices.get(rec.symbol) or rec.price_at_time
    gain = current - rec.price_at_time
    return {
        "current_price": current,
        "gain": gain,
        "gain_percent": (gain / rec.price_at_time) * 100 if rec.price_at_time else 0.0,
    }
