"""
Holdings aggregation for the portfolio analytics engine.

Provides valuation totals, position weights, the dashboard summary and
position-level alerts. Closed positions (quantity 0) are ignored by every
aggregate.
"""

from decimal import Decimal
from typing import Optional

from folio_analytics.models import AssetClass, Position


POSITION_ALERT_THRESHOLD = Decimal("25")
POSITION_HIGH_THRESHOLD = Decimal("40")
LOSS_ALERT_THRESHOLD = Decimal("-20")
LOSS_HIGH_THRESHOLD = Decimal("-40")


def active_positions(positions: list[Position]) -> list[Position]:
    """Positions with quantity > 0."""
    return [p for p in positions if p.is_active]


def calculate_total_value(positions: list[Position]) -> Decimal:
    """Sum of market values, with the cost-basis fallback for unpriced positions."""
    return sum((p.market_value for p in active_positions(positions)), Decimal("0"))


def calculate_total_cost(positions: list[Position]) -> Decimal:
    """Sum of quantity * average cost."""
    return sum((p.cost_value for p in active_positions(positions)), Decimal("0"))


def calculate_cash_available(positions: list[Position]) -> Decimal:
    """Market value held in CASH positions."""
    return sum(
        (p.market_value for p in active_positions(positions) if p.asset_class == AssetClass.CASH),
        Decimal("0"),
    )


def unrealized_pnl_percent(position: Position) -> Decimal:
    """Unrealized P&L of a position as a percent of its cost."""
    cost = position.cost_value
    if cost == Decimal("0"):
        return Decimal("0")
    return (position.market_value - cost) / cost * Decimal("100")


def calculate_position_weights(
    positions: list[Position],
    total_value: Optional[Decimal] = None,
) -> dict[str, Decimal]:
    """
    Calculate portfolio weights by ticker.

    Args:
        positions: Portfolio positions
        total_value: Optional pre-calculated total value

    Returns:
        Dictionary mapping ticker to weight in percent
    """
    if total_value is None:
        total_value = calculate_total_value(positions)

    weights: dict[str, Decimal] = {}
    for position in active_positions(positions):
        if total_value > Decimal("0"):
            weight = position.market_value / total_value * Decimal("100")
        else:
            weight = Decimal("0")
        weights[position.ticker] = weights.get(position.ticker, Decimal("0")) + weight

    return weights


def summarize_portfolio(positions: list[Position], top_n: int = 5) -> dict:
    """
    Dashboard summary of a portfolio.

    Args:
        positions: Portfolio positions
        top_n: Number of top holdings to include

    Returns:
        Dictionary with totals, day change, top holdings and winners/losers
    """
    holdings = active_positions(positions)
    total_value = calculate_total_value(holdings)
    total_cost = calculate_total_cost(holdings)
    total_pnl = total_value - total_cost
    total_pnl_pct = total_pnl / total_cost * Decimal("100") if total_cost > Decimal("0") else Decimal("0")

    day_change = sum(
        (p.market_value * (p.day_change_percent or Decimal("0")) / Decimal("100") for p in holdings),
        Decimal("0"),
    )
    day_change_pct = day_change / total_value * Decimal("100") if total_value > Decimal("0") else Decimal("0")

    by_value = sorted(holdings, key=lambda p: p.market_value, reverse=True)
    top_holdings = [
        {
            "ticker": p.ticker,
            "name": p.name or p.ticker,
            "market_value": p.market_value,
            "weight": p.market_value / total_value * Decimal("100") if total_value > Decimal("0") else Decimal("0"),
            "unrealized_pnl_percent": unrealized_pnl_percent(p),
        }
        for p in by_value[:top_n]
    ]

    by_pnl = sorted(
        (
            {
                "ticker": p.ticker,
                "unrealized_pnl": p.market_value - p.cost_value,
                "unrealized_pnl_percent": unrealized_pnl_percent(p),
            }
            for p in holdings
        ),
        key=lambda row: row["unrealized_pnl"],
        reverse=True,
    )
    winners = [row for row in by_pnl if row["unrealized_pnl"] > Decimal("0")][:3]
    losers = [row for row in by_pnl if row["unrealized_pnl"] < Decimal("0")][-3:][::-1]

    return {
        "total_market_value": total_value,
        "total_cost_basis": total_cost,
        "total_unrealized_pnl": total_pnl,
        "total_unrealized_pnl_percent": total_pnl_pct,
        "day_change": day_change,
        "day_change_percent": day_change_pct,
        "positions_count": len(holdings),
        "top_holdings": top_holdings,
        "top_winners": winners,
        "top_losers": losers,
    }


def check_position_alerts(
    positions: list[Position],
    concentration_threshold: Decimal = POSITION_ALERT_THRESHOLD,
) -> list[dict]:
    """
    Flag single-position concentration and large unrealized losses.

    A position above the concentration threshold raises a MEDIUM alert
    (HIGH above 40%). A position down more than 20% raises a MEDIUM loss
    alert (HIGH below -40%).
    """
    alerts = []
    weights = calculate_position_weights(positions)

    if weights:
        top_ticker, top_weight = max(weights.items(), key=lambda item: item[1])
        if top_weight > concentration_threshold:
            alerts.append({
                "type": "CONCENTRATION",
                "severity": "HIGH" if top_weight > POSITION_HIGH_THRESHOLD else "MEDIUM",
                "title": "Position concentration detected",
                "message": f"{top_ticker} represents {top_weight:.1f}% of portfolio",
                "ticker": top_ticker,
            })

    for position in active_positions(positions):
        pnl_pct = unrealized_pnl_percent(position)
        if pnl_pct < LOSS_ALERT_THRESHOLD:
            alerts.append({
                "type": "LOSS",
                "severity": "HIGH" if pnl_pct < LOSS_HIGH_THRESHOLD else "MEDIUM",
                "title": "Significant unrealized loss",
                "message": f"{position.ticker} is down {abs(pnl_pct):.1f}%",
                "ticker": position.ticker,
            })

    return alerts
