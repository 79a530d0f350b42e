"""
Realized P&L calculations for the portfolio analytics engine.

Turns the lot consumptions produced by a FIFO sale into realized gains,
split by holding period.
"""

from datetime import date
from decimal import Decimal

from folio_analytics.models import GainType, LotConsumption
from folio_analytics.portfolio.lots import LONG_TERM_DAYS, holding_days, is_long_term


def classify_consumption(
    consumption: LotConsumption,
    sale_date: date,
    long_term_days: int = LONG_TERM_DAYS,
) -> GainType:
    """Short-term or long-term classification of one lot consumption."""
    days_held = holding_days(consumption.purchase_date, sale_date)
    return GainType.LONG_TERM if is_long_term(days_held, long_term_days) else GainType.SHORT_TERM


def calculate_realized_pnl(
    consumptions: list[LotConsumption],
    sale_price: Decimal,
    sale_date: date,
    long_term_days: int = LONG_TERM_DAYS,
) -> dict[str, Decimal]:
    """
    Calculate realized P&L for a sale.

    Args:
        consumptions: Lot consumptions returned by apply_sale
        sale_price: Sale price per unit
        sale_date: Date of the sale
        long_term_days: Holding-period threshold in days

    Returns:
        Dictionary with realized P&L summary:
        - total_realized_pnl
        - short_term_realized
        - long_term_realized
        - total_proceeds
        - total_cost_basis
    """
    short_term_realized = Decimal("0")
    long_term_realized = Decimal("0")
    total_proceeds = Decimal("0")
    total_cost = Decimal("0")

    for consumption in consumptions:
        proceeds = consumption.quantity * sale_price
        cost = consumption.quantity * consumption.cost_basis
        realized = proceeds - cost

        total_proceeds += proceeds
        total_cost += cost

        gain_type = classify_consumption(consumption, sale_date, long_term_days)
        if gain_type == GainType.LONG_TERM:
            long_term_realized += realized
        else:
            short_term_realized += realized

    return {
        "total_realized_pnl": short_term_realized + long_term_realized,
        "short_term_realized": short_term_realized,
        "long_term_realized": long_term_realized,
        "total_proceeds": total_proceeds,
        "total_cost_basis": total_cost,
    }
