"""
Portfolio management module for the portfolio analytics engine.

Provides the FIFO tax lot ledger and holdings aggregation.
"""

from folio_analytics.portfolio.lots import (
    InsufficientSharesError,
    apply_sale,
    analyze_lots,
    weighted_average_cost,
    add_lot,
    record_sale,
)
from folio_analytics.portfolio.holdings import (
    calculate_total_value,
    calculate_position_weights,
    summarize_portfolio,
    check_position_alerts,
)

__all__ = [
    "InsufficientSharesError",
    "apply_sale",
    "analyze_lots",
    "weighted_average_cost",
    "add_lot",
    "record_sale",
    "calculate_total_value",
    "calculate_position_weights",
    "summarize_portfolio",
    "check_position_alerts",
]
