"""
Analytics module for the portfolio analytics engine.

Provides return and risk statistics, allocation analysis, correlation
estimation, KPIs, fees and realized P&L calculations.
"""

from folio_analytics.analytics.returns import (
    period_returns,
    expected_return,
    standard_deviation,
    sharpe_ratio,
    sortino_ratio,
    max_drawdown,
    value_at_risk,
    calculate_beta,
)
from folio_analytics.analytics.allocation import (
    calculate_allocations,
    concentration_alerts,
)
from folio_analytics.analytics.pnl import calculate_realized_pnl
from folio_analytics.analytics.fees import calculate_fees_summary

__all__ = [
    "period_returns",
    "expected_return",
    "standard_deviation",
    "sharpe_ratio",
    "sortino_ratio",
    "max_drawdown",
    "value_at_risk",
    "calculate_beta",
    "calculate_allocations",
    "concentration_alerts",
    "calculate_realized_pnl",
    "calculate_fees_summary",
]
