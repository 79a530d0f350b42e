"""
Dashboard KPI bundle and performance chart series.

Numeric fields are the source of truth; the formatted strings are
cosmetic and can be rebuilt from them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from folio_analytics.analytics.returns import (
    beta_interpretation,
    max_drawdown,
    normalize_snapshots,
    period_returns,
    sharpe_rating,
    sharpe_ratio,
)
from folio_analytics.analytics.risk import insufficient_history_fields, resolve_beta
from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import EngineConfig, Portfolio, PortfolioSnapshot
from folio_analytics.portfolio.holdings import (
    calculate_cash_available,
    calculate_total_cost,
    calculate_total_value,
)


def format_currency(value: Decimal | float) -> str:
    """Format a dollar amount as $1,234.56 (-$1,234.56 when negative)."""
    value = float(value)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_signed_percent(value: Decimal | float) -> str:
    value = float(value)
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


@dataclass
class KPIBundle:
    """Headline metrics of a portfolio."""
    total_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    sharpe_ratio: float
    beta: float
    max_drawdown: float
    cash_available: Decimal
    cash_percent: Decimal
    estimated_fields: tuple[str, ...] = ()

    @property
    def sharpe_rating(self) -> str:
        return sharpe_rating(self.sharpe_ratio)

    @property
    def beta_interpretation(self) -> str:
        return beta_interpretation(self.beta)

    def to_dict(self) -> dict:
        return {
            "total_value": {
                "value": self.total_value,
                "formatted": format_currency(self.total_value),
            },
            "unrealized_pl": {
                "value": self.unrealized_pl,
                "percent": self.unrealized_pl_percent,
                "formatted": format_currency(self.unrealized_pl),
                "formatted_percent": format_signed_percent(self.unrealized_pl_percent),
            },
            "sharpe_ratio": {
                "value": self.sharpe_ratio,
                "formatted": f"{self.sharpe_ratio:.2f}",
                "rating": self.sharpe_rating,
            },
            "beta": {
                "value": self.beta,
                "formatted": f"{self.beta:.2f}",
                "interpretation": self.beta_interpretation,
            },
            "max_drawdown": {
                "value": self.max_drawdown,
                "formatted": f"{self.max_drawdown * 100:.1f}%",
            },
            "cash_available": {
                "value": self.cash_available,
                "percent": self.cash_percent,
                "formatted": format_currency(self.cash_available),
                "formatted_percent": f"{float(self.cash_percent):.1f}",
            },
            "estimated_fields": list(self.estimated_fields),
        }


def calculate_kpis(
    portfolio: Portfolio,
    provider: MarketStatisticsProvider,
    config: Optional[EngineConfig] = None,
) -> KPIBundle:
    """
    Calculate the KPI bundle for a portfolio.

    Args:
        portfolio: Positions and snapshots
        provider: Statistics provider used for beta
        config: Engine configuration (defaults when omitted)

    Returns:
        KPIBundle
    """
    config = config or EngineConfig()
    snapshots = normalize_snapshots(portfolio.snapshots)
    returns = period_returns(snapshots)

    total_value = calculate_total_value(portfolio.positions)
    total_cost = calculate_total_cost(portfolio.positions)
    unrealized = total_value - total_cost
    unrealized_pct = unrealized / total_cost * Decimal("100") if total_cost > Decimal("0") else Decimal("0")

    cash = calculate_cash_available(portfolio.positions)
    cash_pct = cash / total_value * Decimal("100") if total_value > Decimal("0") else Decimal("0")

    beta, beta_estimated = resolve_beta(portfolio, provider, config.min_beta_observations)

    estimated = [f for f in insufficient_history_fields(returns) if f == "sharpe_ratio"]
    if beta_estimated:
        estimated.append("beta")

    return KPIBundle(
        total_value=total_value,
        unrealized_pl=unrealized,
        unrealized_pl_percent=unrealized_pct,
        sharpe_ratio=sharpe_ratio(
            returns,
            config.risk_free_rate,
            config.periods_per_year,
            config.default_expected_return,
            config.default_volatility,
        ),
        beta=beta,
        max_drawdown=max_drawdown(snapshots),
        cash_available=cash,
        cash_percent=cash_pct,
        estimated_fields=tuple(estimated),
    )


@dataclass
class PerformancePoint:
    """One point of the portfolio-vs-benchmark chart, rebased to 100."""
    date: date
    value: float
    benchmark: Optional[float]
    raw_value: float
    raw_benchmark: Optional[float]

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "value": self.value,
            "benchmark": self.benchmark,
            "raw_value": self.raw_value,
            "raw_benchmark": self.raw_benchmark,
        }


def performance_series(snapshots: Sequence[PortfolioSnapshot]) -> list[PerformancePoint]:
    """
    Chronological chart series with the oldest snapshot as 100.

    The benchmark is rebased the same way against its oldest value; points
    without a benchmark value carry None. Empty input gives an empty series.
    """
    chronological = list(reversed(normalize_snapshots(snapshots)))
    if not chronological:
        return []

    start_value = float(chronological[0].total_value)
    start_benchmark = next(
        (float(s.benchmark_value) for s in chronological if s.benchmark_value is not None),
        None,
    )

    points = []
    for snapshot in chronological:
        raw_value = float(snapshot.total_value)
        raw_benchmark = float(snapshot.benchmark_value) if snapshot.benchmark_value is not None else None

        if raw_benchmark is None or not start_benchmark or start_benchmark <= 0:
            benchmark = None
        else:
            benchmark = raw_benchmark / start_benchmark * 100

        points.append(
            PerformancePoint(
                date=snapshot.date,
                value=raw_value / start_value * 100 if start_value > 0 else 100.0,
                benchmark=benchmark,
                raw_value=raw_value,
                raw_benchmark=raw_benchmark,
            )
        )

    return points
