"""
Risk analysis bundle for a portfolio.

Combines the snapshot statistics, provider-estimated beta and sector
allocation into one report with rule-based recommendations.
"""

from dataclasses import dataclass, field
from typing import Optional

from folio_analytics.analytics.allocation import AllocationSlice, calculate_allocations
from folio_analytics.analytics.returns import (
    ValueAtRisk,
    alpha,
    expected_return,
    max_drawdown,
    normalize_snapshots,
    period_returns,
    sharpe_ratio,
    sortino_ratio,
    standard_deviation,
    value_at_risk,
)
from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import EngineConfig, Portfolio
from folio_analytics.portfolio.holdings import calculate_total_value


HIGH_BETA_THRESHOLD = 1.3
LOW_SHARPE_THRESHOLD = 1.0
TOP_SECTORS = 5
DEFAULT_BETA = 1.0


@dataclass
class RiskAnalysis:
    """Risk report for one portfolio."""
    volatility: float
    beta: float
    alpha: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    value_at_risk: ValueAtRisk
    sector_concentration: list[AllocationSlice] = field(default_factory=list)
    recommendations: list[dict] = field(default_factory=list)
    estimated_fields: tuple[str, ...] = ()
    statistics_source: str = ""

    def to_dict(self) -> dict:
        return {
            "volatility": self.volatility,
            "beta": self.beta,
            "alpha": self.alpha,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "max_drawdown": self.max_drawdown,
            "value_at_risk": self.value_at_risk.to_dict(),
            "sector_concentration": [s.to_dict() for s in self.sector_concentration],
            "recommendations": self.recommendations,
            "estimated_fields": list(self.estimated_fields),
            "statistics_source": self.statistics_source,
        }


def resolve_beta(
    portfolio: Portfolio,
    provider: MarketStatisticsProvider,
    min_observations: int = 2,
) -> tuple[float, bool]:
    """
    Beta from the provider, or the market beta when it cannot estimate one.

    Returns:
        Tuple of (beta, is_estimated)
    """
    beta: Optional[float] = provider.estimate_beta(
        portfolio.snapshots, min_observations=min_observations
    )
    if beta is None:
        return DEFAULT_BETA, True
    return beta, provider.is_synthetic


def insufficient_history_fields(returns: list[float]) -> list[str]:
    """Names of statistics that fall back to defaults for this return series."""
    fields = []
    if len(returns) == 0:
        fields.append("expected_return")
    if len(returns) < 2:
        fields.extend(["standard_deviation", "sharpe_ratio"])
    return fields


def build_recommendations(
    beta: float,
    top_sector: Optional[AllocationSlice],
    sharpe: float,
    config: Optional[EngineConfig] = None,
) -> list[dict]:
    """Rule-based recommendations for beta, sector concentration and Sharpe."""
    config = config or EngineConfig()
    recommendations = []

    if beta > HIGH_BETA_THRESHOLD:
        recommendations.append({
            "type": "risk",
            "message": "High beta indicates elevated market sensitivity. Consider adding defensive positions.",
            "action": "Add VIG or defensive ETFs",
        })

    if top_sector is not None and top_sector.weight > config.concentration_threshold:
        recommendations.append({
            "type": "concentration",
            "message": (
                f"{top_sector.name} sector at {top_sector.weight:.1f}% exceeds "
                f"recommended {config.concentration_threshold:.0f}% limit."
            ),
            "action": (
                f"Reduce {top_sector.name} exposure by "
                f"{top_sector.weight - config.target_sector_weight:.1f}%"
            ),
        })

    if sharpe < LOW_SHARPE_THRESHOLD:
        recommendations.append({
            "type": "efficiency",
            "message": "Risk-adjusted returns below optimal. Consider rebalancing.",
            "action": "Review underperforming positions",
        })

    return recommendations


def analyze_risk(
    portfolio: Portfolio,
    provider: MarketStatisticsProvider,
    config: Optional[EngineConfig] = None,
) -> RiskAnalysis:
    """
    Comprehensive risk analysis of a portfolio.

    Volatility is the annualized standard deviation of period returns.
    VaR is scaled by the total value of the active positions.

    Args:
        portfolio: Positions and snapshots
        provider: Statistics provider used for beta
        config: Engine configuration (defaults when omitted)

    Returns:
        RiskAnalysis
    """
    config = config or EngineConfig()
    snapshots = normalize_snapshots(portfolio.snapshots)
    returns = period_returns(snapshots)

    volatility = standard_deviation(returns, config.periods_per_year, config.default_volatility)
    sharpe = sharpe_ratio(
        returns,
        config.risk_free_rate,
        config.periods_per_year,
        config.default_expected_return,
        config.default_volatility,
    )
    sortino = sortino_ratio(
        returns,
        config.risk_free_rate,
        config.periods_per_year,
        config.default_expected_return,
        config.default_volatility,
    )
    beta, beta_estimated = resolve_beta(portfolio, provider, config.min_beta_observations)
    mean = expected_return(returns, config.periods_per_year, config.default_expected_return)

    total_value = calculate_total_value(portfolio.positions)
    allocation = calculate_allocations(portfolio.positions)

    estimated = [
        name for name in insufficient_history_fields(returns)
        if name in ("standard_deviation", "sharpe_ratio")
    ]
    estimated = ["volatility" if name == "standard_deviation" else name for name in estimated]
    if beta_estimated:
        estimated.append("beta")
    if not returns or beta_estimated:
        estimated.append("alpha")

    return RiskAnalysis(
        volatility=volatility,
        beta=beta,
        alpha=alpha(mean, beta),
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        max_drawdown=max_drawdown(snapshots),
        value_at_risk=value_at_risk(returns, float(total_value), config.var_confidence),
        sector_concentration=allocation.by_sector[:TOP_SECTORS],
        recommendations=build_recommendations(beta, allocation.top_sector, sharpe, config),
        estimated_fields=tuple(estimated),
        statistics_source=provider.name,
    )
