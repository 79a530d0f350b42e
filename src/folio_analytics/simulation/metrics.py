"""
Metric set calculation for the what-if engine.

Calculates the risk/return profile of a portfolio state:
- Total value
- Expected return and volatility (annualized)
- Sharpe ratio
- Maximum drawdown
- Beta

Simulated metrics have no price history of their own and are derived from
the baseline (see simulated_metric_set).
"""

from decimal import Decimal
from typing import Optional, Sequence

from folio_analytics.analytics.returns import (
    expected_return,
    max_drawdown,
    normalize_snapshots,
    period_returns,
    ratio,
    sharpe_ratio,
    standard_deviation,
)
from folio_analytics.analytics.risk import insufficient_history_fields, resolve_beta
from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import EngineConfig, MetricSet, Portfolio, SimulatedPosition
from folio_analytics.portfolio.holdings import calculate_total_value


def calculate_metric_set(
    portfolio: Portfolio,
    provider: MarketStatisticsProvider,
    config: Optional[EngineConfig] = None,
) -> MetricSet:
    """
    Calculate the metric set of a real portfolio from its snapshots.

    Args:
        portfolio: Positions and snapshots
        provider: Statistics provider used for beta
        config: Engine configuration (defaults when omitted)

    Returns:
        MetricSet; fields holding a fallback are listed in estimated_fields
    """
    config = config or EngineConfig()
    snapshots = normalize_snapshots(portfolio.snapshots)
    returns = period_returns(snapshots)

    beta, beta_estimated = resolve_beta(portfolio, provider, config.min_beta_observations)

    estimated = insufficient_history_fields(returns)
    if beta_estimated:
        estimated.append("beta")

    return MetricSet(
        total_value=float(calculate_total_value(portfolio.positions)),
        expected_return=expected_return(
            returns, config.periods_per_year, config.default_expected_return
        ),
        standard_deviation=standard_deviation(
            returns, config.periods_per_year, config.default_volatility
        ),
        sharpe_ratio=sharpe_ratio(
            returns,
            config.risk_free_rate,
            config.periods_per_year,
            config.default_expected_return,
            config.default_volatility,
        ),
        max_drawdown=max_drawdown(snapshots),
        beta=beta,
        estimated_fields=tuple(estimated),
    )


def simulated_metric_set(
    baseline: MetricSet,
    positions: Sequence[SimulatedPosition],
    config: Optional[EngineConfig] = None,
) -> MetricSet:
    """
    Approximate the metric set of a simulated position set.

    PLACEHOLDER: when any position is new, volatility is scaled by
    diversification_volatility_factor and expected return by
    diversification_return_factor, then Sharpe is recomputed. This is a
    flat diversification heuristic, not a covariance re-estimation.
    Drawdown and beta carry over from the baseline.

    Args:
        baseline: Metric set of the real portfolio
        positions: Simulated positions (removed ones excluded)
        config: Engine configuration (defaults when omitted)
    """
    config = config or EngineConfig()
    total_value = float(sum(
        (p.market_value for p in positions if not p.is_removed and p.quantity > 0),
        Decimal("0"),
    ))

    mean = baseline.expected_return
    volatility = baseline.standard_deviation
    sharpe = baseline.sharpe_ratio
    estimated = list(baseline.estimated_fields)

    if any(p.is_new for p in positions):
        volatility *= config.diversification_volatility_factor
        mean *= config.diversification_return_factor
        sharpe = ratio(mean - config.risk_free_rate, volatility)
        for name in ("expected_return", "standard_deviation", "sharpe_ratio"):
            if name not in estimated:
                estimated.append(name)

    return MetricSet(
        total_value=total_value,
        expected_return=mean,
        standard_deviation=volatility,
        sharpe_ratio=sharpe,
        max_drawdown=baseline.max_drawdown,
        beta=baseline.beta,
        estimated_fields=tuple(estimated),
    )


def metric_delta(current: MetricSet, simulated: MetricSet) -> dict[str, dict[str, float]]:
    """
    Per-field comparison of two metric sets.

    Returns:
        Dictionary mapping each MetricSet field to current, simulated and
        change (simulated - current)
    """
    delta = {}
    for name in MetricSet.FIELDS:
        before = getattr(current, name)
        after = getattr(simulated, name)
        delta[name] = {
            "current": before,
            "simulated": after,
            "change": after - before,
        }
    return delta
