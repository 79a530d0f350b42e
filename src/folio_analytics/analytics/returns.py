"""
Return and risk statistics over portfolio valuation snapshots.

Snapshots are usually supplied newest-first (as returned by descending-date
queries). Period returns are taken over adjacent pairs in the supplied order;
drawdown is measured over the chronologically sorted series.

Calculates:
- Period returns (simple, not log)
- Annualized expected return and volatility
- Sharpe and Sortino ratios
- Maximum drawdown
- Value at Risk
- Beta and a heuristic alpha

Every ratio guards its denominator; results are always finite.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from folio_analytics.models import PortfolioSnapshot


PERIODS_PER_YEAR = 252
RISK_FREE_RATE = 0.05

# Reported for portfolios without enough history
DEFAULT_EXPECTED_RETURN = 0.08
DEFAULT_VOLATILITY = 0.15

VAR_CONFIDENCE = 0.95


@dataclass
class ValueAtRisk:
    """Empirical VaR as a percent return and a dollar amount."""
    percent: float
    amount: float

    def to_dict(self) -> dict:
        return {"percent": self.percent, "amount": self.amount}


def _finite(value: float, fallback: float = 0.0) -> float:
    value = float(value)
    return value if math.isfinite(value) else fallback


def normalize_snapshots(snapshots: Iterable[PortfolioSnapshot]) -> list[PortfolioSnapshot]:
    """
    Order snapshots newest-first with one snapshot per date.

    When a date appears more than once the last supplied snapshot wins.
    """
    by_date: dict = {}
    for snapshot in snapshots:
        by_date[snapshot.date] = snapshot
    return sorted(by_date.values(), key=lambda s: s.date, reverse=True)


def returns_from_values(values: Sequence[float]) -> list[float]:
    """
    Simple returns over adjacent pairs of a value series.

    values[i - 1] is the current value and values[i] the previous one,
    matching a newest-first series. Pairs with a non-positive previous
    value are skipped.
    """
    returns = []
    for i in range(1, len(values)):
        previous = float(values[i])
        current = float(values[i - 1])
        if previous > 0:
            returns.append((current - previous) / previous)
    return returns


def period_returns(snapshots: Sequence[PortfolioSnapshot]) -> list[float]:
    """Simple period returns of the snapshot total values, in supplied order."""
    return returns_from_values([float(s.total_value) for s in snapshots])


def benchmark_returns(snapshots: Sequence[PortfolioSnapshot]) -> list[Optional[float]]:
    """
    Benchmark returns aligned pair-for-pair with period_returns.

    Pairs skipped by period_returns are skipped here too. A pair whose
    benchmark values are missing or non-positive yields None.
    """
    aligned: list[Optional[float]] = []
    for i in range(1, len(snapshots)):
        if float(snapshots[i].total_value) <= 0:
            continue
        previous = snapshots[i].benchmark_value
        current = snapshots[i - 1].benchmark_value
        if previous is None or current is None or float(previous) <= 0:
            aligned.append(None)
        else:
            aligned.append((float(current) - float(previous)) / float(previous))
    return aligned


def expected_return(
    returns: Sequence[float],
    periods_per_year: int = PERIODS_PER_YEAR,
    default: float = DEFAULT_EXPECTED_RETURN,
) -> float:
    """Annualized mean return; the default when there is no history."""
    if len(returns) == 0:
        return default
    return _finite(np.mean(returns) * periods_per_year)


def standard_deviation(
    returns: Sequence[float],
    periods_per_year: int = PERIODS_PER_YEAR,
    default: float = DEFAULT_VOLATILITY,
) -> float:
    """Annualized sample standard deviation; the default below two observations."""
    if len(returns) < 2:
        return default
    return _finite(np.std(returns, ddof=1) * math.sqrt(periods_per_year))


def sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = RISK_FREE_RATE,
    periods_per_year: int = PERIODS_PER_YEAR,
    default_return: float = DEFAULT_EXPECTED_RETURN,
    default_volatility: float = DEFAULT_VOLATILITY,
) -> float:
    """(expected return - risk-free rate) / volatility, 0 when volatility is 0."""
    mean = expected_return(returns, periods_per_year, default_return)
    volatility = standard_deviation(returns, periods_per_year, default_volatility)
    return ratio(mean - risk_free_rate, volatility)


def ratio(numerator: float, denominator: float) -> float:
    """Guarded division returning 0 for a zero or non-finite denominator."""
    if denominator == 0 or not math.isfinite(denominator):
        return 0.0
    return _finite(numerator / denominator)


def sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = RISK_FREE_RATE,
    periods_per_year: int = PERIODS_PER_YEAR,
    default_return: float = DEFAULT_EXPECTED_RETURN,
    default_volatility: float = DEFAULT_VOLATILITY,
) -> float:
    """
    Sharpe-like ratio using the deviation of negative returns only.

    Returns 0 when no return is negative. A single negative return falls
    back to the default volatility as its deviation.
    """
    downside = [r for r in returns if r < 0]
    if not downside:
        return 0.0
    downside_deviation = standard_deviation(downside, periods_per_year, default_volatility)
    mean = expected_return(returns, periods_per_year, default_return)
    return ratio(mean - risk_free_rate, downside_deviation)


def max_drawdown_from_values(values: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline of a chronological value series.

    Returns:
        Drawdown as a positive fraction, 0 for fewer than two values
    """
    if len(values) < 2:
        return 0.0

    series = pd.Series([float(v) for v in values])
    running_peak = series.cummax()
    drawdown = (running_peak - series) / running_peak.where(running_peak > 0)
    result = drawdown.max()
    if pd.isna(result):
        return 0.0
    return _finite(max(result, 0.0))


def max_drawdown(snapshots: Sequence[PortfolioSnapshot]) -> float:
    """Maximum drawdown over the snapshots sorted chronologically."""
    chronological = sorted(snapshots, key=lambda s: s.date)
    return max_drawdown_from_values([float(s.total_value) for s in chronological])


def value_at_risk(
    returns: Sequence[float],
    total_value: float,
    confidence: float = VAR_CONFIDENCE,
) -> ValueAtRisk:
    """
    Empirical Value at Risk.

    The VaR return is the sorted return at index floor(n * (1 - confidence)).

    Args:
        returns: Period returns
        total_value: Current total market value
        confidence: Confidence level (default 95%)

    Returns:
        ValueAtRisk with percent (VaR return * 100) and dollar amount
    """
    if len(returns) == 0:
        return ValueAtRisk(percent=0.0, amount=0.0)

    sorted_returns = sorted(returns)
    index = int(math.floor(len(sorted_returns) * (1 - confidence) + 1e-9))
    index = min(index, len(sorted_returns) - 1)
    var_return = sorted_returns[index]

    return ValueAtRisk(
        percent=_finite(var_return * 100),
        amount=_finite(abs(var_return) * float(total_value)),
    )


def calculate_beta(
    returns: Sequence[float],
    market_returns: Sequence[Optional[float]],
    min_observations: int = 2,
) -> Optional[float]:
    """
    Beta of portfolio returns against benchmark returns.

    Pairs where either side is missing are dropped. Returns None when
    fewer than min_observations aligned pairs remain or the benchmark has
    no variance, so callers can tell an estimate from a computed value.
    """
    aligned = pd.DataFrame({
        "portfolio": pd.Series(list(returns), dtype="float64"),
        "benchmark": pd.Series(list(market_returns), dtype="float64"),
    }).dropna()

    if len(aligned) < max(min_observations, 2):
        return None

    benchmark_variance = aligned["benchmark"].var()
    if not benchmark_variance or not math.isfinite(benchmark_variance):
        return None

    covariance = aligned["portfolio"].cov(aligned["benchmark"])
    return _finite(covariance / benchmark_variance, fallback=1.0)


def alpha(expected: float, beta: float) -> float:
    """
    Simplified alpha: expected return in percent minus beta * 10.

    This is a display heuristic, not a CAPM alpha.
    """
    return _finite(expected * 100 - beta * 10)


def sharpe_rating(sharpe: float) -> str:
    """Qualitative rating of a Sharpe ratio."""
    if sharpe >= 2:
        return "Excellent"
    if sharpe >= 1.5:
        return "Very Good"
    if sharpe >= 1:
        return "Good"
    if sharpe >= 0.5:
        return "Acceptable"
    return "Poor"


def beta_interpretation(beta: float) -> str:
    """Qualitative interpretation of a beta."""
    if beta > 1.5:
        return "Very High Volatility"
    if beta > 1.2:
        return "High Volatility"
    if beta >= 0.8:
        return "Market-Like"
    if beta >= 0.5:
        return "Low Volatility"
    return "Very Low Volatility"
