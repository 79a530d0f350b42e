"""
Efficient-frontier sample curve for the simulation view.

The curve is a fixed, deterministic visual reference (return = 3% + risk / 2
over 5%..19% risk), not a mean-variance optimization. Portfolio points are
plotted on the same percent scale.
"""

from dataclasses import dataclass, field
from typing import Optional

from folio_analytics.models import MetricSet


FRONTIER_MIN_RISK = 5
FRONTIER_MAX_RISK = 20
FRONTIER_STEP = 2
FRONTIER_BASE_RETURN = 3.0
FRONTIER_SLOPE = 0.5


@dataclass
class FrontierPoint:
    """Risk/return pair in percent."""
    risk: float
    expected_return: float

    def to_dict(self) -> dict:
        return {"risk": self.risk, "return": self.expected_return}


@dataclass
class EfficientFrontier:
    """Sample curve plus the current and simulated portfolio points."""
    frontier: list[FrontierPoint] = field(default_factory=list)
    current_portfolio: Optional[FrontierPoint] = None
    simulated_portfolio: Optional[FrontierPoint] = None

    def to_dict(self) -> dict:
        return {
            "frontier": [p.to_dict() for p in self.frontier],
            "current_portfolio": self.current_portfolio.to_dict() if self.current_portfolio else None,
            "simulated_portfolio": self.simulated_portfolio.to_dict() if self.simulated_portfolio else None,
        }


def frontier_curve() -> list[FrontierPoint]:
    """Sample points every 2% of risk from 5% through 19%."""
    return [
        FrontierPoint(
            risk=float(risk),
            expected_return=max(0.0, FRONTIER_BASE_RETURN + risk * FRONTIER_SLOPE),
        )
        for risk in range(FRONTIER_MIN_RISK, FRONTIER_MAX_RISK, FRONTIER_STEP)
    ]


def portfolio_point(metrics: MetricSet) -> FrontierPoint:
    """A metric set plotted as (volatility %, expected return %)."""
    return FrontierPoint(
        risk=metrics.standard_deviation * 100,
        expected_return=metrics.expected_return * 100,
    )


def calculate_efficient_frontier(
    current: MetricSet,
    simulated: Optional[MetricSet] = None,
) -> EfficientFrontier:
    return EfficientFrontier(
        frontier=frontier_curve(),
        current_portfolio=portfolio_point(current),
        simulated_portfolio=portfolio_point(simulated) if simulated is not None else None,
    )
