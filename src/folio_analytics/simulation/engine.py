"""
What-if simulation engine.

Applies a batch of hypothetical changes (add/remove/adjust) to a copy of a
portfolio's positions and compares the projected metric set with the real
one. Nothing is persisted and the input portfolio is never mutated.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from folio_analytics.data.providers import get_statistics_provider
from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import (
    AssetClass,
    Change,
    ChangeAction,
    EngineConfig,
    MetricSet,
    Portfolio,
    SimulatedPosition,
)
from folio_analytics.portfolio.lots import weighted_average_cost
from folio_analytics.simulation.frontier import EfficientFrontier, calculate_efficient_frontier
from folio_analytics.simulation.metrics import (
    calculate_metric_set,
    metric_delta,
    simulated_metric_set,
)


UNKNOWN_SECTOR = "Unknown"


class SimulationError(Exception):
    """Raised when a simulation request is invalid."""
    pass


@dataclass
class SimulationResult:
    """Outcome of one what-if simulation."""
    current: MetricSet
    simulated: MetricSet
    delta: dict[str, dict[str, float]]
    efficient_frontier: EfficientFrontier
    simulated_positions: list[SimulatedPosition] = field(default_factory=list)
    removed_positions: list[SimulatedPosition] = field(default_factory=list)
    statistics_source: str = ""
    is_synthetic: bool = False

    def to_dict(self) -> dict:
        return {
            "current": self.current.to_dict(),
            "simulated": self.simulated.to_dict(),
            "delta": self.delta,
            "efficient_frontier": self.efficient_frontier.to_dict(),
            "simulated_positions": [p.to_dict() for p in self.simulated_positions],
            "removed_positions": [p.to_dict() for p in self.removed_positions],
            "statistics_source": self.statistics_source,
            "is_synthetic": self.is_synthetic,
        }


def _validate_change(change: Change) -> None:
    if not isinstance(change.action, ChangeAction):
        raise SimulationError(f"Unknown change action: {change.action}")
    if not change.ticker:
        raise SimulationError("Change is missing a ticker")
    if change.quantity < Decimal("0"):
        raise SimulationError(
            f"Negative quantity for {change.ticker}: {change.quantity}"
        )
    if change.price is not None and change.price < Decimal("0"):
        raise SimulationError(f"Negative price for {change.ticker}: {change.price}")


def apply_changes(
    portfolio: Portfolio,
    changes: Sequence[Change],
) -> tuple[list[SimulatedPosition], list[SimulatedPosition]]:
    """
    Apply changes in order to a working copy of the positions.

    - add on an existing ticker increases quantity; with a price the
      average cost is recomputed
    - add on an absent ticker creates a new STOCK position in sector
      "Unknown" priced at the change price
    - remove flags the position and zeroes its quantity
    - adjust sets the quantity to the change quantity

    remove and adjust on an absent ticker are ignored.

    Returns:
        Tuple of (simulated positions with weights, removed positions)

    Raises:
        SimulationError: If a change is malformed
    """
    working: dict[str, SimulatedPosition] = {}
    for position in portfolio.positions:
        working[position.ticker] = SimulatedPosition.from_position(position)

    for change in changes:
        _validate_change(change)
        existing = working.get(change.ticker)

        if change.action == ChangeAction.ADD:
            if existing is None:
                price = change.price
                working[change.ticker] = SimulatedPosition(
                    ticker=change.ticker,
                    quantity=change.quantity,
                    avg_cost_basis=price if price is not None else Decimal("0"),
                    current_price=price,
                    sector=UNKNOWN_SECTOR,
                    asset_class=AssetClass.STOCK,
                    is_new=True,
                )
                continue

            if change.price is not None:
                existing.avg_cost_basis = weighted_average_cost(
                    existing.quantity, existing.avg_cost_basis, change.quantity, change.price
                )
            existing.quantity += change.quantity
            existing.reported_market_value = None
            existing.is_removed = False

        elif change.action == ChangeAction.REMOVE:
            if existing is None:
                continue
            existing.is_removed = True
            existing.quantity = Decimal("0")
            existing.reported_market_value = None

        elif change.action == ChangeAction.ADJUST:
            if existing is None:
                continue
            existing.quantity = change.quantity
            existing.reported_market_value = None
            existing.is_removed = False

    kept = [p for p in working.values() if not p.is_removed]
    removed = [p for p in working.values() if p.is_removed]

    total_value = sum(
        (p.market_value for p in kept if p.quantity > Decimal("0")),
        Decimal("0"),
    )
    for position in kept:
        if total_value > Decimal("0") and position.quantity > Decimal("0"):
            position.weight = float(position.market_value / total_value * Decimal("100"))
        else:
            position.weight = 0.0
    for position in removed:
        position.weight = 0.0

    return kept, removed


class WhatIfEngine:
    """
    Stateless what-if simulation engine.

    Calls for different portfolios may run in parallel; the engine holds
    only its configuration and statistics provider.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        provider: Optional[MarketStatisticsProvider] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (defaults when omitted)
            provider: Statistics provider (built from config when omitted)
        """
        self.config = config or EngineConfig()
        if provider is None:
            provider = get_statistics_provider(
                self.config.statistics_provider,
                seed=self.config.synthetic_seed,
            )
        self.provider = provider

    def baseline(self, portfolio: Portfolio) -> MetricSet:
        """Metric set of the real portfolio."""
        return calculate_metric_set(portfolio, self.provider, self.config)

    def simulate(
        self,
        portfolio: Portfolio,
        changes: Sequence[Change],
        allow_empty: bool = False,
    ) -> SimulationResult:
        """
        Run a what-if simulation.

        Args:
            portfolio: Base portfolio (not mutated)
            changes: Changes applied in order
            allow_empty: Accept an empty change list (result is an identity)

        Returns:
            SimulationResult

        Raises:
            SimulationError: If the portfolio id or change list is empty, or a change is malformed
        """
        if not portfolio.portfolio_id:
            raise SimulationError("Portfolio id is required")
        if not changes and not allow_empty:
            raise SimulationError("At least one change is required")

        positions, removed = apply_changes(portfolio, changes)

        current = self.baseline(portfolio)
        simulated = simulated_metric_set(current, positions, self.config)

        return SimulationResult(
            current=current,
            simulated=simulated,
            delta=metric_delta(current, simulated),
            efficient_frontier=calculate_efficient_frontier(current, simulated),
            simulated_positions=positions,
            removed_positions=removed,
            statistics_source=self.provider.name,
            is_synthetic=self.provider.is_synthetic,
        )
