"""
Simulation module for the portfolio analytics engine.

Provides the what-if engine that applies hypothetical trades to a
portfolio and compares projected metrics with the real ones.
"""

from folio_analytics.simulation.engine import (
    SimulationError,
    SimulationResult,
    WhatIfEngine,
    apply_changes,
)
from folio_analytics.simulation.metrics import (
    calculate_metric_set,
    simulated_metric_set,
    metric_delta,
)
from folio_analytics.simulation.frontier import (
    EfficientFrontier,
    calculate_efficient_frontier,
)

__all__ = [
    "SimulationError",
    "SimulationResult",
    "WhatIfEngine",
    "apply_changes",
    "calculate_metric_set",
    "simulated_metric_set",
    "metric_delta",
    "EfficientFrontier",
    "calculate_efficient_frontier",
]
