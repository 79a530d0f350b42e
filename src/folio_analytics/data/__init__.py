"""
Data ingestion module for the portfolio analytics engine.

Provides functionality for loading positions, tax lots, valuation
snapshots, price history and what-if change sets from CSV/YAML files.
"""

from folio_analytics.data.loaders import (
    DataLoadError,
    load_positions,
    load_lots,
    save_lots,
    load_snapshots,
    load_price_history,
    load_changes,
)
from folio_analytics.data.schemas import (
    POSITIONS_SCHEMA,
    LOTS_SCHEMA,
    SNAPSHOTS_SCHEMA,
    PRICES_SCHEMA,
)

__all__ = [
    "DataLoadError",
    "load_positions",
    "load_lots",
    "save_lots",
    "load_snapshots",
    "load_price_history",
    "load_changes",
    "POSITIONS_SCHEMA",
    "LOTS_SCHEMA",
    "SNAPSHOTS_SCHEMA",
    "PRICES_SCHEMA",
]
