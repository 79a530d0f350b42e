"""
Allocation and concentration analysis.

Groups active positions by sector and asset class, computes percent
weights and flags sector concentration. Colors are a fixed lookup so the
same name always maps to the same palette entry.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from folio_analytics.models import AssetClass, Position


CONCENTRATION_THRESHOLD = 40.0
HIGH_CONCENTRATION_THRESHOLD = 50.0
TARGET_SECTOR_WEIGHT = 30.0

SECTOR_COLORS = {
    "Technology": "#10b981",
    "Finance": "#3b82f6",
    "Healthcare": "#8b5cf6",
    "Energy": "#f59e0b",
    "Consumer": "#ef4444",
    "Industrial": "#14b8a6",
    "Real Estate": "#ec4899",
    "Utilities": "#84cc16",
    "Materials": "#f97316",
    "Communication": "#06b6d4",
    "Other": "#64748b",
}
DEFAULT_SECTOR_COLOR = "#64748b"

ASSET_CLASS_COLORS = {
    AssetClass.STOCK: "#10b981",
    AssetClass.ETF: "#3b82f6",
    AssetClass.BOND: "#8b5cf6",
    AssetClass.CRYPTO: "#ef4444",
    AssetClass.REIT: "#f59e0b",
    AssetClass.CASH: "#64748b",
    AssetClass.MUTUAL_FUND: "#14b8a6",
    AssetClass.OPTION: "#ec4899",
    AssetClass.OTHER: "#94a3b8",
}
DEFAULT_ASSET_CLASS_COLOR = "#94a3b8"

ASSET_CLASS_NAMES = {
    AssetClass.STOCK: "Stocks",
    AssetClass.ETF: "ETFs",
    AssetClass.BOND: "Bonds",
    AssetClass.CRYPTO: "Crypto",
    AssetClass.REIT: "REITs",
    AssetClass.CASH: "Cash",
    AssetClass.MUTUAL_FUND: "Mutual Funds",
    AssetClass.OPTION: "Options",
    AssetClass.OTHER: "Other",
}


@dataclass
class AllocationSlice:
    """One group of an allocation breakdown."""
    name: str
    value: Decimal
    weight: float  # percent of total
    color: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "weight": self.weight,
            "color": self.color,
        }


@dataclass
class Allocation:
    """Sector and asset-class breakdown of a portfolio."""
    total_value: Decimal
    by_sector: list[AllocationSlice] = field(default_factory=list)
    by_asset_class: list[AllocationSlice] = field(default_factory=list)

    @property
    def top_sector(self):
        return self.by_sector[0] if self.by_sector else None

    def to_dict(self) -> dict:
        return {
            "total_value": self.total_value,
            "by_sector": [s.to_dict() for s in self.by_sector],
            "by_asset_class": [s.to_dict() for s in self.by_asset_class],
        }


def sector_color(sector: str) -> str:
    """Palette color for a sector name."""
    return SECTOR_COLORS.get(sector, DEFAULT_SECTOR_COLOR)


def asset_class_color(asset_class: AssetClass | str) -> str:
    """Palette color for an asset class."""
    if not isinstance(asset_class, AssetClass):
        asset_class = AssetClass.parse(asset_class)
    return ASSET_CLASS_COLORS.get(asset_class, DEFAULT_ASSET_CLASS_COLOR)


def format_asset_class(asset_class: AssetClass) -> str:
    """Display name of an asset class (Stocks, ETFs, ...)."""
    return ASSET_CLASS_NAMES.get(asset_class, asset_class.value)


def _weight(value: Decimal, total: Decimal) -> float:
    if total <= Decimal("0"):
        return 0.0
    return float(value / total * Decimal("100"))


def _group(positions: list[Position], key) -> dict:
    values: dict = {}
    for position in positions:
        group = key(position)
        values[group] = values.get(group, Decimal("0")) + position.market_value
    return values


def calculate_allocations(positions: list[Position]) -> Allocation:
    """
    Break active positions down by sector and by asset class.

    Market value falls back to quantity * (price or cost basis) for
    positions without a reported value.

    Args:
        positions: Portfolio positions

    Returns:
        Allocation with each grouping sorted by weight descending
    """
    holdings = [p for p in positions if p.is_active]
    total_value = sum((p.market_value for p in holdings), Decimal("0"))

    by_sector = [
        AllocationSlice(
            name=sector,
            value=value,
            weight=_weight(value, total_value),
            color=sector_color(sector),
        )
        for sector, value in _group(holdings, lambda p: p.sector or "Other").items()
    ]
    by_asset_class = [
        AllocationSlice(
            name=format_asset_class(asset_class),
            value=value,
            weight=_weight(value, total_value),
            color=asset_class_color(asset_class),
        )
        for asset_class, value in _group(holdings, lambda p: p.asset_class).items()
    ]

    by_sector.sort(key=lambda s: s.weight, reverse=True)
    by_asset_class.sort(key=lambda s: s.weight, reverse=True)

    return Allocation(
        total_value=total_value,
        by_sector=by_sector,
        by_asset_class=by_asset_class,
    )


def concentration_alerts(
    allocation: Allocation,
    threshold: float = CONCENTRATION_THRESHOLD,
    high_threshold: float = HIGH_CONCENTRATION_THRESHOLD,
    target_weight: float = TARGET_SECTOR_WEIGHT,
) -> list[dict]:
    """
    Flag a top sector above the concentration threshold.

    Severity is "high" above high_threshold, else "medium". The suggestion
    names the reduction needed to reach target_weight.
    """
    top = allocation.top_sector
    if top is None or top.weight <= threshold:
        return []

    return [{
        "type": "concentration",
        "severity": "high" if top.weight > high_threshold else "medium",
        "sector": top.name,
        "weight": top.weight,
        "message": f"{top.name} sector represents {top.weight:.1f}% of portfolio",
        "suggestion": f"Consider reducing {top.name} exposure by {top.weight - target_weight:.1f}%",
    }]
