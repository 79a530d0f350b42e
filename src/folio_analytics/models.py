"""
Core data models for the portfolio analytics engine.

This module defines the records exchanged with the engine: positions, tax lots,
valuation snapshots, hypothetical changes and the computed metric sets.
All monetary and share quantities use Decimal for precision; statistics
are plain floats.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid


class AssetClass(Enum):
    """Asset class of a holding."""
    STOCK = "STOCK"
    ETF = "ETF"
    BOND = "BOND"
    CRYPTO = "CRYPTO"
    REIT = "REIT"
    CASH = "CASH"
    MUTUAL_FUND = "MUTUAL_FUND"
    OPTION = "OPTION"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AssetClass":
        """Parse a loosely formatted asset class name, defaulting to OTHER."""
        if not value:
            return cls.OTHER
        key = str(value).strip().upper().replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


class GainType(Enum):
    """Classification of capital gain/loss for tax purposes."""
    SHORT_TERM = "SHORT_TERM"  # Held <= 1 year
    LONG_TERM = "LONG_TERM"    # Held > 1 year


class ChangeAction(Enum):
    """Hypothetical trade applied by the what-if engine."""
    ADD = "add"
    REMOVE = "remove"
    ADJUST = "adjust"


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    CONFIG_LOADED = "CONFIG_LOADED"
    KPIS_CALCULATED = "KPIS_CALCULATED"
    RISK_ANALYZED = "RISK_ANALYZED"
    ALLOCATION_ANALYZED = "ALLOCATION_ANALYZED"
    SIMULATION_RUN = "SIMULATION_RUN"
    TAX_LOTS_ANALYZED = "TAX_LOTS_ANALYZED"
    SALE_APPLIED = "SALE_APPLIED"
    CORRELATION_ESTIMATED = "CORRELATION_ESTIMATED"


def normalize_ticker(ticker: str) -> str:
    """Normalize a ticker symbol to stripped upper case."""
    return str(ticker).strip().upper()


@dataclass
class Position:
    """
    A holding of one ticker within one portfolio.

    Attributes:
        ticker: Normalized upper-case symbol
        quantity: Units held (>= 0; zero means the position is closed)
        avg_cost_basis: Weighted average cost per unit
        current_price: Latest market price, None until priced
        reported_market_value: Market value supplied by the market-data layer
        sector: Sector name (default "Other")
        asset_class: Asset class of the holding
        currency: Quote currency
        name: Display name
        expense_ratio: Annual expense ratio in percent (funds only)
        day_change_percent: Today's price change in percent
    """
    ticker: str
    quantity: Decimal
    avg_cost_basis: Decimal
    current_price: Optional[Decimal] = None
    reported_market_value: Optional[Decimal] = None
    sector: str = "Other"
    asset_class: AssetClass = AssetClass.STOCK
    currency: str = "USD"
    name: Optional[str] = None
    expense_ratio: Optional[Decimal] = None
    day_change_percent: Optional[Decimal] = None

    def __post_init__(self) -> None:
        self.ticker = normalize_ticker(self.ticker)

    @property
    def is_priced(self) -> bool:
        """Whether a market price is known for this position."""
        return self.current_price is not None

    @property
    def is_active(self) -> bool:
        """Closed positions (quantity 0) are excluded from aggregates."""
        return self.quantity > Decimal("0")

    @property
    def unit_price(self) -> Decimal:
        """Current price, falling back to cost basis when unpriced."""
        if self.current_price is not None:
            return self.current_price
        return self.avg_cost_basis

    @property
    def market_value(self) -> Decimal:
        """Reported market value, else quantity * (price or cost basis)."""
        if self.reported_market_value is not None:
            return self.reported_market_value
        return self.quantity * self.unit_price

    @property
    def cost_value(self) -> Decimal:
        """Total cost basis (quantity * average cost)."""
        return self.quantity * self.avg_cost_basis


@dataclass
class TaxLot:
    """
    One discrete purchase feeding FIFO accounting for a position.

    Lots are append-only: selling increments sold_quantity, and a fully
    consumed lot stays in the ledger.

    Attributes:
        lot_id: Unique identifier for this lot
        ticker: Ticker symbol of the security
        quantity: Units purchased
        cost_basis: Per-unit cost at acquisition
        purchase_date: Date the units were acquired
        sold_quantity: Units already consumed by sales (<= quantity)
        is_wash_sale: Whether the lot is flagged under the wash-sale rule
    """
    lot_id: str
    ticker: str
    quantity: Decimal
    cost_basis: Decimal
    purchase_date: date
    sold_quantity: Decimal = Decimal("0")
    is_wash_sale: bool = False

    @classmethod
    def create(
        cls,
        ticker: str,
        quantity: Decimal,
        cost_basis: Decimal,
        purchase_date: date,
    ) -> "TaxLot":
        """Factory method to create a new TaxLot with auto-generated ID."""
        return cls(
            lot_id=str(uuid.uuid4()),
            ticker=normalize_ticker(ticker),
            quantity=quantity,
            cost_basis=cost_basis,
            purchase_date=purchase_date,
        )

    @property
    def remaining_quantity(self) -> Decimal:
        """Units still open in this lot."""
        return self.quantity - self.sold_quantity

    @property
    def is_open(self) -> bool:
        return self.remaining_quantity > Decimal("0")


@dataclass
class PortfolioSnapshot:
    """
    Point-in-time valuation used as one sample of the return series.

    Attributes:
        date: Valuation date (one snapshot per day)
        total_value: Total portfolio value
        cumulative_return: Cumulative return since inception
        benchmark_value: Same-day benchmark index value
    """
    date: date
    total_value: Decimal
    cumulative_return: Decimal = Decimal("0")
    benchmark_value: Optional[Decimal] = None


@dataclass
class Portfolio:
    """A portfolio as supplied by the surrounding application."""
    portfolio_id: str
    positions: list[Position] = field(default_factory=list)
    snapshots: list[PortfolioSnapshot] = field(default_factory=list)

    @property
    def active_positions(self) -> list[Position]:
        return [p for p in self.positions if p.is_active]


@dataclass
class Change:
    """
    Hypothetical trade for the what-if engine.

    Attributes:
        ticker: Symbol the change applies to
        action: add, remove or adjust
        quantity: Units to add, or the absolute quantity for adjust
        price: Optional trade price
    """
    ticker: str
    action: ChangeAction
    quantity: Decimal = Decimal("0")
    price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        self.ticker = normalize_ticker(self.ticker)
        if not isinstance(self.action, ChangeAction):
            self.action = ChangeAction(str(self.action).lower())


@dataclass
class SimulatedPosition:
    """
    Ephemeral projection of a Position after applying changes.

    Never persisted; exists for the duration of one simulation call.
    """
    ticker: str
    quantity: Decimal
    avg_cost_basis: Decimal
    current_price: Optional[Decimal]
    sector: str
    asset_class: AssetClass
    currency: str = "USD"
    reported_market_value: Optional[Decimal] = None
    is_new: bool = False
    is_removed: bool = False
    weight: float = 0.0

    @classmethod
    def from_position(cls, position: Position) -> "SimulatedPosition":
        return cls(
            ticker=position.ticker,
            quantity=position.quantity,
            avg_cost_basis=position.avg_cost_basis,
            current_price=position.current_price,
            sector=position.sector,
            asset_class=position.asset_class,
            currency=position.currency,
            reported_market_value=position.reported_market_value,
        )

    @property
    def market_value(self) -> Decimal:
        if self.reported_market_value is not None:
            return self.reported_market_value
        price = self.current_price if self.current_price is not None else self.avg_cost_basis
        return self.quantity * price

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "quantity": self.quantity,
            "market_value": self.market_value,
            "weight": self.weight,
            "is_new": self.is_new,
            "is_removed": self.is_removed,
        }


@dataclass(frozen=True)
class MetricSet:
    """
    Computed risk/return profile of one portfolio state.

    Attributes:
        total_value: Total market value
        expected_return: Annualized expected return (decimal)
        standard_deviation: Annualized volatility (decimal)
        sharpe_ratio: Sharpe ratio
        max_drawdown: Maximum drawdown (decimal, positive)
        beta: Beta vs benchmark
        estimated_fields: Fields holding an insufficient-data fallback
    """
    total_value: float
    expected_return: float
    standard_deviation: float
    sharpe_ratio: float
    max_drawdown: float
    beta: float
    estimated_fields: tuple[str, ...] = ()

    FIELDS = (
        "expected_return",
        "standard_deviation",
        "sharpe_ratio",
        "max_drawdown",
        "beta",
        "total_value",
    )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["estimated_fields"] = list(self.estimated_fields)
        return data


@dataclass
class LotConsumption:
    """Units taken from one lot by a FIFO sale."""
    lot_id: str
    quantity: Decimal
    cost_basis: Decimal
    purchase_date: date


@dataclass
class LotDetail:
    """Per-lot row of a tax lot report."""
    lot_id: str
    purchase_date: date
    quantity: Decimal
    cost_basis: Decimal
    total_cost: Decimal
    holding_days: int
    is_long_term: bool
    unrealized_gain: Decimal
    unrealized_gain_percent: Decimal
    is_wash_sale: bool

    @property
    def gain_type(self) -> GainType:
        return GainType.LONG_TERM if self.is_long_term else GainType.SHORT_TERM


@dataclass
class TaxLotSummary:
    """Short/long-term aggregates of a tax lot report."""
    short_term_quantity: Decimal = Decimal("0")
    long_term_quantity: Decimal = Decimal("0")
    short_term_gain: Decimal = Decimal("0")
    long_term_gain: Decimal = Decimal("0")

    @property
    def total_unrealized_gain(self) -> Decimal:
        return self.short_term_gain + self.long_term_gain


@dataclass
class TaxLotReport:
    """FIFO tax lot analysis for one position."""
    ticker: str
    current_price: Optional[Decimal]
    lots: list[LotDetail]
    summary: TaxLotSummary

    @property
    def total_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self.lots), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "current_price": self.current_price,
            "total_quantity": self.total_quantity,
            "lots": [
                {
                    "lot_id": lot.lot_id,
                    "purchase_date": lot.purchase_date,
                    "quantity": lot.quantity,
                    "cost_basis": lot.cost_basis,
                    "total_cost": lot.total_cost,
                    "holding_days": lot.holding_days,
                    "is_long_term": lot.is_long_term,
                    "unrealized_gain": lot.unrealized_gain,
                    "unrealized_gain_percent": lot.unrealized_gain_percent,
                    "is_wash_sale": lot.is_wash_sale,
                }
                for lot in self.lots
            ],
            "summary": {
                "short_term_quantity": self.summary.short_term_quantity,
                "long_term_quantity": self.summary.long_term_quantity,
                "short_term_gain": self.summary.short_term_gain,
                "long_term_gain": self.summary.long_term_gain,
                "total_unrealized_gain": self.summary.total_unrealized_gain,
            },
        }


@dataclass
class EngineConfig:
    """
    Engine configuration loaded from YAML.

    Attributes:
        risk_free_rate: Annual risk-free rate used by Sharpe/Sortino
        periods_per_year: Return periods per year for annualization
        default_expected_return: Expected return reported without history
        default_volatility: Volatility reported with fewer than two returns
        var_confidence: Value-at-Risk confidence level
        long_term_days: Holding days above which a lot is long-term
        concentration_threshold: Sector weight (%) that triggers an alert
        high_concentration_threshold: Sector weight (%) for a high alert
        target_sector_weight: Suggested sector weight (%) after reduction
        position_alert_threshold: Single position weight (%) that triggers an alert
        diversification_volatility_factor: Simulated volatility multiplier for new positions
        diversification_return_factor: Simulated return multiplier for new positions
        min_beta_observations: Aligned returns required to estimate beta
        statistics_provider: "historical" or "synthetic"
        synthetic_seed: Seed for the synthetic provider (None = unseeded)
        quote_cache_ttl: Quote cache time-to-live in seconds
    """
    risk_free_rate: float = 0.05
    periods_per_year: int = 252
    default_expected_return: float = 0.08
    default_volatility: float = 0.15
    var_confidence: float = 0.95
    long_term_days: int = 365
    concentration_threshold: float = 40.0
    high_concentration_threshold: float = 50.0
    target_sector_weight: float = 30.0
    position_alert_threshold: float = 25.0
    diversification_volatility_factor: float = 0.95
    diversification_return_factor: float = 1.02
    min_beta_observations: int = 2
    statistics_provider: str = "historical"
    synthetic_seed: Optional[int] = None
    quote_cache_ttl: int = 300


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        portfolio_id: Portfolio involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    portfolio_id: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        portfolio_id: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            portfolio_id=portfolio_id,
            details=details,
        )
