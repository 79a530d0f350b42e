"""
Tax lot ledger for the portfolio analytics engine.

Maintains per-purchase cost-basis lots for a position, consumes them
oldest-first when shares are sold, and splits unrealized gains into
short-term and long-term buckets.

Note: apply_sale mutates the supplied lots. Concurrent sales against the
same position must be serialized by the caller.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from folio_analytics.models import (
    LotConsumption,
    LotDetail,
    Position,
    TaxLot,
    TaxLotReport,
    TaxLotSummary,
)


LONG_TERM_DAYS = 365
WASH_SALE_WINDOW_DAYS = 30


class InsufficientSharesError(Exception):
    """Raised when a sale exceeds the quantity available in the ledger."""
    pass


def sort_lots_fifo(lots: list[TaxLot]) -> list[TaxLot]:
    """Return lots ordered by purchase date ascending (stable)."""
    return sorted(lots, key=lambda lot: lot.purchase_date)


def total_remaining(lots: list[TaxLot]) -> Decimal:
    """Sum of remaining quantity across lots."""
    return sum((lot.remaining_quantity for lot in lots), Decimal("0"))


def apply_sale(
    lots: list[TaxLot],
    quantity_to_sell: Decimal,
) -> list[LotConsumption]:
    """
    Consume lots oldest-first for a sale.

    The sale is all-or-nothing: availability is checked before any lot
    is touched.

    Args:
        lots: Tax lots of one position
        quantity_to_sell: Units being sold

    Returns:
        LotConsumption records in consumption order

    Raises:
        InsufficientSharesError: If the open lots cannot cover the sale
    """
    available = total_remaining(lots)
    if quantity_to_sell > available:
        raise InsufficientSharesError(
            f"Insufficient shares: requested {quantity_to_sell}, available {available}"
        )

    consumed = []
    remaining_to_sell = quantity_to_sell

    for lot in sort_lots_fifo(lots):
        if remaining_to_sell <= Decimal("0"):
            break

        available_in_lot = lot.remaining_quantity
        if available_in_lot <= Decimal("0"):
            continue

        sell_from_lot = min(available_in_lot, remaining_to_sell)
        lot.sold_quantity += sell_from_lot
        remaining_to_sell -= sell_from_lot

        consumed.append(
            LotConsumption(
                lot_id=lot.lot_id,
                quantity=sell_from_lot,
                cost_basis=lot.cost_basis,
                purchase_date=lot.purchase_date,
            )
        )

    return consumed


def holding_days(purchase_date: date, as_of: date) -> int:
    """Whole days between purchase and as_of."""
    return (as_of - purchase_date).days


def is_long_term(days_held: int, long_term_days: int = LONG_TERM_DAYS) -> bool:
    """A lot is long-term when held strictly more than a year."""
    return days_held > long_term_days


def analyze_lots(
    lots: list[TaxLot],
    current_price: Optional[Decimal] = None,
    as_of: Optional[date] = None,
    ticker: Optional[str] = None,
    long_term_days: int = LONG_TERM_DAYS,
) -> TaxLotReport:
    """
    Build a FIFO tax lot report for one position.

    Only lots with remaining quantity are reported. Unrealized gains are
    zero when no current price is supplied.

    Args:
        lots: Tax lots of the position
        current_price: Current market price per unit (optional)
        as_of: Date to measure holding periods against (default: today)
        ticker: Ticker for the report (default: taken from the lots)
        long_term_days: Holding-period threshold in days

    Returns:
        TaxLotReport with per-lot detail and short/long-term summary
    """
    as_of = as_of or date.today()
    if ticker is None:
        ticker = lots[0].ticker if lots else ""

    details = []
    summary = TaxLotSummary()

    for lot in sort_lots_fifo(lots):
        remaining = lot.remaining_quantity
        if remaining <= Decimal("0"):
            continue

        days_held = holding_days(lot.purchase_date, as_of)
        long_term = is_long_term(days_held, long_term_days)

        if current_price is not None:
            unrealized_gain = (current_price - lot.cost_basis) * remaining
            if lot.cost_basis != Decimal("0"):
                gain_pct = (current_price - lot.cost_basis) / lot.cost_basis * Decimal("100")
            else:
                gain_pct = Decimal("0")
        else:
            unrealized_gain = Decimal("0")
            gain_pct = Decimal("0")

        if long_term:
            summary.long_term_quantity += remaining
            summary.long_term_gain += unrealized_gain
        else:
            summary.short_term_quantity += remaining
            summary.short_term_gain += unrealized_gain

        details.append(
            LotDetail(
                lot_id=lot.lot_id,
                purchase_date=lot.purchase_date,
                quantity=remaining,
                cost_basis=lot.cost_basis,
                total_cost=lot.cost_basis * remaining,
                holding_days=days_held,
                is_long_term=long_term,
                unrealized_gain=unrealized_gain,
                unrealized_gain_percent=gain_pct,
                is_wash_sale=lot.is_wash_sale,
            )
        )

    return TaxLotReport(
        ticker=ticker,
        current_price=current_price,
        lots=details,
        summary=summary,
    )


def weighted_average_cost(
    old_quantity: Decimal,
    old_avg_cost: Decimal,
    added_quantity: Decimal,
    added_cost: Decimal,
) -> Decimal:
    """
    Recompute the average cost basis after adding units.

    new = (old_qty * old_avg + added_qty * added_cost) / (old_qty + added_qty)

    Returns added_cost when the combined quantity is zero.
    """
    total_quantity = old_quantity + added_quantity
    if total_quantity == Decimal("0"):
        return added_cost

    return (old_quantity * old_avg_cost + added_quantity * added_cost) / total_quantity


def add_lot(
    position: Position,
    lots: list[TaxLot],
    quantity: Decimal,
    cost_basis: Decimal,
    purchase_date: date,
) -> TaxLot:
    """
    Append a purchase lot and update the position's quantity and cost.

    Args:
        position: Position receiving the lot (mutated)
        lots: Ledger of the position (appended to)
        quantity: Units purchased
        cost_basis: Per-unit cost
        purchase_date: Acquisition date

    Returns:
        The new TaxLot
    """
    lot = TaxLot.create(
        ticker=position.ticker,
        quantity=quantity,
        cost_basis=cost_basis,
        purchase_date=purchase_date,
    )
    lots.append(lot)

    position.avg_cost_basis = weighted_average_cost(
        position.quantity, position.avg_cost_basis, quantity, cost_basis
    )
    position.quantity += quantity

    return lot


def record_sale(
    position: Position,
    lots: list[TaxLot],
    quantity: Decimal,
) -> list[LotConsumption]:
    """
    Sell units from a position, consuming its lots FIFO.

    The position quantity is decremented; a position reaching zero is
    closed (the caller decides whether to delete it). The average cost
    basis is unchanged by a sale.

    Raises:
        InsufficientSharesError: If the position or its lots cannot cover the sale
    """
    if quantity > position.quantity:
        raise InsufficientSharesError(
            f"Insufficient shares. Current position: {position.quantity}"
        )

    consumed = apply_sale(lots, quantity)
    position.quantity -= quantity

    return consumed


def is_reconciled(position: Position, lots: list[TaxLot]) -> bool:
    """Check that the ledger's open quantity matches the position."""
    return total_remaining(lots) == position.quantity


def mark_wash_sales(
    lots: list[TaxLot],
    loss_sale_date: date,
    window_days: int = WASH_SALE_WINDOW_DAYS,
) -> list[TaxLot]:
    """
    Flag open lots bought within the wash-sale window of a loss sale.

    The window spans window_days before and after the sale date.

    Returns:
        Lots newly flagged
    """
    window_start = loss_sale_date - timedelta(days=window_days)
    window_end = loss_sale_date + timedelta(days=window_days)

    flagged = []
    for lot in lots:
        if lot.is_wash_sale or not lot.is_open:
            continue
        if window_start <= lot.purchase_date <= window_end:
            lot.is_wash_sale = True
            flagged.append(lot)

    return flagged
