"""
Fund expense fees derived from expense ratios.
"""

from decimal import Decimal

from folio_analytics.models import Position


MONTHS_PER_YEAR = Decimal("12")


def annual_fee(position: Position) -> Decimal:
    """market value * expense ratio / 100, 0 without an expense ratio."""
    ratio = position.expense_ratio or Decimal("0")
    if ratio <= Decimal("0"):
        return Decimal("0")
    return position.market_value * ratio / Decimal("100")


def calculate_fees_summary(positions: list[Position]) -> dict:
    """
    Annual and monthly fund fees, per position and totalled per currency.

    Only positions with a positive expense ratio are listed.

    Returns:
        Dictionary with "positions" rows and a "summary" of totals keyed
        by currency plus position counts
    """
    holdings = [p for p in positions if p.is_active]
    annual_by_currency: dict[str, Decimal] = {}
    rows = []

    for position in holdings:
        fee = annual_fee(position)
        if fee == Decimal("0"):
            continue

        currency = (position.currency or "USD").upper()
        annual_by_currency[currency] = annual_by_currency.get(currency, Decimal("0")) + fee

        rows.append({
            "ticker": position.ticker,
            "name": position.name or position.ticker,
            "currency": currency,
            "market_value": position.market_value,
            "expense_ratio": position.expense_ratio,
            "annual_fee": fee,
            "monthly_fee": fee / MONTHS_PER_YEAR,
        })

    return {
        "positions": rows,
        "summary": {
            "total_annual_fees": annual_by_currency,
            "total_monthly_fees": {
                currency: total / MONTHS_PER_YEAR
                for currency, total in annual_by_currency.items()
            },
            "positions_with_fees": len(rows),
            "total_positions": len(holdings),
        },
    }
