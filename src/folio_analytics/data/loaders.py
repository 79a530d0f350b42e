"""
Data loading and saving functions for CSV/Parquet/YAML files.

Materializes positions, tax lots, snapshots, price history and change sets
for the command-line interface. The analytics code itself never reads files.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import yaml

from folio_analytics.models import (
    AssetClass,
    Change,
    ChangeAction,
    PortfolioSnapshot,
    Position,
    TaxLot,
    normalize_ticker,
)
from folio_analytics.data.schemas import (
    FileSchema,
    LOTS_SCHEMA,
    POSITIONS_SCHEMA,
    PRICES_SCHEMA,
    SNAPSHOTS_SCHEMA,
)


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or pd.isna(value) or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise DataLoadError(f"Invalid numeric value: {value}")


def _required_decimal(value: Any, field_name: str) -> Decimal:
    parsed = _optional_decimal(value)
    if parsed is None:
        raise DataLoadError(f"Missing value for {field_name}")
    return parsed


def _optional_bool(value: Any) -> bool:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def _optional_str(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None or pd.isna(value) or str(value).strip() == "":
        return default
    return str(value).strip()


def load_positions(file_path: str | Path) -> list[Position]:
    """
    Load positions from a CSV file.

    Args:
        file_path: Path to CSV with at least ticker, quantity, avg_cost_basis

    Returns:
        List of Position objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    df = _load_table(Path(file_path), POSITIONS_SCHEMA)

    positions = []
    for _, row in df.iterrows():
        quantity = _required_decimal(row["quantity"], "quantity")
        if quantity < 0:
            raise DataLoadError(f"Negative quantity for {row['ticker']}: {quantity}")

        positions.append(
            Position(
                ticker=str(row["ticker"]),
                quantity=quantity,
                avg_cost_basis=_required_decimal(row["avg_cost_basis"], "avg_cost_basis"),
                current_price=_optional_decimal(row.get("current_price")),
                reported_market_value=_optional_decimal(row.get("market_value")),
                sector=_optional_str(row.get("sector"), "Other"),
                asset_class=AssetClass.parse(_optional_str(row.get("asset_class"))),
                currency=_optional_str(row.get("currency"), "USD"),
                name=_optional_str(row.get("name")),
                expense_ratio=_optional_decimal(row.get("expense_ratio")),
                day_change_percent=_optional_decimal(row.get("day_change_percent")),
            )
        )

    return positions


def load_lots(
    file_path: str | Path,
    ticker: Optional[str] = None,
) -> list[TaxLot]:
    """
    Load tax lots from a CSV file.

    Args:
        file_path: Path to CSV with lot-level purchases
        ticker: If provided, filter to this ticker only

    Returns:
        List of TaxLot objects (file order)
    """
    df = _load_table(Path(file_path), LOTS_SCHEMA)
    df["purchase_date"] = pd.to_datetime(df["purchase_date"]).dt.date
    df["ticker"] = df["ticker"].astype(str).str.upper().str.strip()

    if ticker:
        df = df[df["ticker"] == normalize_ticker(ticker)]

    lots = []
    for index, row in df.iterrows():
        quantity = _required_decimal(row["quantity"], "quantity")
        sold = _optional_decimal(row.get("sold_quantity")) or Decimal("0")
        if sold > quantity:
            raise DataLoadError(
                f"Lot on row {index} has sold quantity {sold} above quantity {quantity}"
            )

        lots.append(
            TaxLot(
                lot_id=_optional_str(row.get("lot_id"), f"{row['ticker']}-{index}"),
                ticker=row["ticker"],
                quantity=quantity,
                cost_basis=_required_decimal(row["cost_basis"], "cost_basis"),
                purchase_date=row["purchase_date"],
                sold_quantity=sold,
                is_wash_sale=_optional_bool(row.get("is_wash_sale")),
            )
        )

    return lots


def save_lots(lots: list[TaxLot], output_path: str | Path) -> Path:
    """
    Save tax lots to a CSV file.

    Args:
        lots: List of TaxLot objects to save
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for lot in lots:
        records.append({
            "lot_id": lot.lot_id,
            "ticker": lot.ticker,
            "quantity": str(lot.quantity),
            "cost_basis": str(lot.cost_basis),
            "purchase_date": lot.purchase_date.isoformat(),
            "sold_quantity": str(lot.sold_quantity),
            "is_wash_sale": lot.is_wash_sale,
        })

    df = pd.DataFrame(records, columns=LOTS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def load_snapshots(file_path: str | Path) -> list[PortfolioSnapshot]:
    """
    Load portfolio snapshots, newest first.

    Args:
        file_path: Path to CSV with date, total_value and optional benchmark_value

    Returns:
        List of PortfolioSnapshot objects sorted by date descending
    """
    df = _load_table(Path(file_path), SNAPSHOTS_SCHEMA)
    df["date"] = pd.to_datetime(df["date"]).dt.date
    df = df.drop_duplicates(subset="date", keep="last").sort_values("date", ascending=False)

    snapshots = []
    for _, row in df.iterrows():
        snapshots.append(
            PortfolioSnapshot(
                date=row["date"],
                total_value=_required_decimal(row["total_value"], "total_value"),
                cumulative_return=_optional_decimal(row.get("cumulative_return")) or Decimal("0"),
                benchmark_value=_optional_decimal(row.get("benchmark_value")),
            )
        )

    return snapshots


def load_price_history(
    file_path: str | Path,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> pd.DataFrame:
    """
    Load daily close history.

    Returns:
        DataFrame with columns date, symbol, close
    """
    df = _load_table(Path(file_path), PRICES_SCHEMA)
    df["date"] = pd.to_datetime(df["date"]).dt.date
    df["symbol"] = df["symbol"].astype(str).str.upper().str.strip()

    if start_date is not None:
        df = df[df["date"] >= start_date]
    if end_date is not None:
        df = df[df["date"] <= end_date]

    return df[["date", "symbol", "close"]].reset_index(drop=True)


def load_changes(file_path: str | Path) -> list[Change]:
    """
    Load a what-if change set from YAML.

    Expected shape::

        changes:
          - ticker: VTI
            action: add
            quantity: 10
            price: 250

    A bare list of changes is accepted as well.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, "r") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DataLoadError(f"Invalid YAML in change file: {e}")

    items = raw.get("changes", []) if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise DataLoadError("Change file must contain a list of changes")

    changes = []
    for item in items:
        if not isinstance(item, dict) or "ticker" not in item or "action" not in item:
            raise DataLoadError(f"Invalid change entry: {item}")
        try:
            action = ChangeAction(str(item["action"]).strip().lower())
        except ValueError:
            raise DataLoadError(f"Unknown change action: {item['action']}")

        changes.append(
            Change(
                ticker=str(item["ticker"]),
                action=action,
                quantity=_optional_decimal(item.get("quantity")) or Decimal("0"),
                price=_optional_decimal(item.get("price")),
            )
        )

    return changes


def _load_table(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV or Parquet file and validate against schema.

    Args:
        file_path: Path to the file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    if file_path.suffix.lower() == ".parquet":
        try:
            df = pd.read_parquet(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load parquet file {file_path}: {e}")
    else:
        try:
            df = pd.read_csv(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
