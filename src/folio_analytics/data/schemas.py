"""
Data schemas for CSV file validation.

Defines expected columns and data types for the files the CLI reads.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Positions Schema
POSITIONS_SCHEMA = FileSchema(
    name="positions",
    description="Current holdings with cost basis and optional pricing",
    columns=[
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="quantity", dtype="float64", required=True),
        ColumnSchema(name="avg_cost_basis", dtype="float64", required=True),
        ColumnSchema(name="current_price", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="market_value", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="sector", dtype="str", required=False, nullable=True),
        ColumnSchema(name="asset_class", dtype="str", required=False, nullable=True),
        ColumnSchema(name="currency", dtype="str", required=False, nullable=True),
        ColumnSchema(name="name", dtype="str", required=False, nullable=True),
        ColumnSchema(name="expense_ratio", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="day_change_percent", dtype="float64", required=False, nullable=True),
    ],
)

# Tax Lots Schema
LOTS_SCHEMA = FileSchema(
    name="tax_lots",
    description="Purchase lots with sold quantity",
    columns=[
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="quantity", dtype="float64", required=True),
        ColumnSchema(name="cost_basis", dtype="float64", required=True),
        ColumnSchema(name="purchase_date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="lot_id", dtype="str", required=False, nullable=True),
        ColumnSchema(name="sold_quantity", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="is_wash_sale", dtype="bool", required=False, nullable=True),
    ],
)

# Snapshots Schema
SNAPSHOTS_SCHEMA = FileSchema(
    name="snapshots",
    description="Daily portfolio valuations with benchmark values",
    columns=[
        ColumnSchema(name="date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="total_value", dtype="float64", required=True),
        ColumnSchema(name="cumulative_return", dtype="float64", required=False, nullable=True),
        ColumnSchema(name="benchmark_value", dtype="float64", required=False, nullable=True),
    ],
)

# Price Data Schema
PRICES_SCHEMA = FileSchema(
    name="prices",
    description="Daily closing prices by symbol",
    columns=[
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="close", dtype="float64", required=True),
    ],
)
