"""
Correlation estimation across a ticker set.

The estimate itself comes from a MarketStatisticsProvider; this module
picks the tickers and enforces the matrix shape (square, symmetric, 1.0 on
the diagonal).
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import Position, normalize_ticker


@dataclass
class CorrelationResult:
    """Correlation matrix with the provider that produced it."""
    tickers: list[str]
    matrix: list[list[float]]
    source: str
    is_synthetic: bool

    def to_dict(self) -> dict:
        return {
            "tickers": self.tickers,
            "matrix": self.matrix,
            "source": self.source,
            "is_synthetic": self.is_synthetic,
        }


def portfolio_tickers(
    positions: list[Position],
    additional: Optional[Sequence[str]] = None,
) -> list[str]:
    """
    Unique tickers of the active positions plus any additional symbols.

    Order is preserved: portfolio tickers first, then additional ones.
    """
    tickers: list[str] = []
    for symbol in [p.ticker for p in positions if p.is_active] + list(additional or []):
        symbol = normalize_ticker(symbol)
        if symbol and symbol not in tickers:
            tickers.append(symbol)
    return tickers


def correlation_matrix(
    tickers: Sequence[str],
    provider: MarketStatisticsProvider,
) -> CorrelationResult:
    """
    Estimate the correlation matrix for tickers.

    Duplicated tickers are kept, so the matrix is N x N for N inputs.
    The provider's output is symmetrized and its diagonal forced to 1.0.

    Args:
        tickers: Ticker symbols
        provider: Statistics provider to estimate with

    Returns:
        CorrelationResult
    """
    symbols = [normalize_ticker(t) for t in tickers]
    raw = provider.correlation_matrix(symbols)
    n = len(symbols)

    if len(raw) != n or any(len(row) != n for row in raw):
        raise ValueError(
            f"{provider.name} returned a {len(raw)}-row matrix for {n} tickers"
        )

    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        matrix[i][i] = 1.0
        for j in range(i + 1, n):
            value = min(max(float(raw[i][j]), -1.0), 1.0)
            matrix[i][j] = value
            matrix[j][i] = value

    return CorrelationResult(
        tickers=symbols,
        matrix=matrix,
        source=provider.name,
        is_synthetic=provider.is_synthetic,
    )
