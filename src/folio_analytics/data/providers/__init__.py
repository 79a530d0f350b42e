"""
Market statistics providers and market data sources.

Provides a pluggable interface for estimating beta and correlations, a real
history-backed implementation, a clearly labelled synthetic fallback and an
injectable quote cache.
"""

from folio_analytics.data.providers.base import DataProviderError, MarketStatisticsProvider
from folio_analytics.data.providers.cache import Quote, QuoteCache
from folio_analytics.data.providers.historical import HistoricalStatisticsProvider
from folio_analytics.data.providers.synthetic import SyntheticStatisticsProvider

__all__ = [
    "DataProviderError",
    "MarketStatisticsProvider",
    "Quote",
    "QuoteCache",
    "HistoricalStatisticsProvider",
    "SyntheticStatisticsProvider",
    "get_statistics_provider",
]


def get_statistics_provider(name: str, prices=None, seed=None, benchmark_symbol: str = "SPY"):
    """
    Build a statistics provider by name.

    Args:
        name: "historical" or "synthetic"
        prices: Price history frame for the historical provider
        seed: Random seed for the synthetic provider
        benchmark_symbol: Benchmark symbol for the historical provider

    Raises:
        DataProviderError: If the name is unknown
    """
    key = name.strip().lower()
    if key == "historical":
        return HistoricalStatisticsProvider(prices=prices, benchmark_symbol=benchmark_symbol)
    if key == "synthetic":
        return SyntheticStatisticsProvider(seed=seed)
    raise DataProviderError(f"Unknown statistics provider: {name}")
