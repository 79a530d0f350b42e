"""
Yahoo Finance price-history source.

Fetches the close history that feeds HistoricalStatisticsProvider and
latest quotes for pricing positions. This lives outside the calculation
core: analytics functions only ever receive the materialized frames.
"""

import time
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

import pandas as pd
import yfinance as yf

from folio_analytics.data.providers.base import DataProviderError
from folio_analytics.data.providers.cache import Quote, QuoteCache
from folio_analytics.models import normalize_ticker


class YFinancePriceSource:
    """
    Price history and quotes from Yahoo Finance.

    Features:
    - Fetches adjusted close prices (handles splits/dividends)
    - Batches symbol requests to avoid rate limiting
    - Serves repeated quote lookups from an injected QuoteCache
    """

    # Batch size for price requests (to avoid rate limiting)
    BATCH_SIZE = 50

    # Delay between batches (seconds)
    BATCH_DELAY = 1.0

    def __init__(
        self,
        cache: Optional[QuoteCache] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize the Yahoo Finance source.

        Args:
            cache: Quote cache (a private one is created when omitted)
            max_retries: Maximum retries for failed requests
            retry_delay: Delay between retries (seconds)
        """
        self.cache = cache if cache is not None else QuoteCache()
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    @property
    def name(self) -> str:
        return "YahooFinance"

    def get_prices(
        self,
        symbols: list[str],
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """
        Fetch historical adjusted close prices.

        Args:
            symbols: List of ticker symbols
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            DataFrame with columns: date, symbol, close
        """
        symbols = sorted({normalize_ticker(s) for s in symbols if s})
        if not symbols:
            return pd.DataFrame(columns=["date", "symbol", "close"])

        all_data = []
        for i in range(0, len(symbols), self.BATCH_SIZE):
            batch = symbols[i:i + self.BATCH_SIZE]
            all_data.append(self._fetch_batch_prices(batch, start_date, end_date))

            if i + self.BATCH_SIZE < len(symbols):
                time.sleep(self.BATCH_DELAY)

        df = pd.concat(all_data, ignore_index=True)
        if df.empty:
            return pd.DataFrame(columns=["date", "symbol", "close"])

        return df.sort_values(["date", "symbol"]).reset_index(drop=True)

    def _fetch_batch_prices(
        self,
        symbols: list[str],
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """Fetch prices for a batch of symbols."""
        for attempt in range(self._max_retries):
            try:
                # yfinance treats end as exclusive
                end_date_adj = end_date + timedelta(days=1)

                df = yf.download(
                    tickers=" ".join(symbols),
                    start=start_date.isoformat(),
                    end=end_date_adj.isoformat(),
                    progress=False,
                    auto_adjust=True,
                    threads=True,
                )
                return self._to_long_frame(df, symbols)

            except Exception as e:
                if attempt < self._max_retries - 1:
                    time.sleep(self._retry_delay * (attempt + 1))
                else:
                    raise DataProviderError(
                        f"Failed to fetch prices after {self._max_retries} attempts: {e}"
                    )

        return pd.DataFrame(columns=["date", "symbol", "close"])

    @staticmethod
    def _to_long_frame(df: pd.DataFrame, symbols: list[str]) -> pd.DataFrame:
        """Reshape a yfinance download into date, symbol, close rows."""
        if df is None or df.empty:
            return pd.DataFrame(columns=["date", "symbol", "close"])

        records = []
        for symbol in symbols:
            if isinstance(df.columns, pd.MultiIndex):
                if ("Close", symbol) not in df.columns:
                    continue
                closes = df[("Close", symbol)]
            else:
                if "Close" not in df.columns or len(symbols) != 1:
                    continue
                closes = df["Close"]

            for idx, close in closes.items():
                if pd.notna(close):
                    records.append({
                        "date": idx.date() if hasattr(idx, "date") else idx,
                        "symbol": symbol,
                        "close": float(close),
                    })

        return pd.DataFrame(records, columns=["date", "symbol", "close"])

    def get_quote(self, ticker: str) -> Quote:
        """
        Latest quote for a ticker, served from the cache when fresh.

        Raises:
            DataProviderError: If no recent close is available
        """
        ticker = normalize_ticker(ticker)
        cached = self.cache.get(ticker)
        if cached is not None:
            return cached

        today = date.today()
        history = self.get_prices([ticker], today - timedelta(days=7), today)
        if history.empty:
            raise DataProviderError(f"No recent price available for {ticker}")

        closes = history.sort_values("date")["close"].tolist()
        change_percent = None
        if len(closes) >= 2 and closes[-2] > 0:
            change_percent = Decimal(str(round((closes[-1] - closes[-2]) / closes[-2] * 100, 4)))

        quote = Quote(
            ticker=ticker,
            price=Decimal(str(closes[-1])),
            as_of=datetime.now(),
            change_percent=change_percent,
        )
        self.cache.put(ticker, quote)
        return quote
