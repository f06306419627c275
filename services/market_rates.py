"""
Market rate service for fetching live foreign-exchange quotes.
Uses yfinance FX tickers with tenacity for retry logic and resilience.
Quotes are converted to Decimal at this boundary.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

import pandas as pd
import yfinance as yf
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

# Quotes are kept to six decimal places
RATE_QUANTUM = Decimal("0.000001")


class MarketRateService:
    """
    Service for fetching FX rates quoted in a base currency.
    A rate for code "USD" with base "INR" is the INR price of one USD.
    """

    @staticmethod
    def fx_ticker(code: str, base_currency: str) -> str:
        """
        Build the yfinance FX ticker for a currency pair.

        Examples:
            >>> MarketRateService.fx_ticker("USD", "INR")
            'USDINR=X'
        """
        return f"{code.upper()}{base_currency.upper()}=X"

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _fetch_ticker_history(ticker_symbol: str, period: str = "1d") -> pd.DataFrame:
        """Fetch ticker history with retry logic."""
        ticker = yf.Ticker(ticker_symbol)
        return ticker.history(period=period)

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _fetch_ticker_info(ticker_symbol: str) -> Dict:
        """Fetch ticker info with retry logic."""
        ticker = yf.Ticker(ticker_symbol)
        return ticker.info

    @staticmethod
    def _to_rate(value) -> Optional[Decimal]:
        try:
            rate = Decimal(str(float(value)))
        except (InvalidOperation, TypeError, ValueError):
            return None
        if not rate.is_finite() or rate <= 0:
            return None
        return rate.quantize(RATE_QUANTUM)

    @staticmethod
    def fetch_rate(code: str, base_currency: str) -> Optional[Decimal]:
        """
        Fetch the latest exchange rate for a currency.

        Args:
            code: Currency code being priced (e.g., "USD")
            base_currency: Currency the price is quoted in (e.g., "INR")

        Returns:
            Rate as Decimal, Decimal("1") for the base currency itself,
            or None if unavailable
        """
        if code.upper() == base_currency.upper():
            return Decimal("1")

        ticker_symbol = MarketRateService.fx_ticker(code, base_currency)
        try:
            hist = MarketRateService._fetch_ticker_history(ticker_symbol, period="1d")
            if hist is not None and not hist.empty:
                rate = MarketRateService._to_rate(hist['Close'].iloc[-1])
                if rate is not None:
                    return rate

            # Fallback: try info
            info = MarketRateService._fetch_ticker_info(ticker_symbol)
            raw = info.get('previousClose') or info.get('regularMarketPrice') or info.get('lastPrice')
            rate = MarketRateService._to_rate(raw) if raw else None
            if rate is not None:
                return rate

            logger.warning(f"Could not get exchange rate for {ticker_symbol}")
            return None

        except Exception as e:
            logger.error(f"Error fetching exchange rate {code}->{base_currency}: {e}")
            return None
