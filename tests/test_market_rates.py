"""
Market rate service tests

The yfinance boundary is patched; no network access.
"""

from decimal import Decimal
from unittest.mock import patch

import pandas as pd

from services import MarketRateService


def test_fx_ticker():
    assert MarketRateService.fx_ticker("usd", "inr") == "USDINR=X"


def test_base_currency_is_one():
    with patch.object(MarketRateService, "_fetch_ticker_history") as history:
        assert MarketRateService.fetch_rate("INR", "inr") == Decimal("1")
        history.assert_not_called()


def test_uses_last_close():
    frame = pd.DataFrame({"Close": [83.1, 83.2512345678]})
    with patch.object(MarketRateService, "_fetch_ticker_history", return_value=frame) as history:
        rate = MarketRateService.fetch_rate("USD", "INR")

    history.assert_called_once_with("USDINR=X", period="1d")
    assert rate == Decimal("83.251235")


def test_falls_back_to_info():
    with patch.object(MarketRateService, "_fetch_ticker_history", return_value=pd.DataFrame()), \
         patch.object(MarketRateService, "_fetch_ticker_info", return_value={"previousClose": 90.5}):
        assert MarketRateService.fetch_rate("EUR", "INR") == Decimal("90.5")


def test_no_quote_returns_none():
    with patch.object(MarketRateService, "_fetch_ticker_history", return_value=pd.DataFrame()), \
         patch.object(MarketRateService, "_fetch_ticker_info", return_value={}):
        assert MarketRateService.fetch_rate("XYZ", "INR") is None


def test_errors_return_none():
    with patch.object(MarketRateService, "_fetch_ticker_history", side_effect=ConnectionError("offline")):
        assert MarketRateService.fetch_rate("GBP", "INR") is None
