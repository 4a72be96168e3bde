from price_tracker.providers.stocks.yfinance.y_finance_provider import \
    YFinanceProvider

__all__ = ["YFinanceProvider"]
