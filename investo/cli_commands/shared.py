"""Helpers shared by the ledger and portfolio commands."""
from __future__ import annotations

from datetime import date

from investo.config import Settings
from investo.data.prices import HistoricalPriceClient, PriceFeed
from investo.engine.models import Instrument, Transaction
from investo.engine.pipeline import EngineResult, run_engine
from investo.ledger.instruments import instruments_for, market_ids, synthetic_ids
from investo.utils.dates import parse_iso_date, today_utc


def history_window(settings: Settings, transactions: list[Transaction], start: str = "", end: str = "") -> tuple[date, date]:
    """Price window covering the whole ledger unless overridden."""
    d_end = parse_iso_date(end) or today_utc()
    d_start = parse_iso_date(start)
    if d_start is None:
        first_tx = min((tx.date for tx in transactions), default=None)
        d_start = first_tx or parse_iso_date(settings.history_start) or d_end
    return d_start, d_end


def value_ledger(
    settings: Settings,
    transactions: list[Transaction],
    *,
    start: str = "",
    end: str = "",
    feed: PriceFeed | None = None,
    refresh: bool = False,
) -> tuple[EngineResult, dict[str, Instrument]]:
    """Fetch prices for every market instrument in the ledger and run the engine."""
    instruments = instruments_for(transactions, cash_id=settings.cash_id)
    d_start, d_end = history_window(settings, transactions, start=start, end=end)
    client = feed or HistoricalPriceClient.from_settings(settings)
    symbols = market_ids(instruments)
    if isinstance(client, HistoricalPriceClient):
        prices = client.fetch_prices(symbols, d_start, d_end, refresh=refresh)
    else:
        prices = client.fetch_prices(symbols, d_start, d_end)
    result = run_engine(prices, transactions, synthetic_ids=synthetic_ids(instruments))
    return result, instruments
