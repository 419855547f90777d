"""Valuation & analytics engine.

Pure functions that turn (price history, transaction ledger) into a daily
holdings series and summary return/risk statistics. Nothing in this package
performs I/O or keeps state between calls.
"""
from investo.engine.analytics import compute_stats, max_drawdown
from investo.engine.holdings import simulate_holdings, unit_steps
from investo.engine.models import (
    AGGREGATE_KEY,
    HoldingsPoint,
    Instrument,
    PricePoint,
    StatRecord,
    Transaction,
    TransactionKind,
)
from investo.engine.pipeline import EngineResult, run_engine
from investo.engine.prices import normalize_prices
from investo.engine.summary import PortfolioSummary, summarize

__all__ = [
    "AGGREGATE_KEY",
    "EngineResult",
    "HoldingsPoint",
    "Instrument",
    "PortfolioSummary",
    "PricePoint",
    "StatRecord",
    "Transaction",
    "TransactionKind",
    "compute_stats",
    "max_drawdown",
    "normalize_prices",
    "run_engine",
    "simulate_holdings",
    "summarize",
    "unit_steps",
]
