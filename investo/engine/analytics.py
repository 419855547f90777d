"""
Return and risk statistics over a holdings series.

All returns are simple money-weighted returns:
    total_return      = (final + withdrawals - deposits) / deposits
    annualized_return = ((final + withdrawals) / deposits) ** (365.25 / days) - 1
    max_drawdown      = min((value - running_peak) / running_peak)
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

import pandas as pd

from investo.engine.holdings import group_transactions
from investo.engine.models import HoldingsPoint, StatRecord, Transaction

DAYS_PER_YEAR = 365.25


def flow_totals(transactions: Iterable[Transaction]) -> tuple[float, float]:
    """(deposits, withdrawals): sums of buy/deposit and sell/withdraw amounts."""
    deposits = 0.0
    withdrawals = 0.0
    for tx in transactions:
        if tx.kind.is_inflow:
            deposits += float(tx.amount)
        else:
            withdrawals += float(tx.amount)
    return deposits, withdrawals


def total_return(final_value: float, deposits: float, withdrawals: float) -> float:
    if deposits <= 0:
        return 0.0
    return (final_value + withdrawals - deposits) / deposits


def annualized_return(final_value: float, deposits: float, withdrawals: float, days: int) -> float:
    if days <= 0 or deposits <= 0:
        return 0.0
    try:
        return ((final_value + withdrawals) / deposits) ** (DAYS_PER_YEAR / days) - 1.0
    except OverflowError:
        # Short windows with a large gain compound past float range.
        return float("inf")


def max_drawdown(values: pd.Series) -> float:
    """Largest peak-to-trough decline as a non-positive fraction."""
    s = values.dropna()
    if s.empty:
        return 0.0
    peak = s.cummax()
    valid = peak > 0
    if not valid.any():
        return 0.0
    dd = (s[valid] - peak[valid]) / peak[valid]
    return float(min(0.0, dd.min()))


def _stat_record(
    instrument_id: str | None,
    series: pd.Series,
    deposits: float,
    withdrawals: float,
) -> StatRecord:
    start: date = series.index[0]
    end: date = series.index[-1]
    fv = float(series.iloc[-1])
    days = (end - start).days
    return StatRecord(
        instrument_id=instrument_id,
        final_value=fv,
        initial_value=float(series.iloc[0]),
        total_deposits=deposits,
        total_withdrawals=withdrawals,
        total_return=total_return(fv, deposits, withdrawals),
        annualized_return=annualized_return(fv, deposits, withdrawals, days),
        max_drawdown=max_drawdown(series),
        start=start,
        end=end,
    )


def value_series(holdings: Sequence[HoldingsPoint], instrument_id: str | None = None) -> pd.Series:
    """
    Values of one instrument (or the aggregate when instrument_id is None),
    indexed by date. Points without a value are skipped.
    """
    data: dict[date, float] = {}
    for p in holdings:
        v = p.aggregate_value if instrument_id is None else p.values.get(instrument_id)
        if v is not None:
            data[p.date] = float(v)
    return pd.Series(data, dtype=float)


def compute_stats(holdings: Sequence[HoldingsPoint], transactions: Iterable[Transaction]) -> list[StatRecord]:
    """
    Aggregate record first, then one record per instrument with data, sorted
    by instrument id. Instruments that never reach a priced date are omitted.
    """
    if not holdings:
        return []

    grouped = group_transactions(transactions)
    per_instrument: list[StatRecord] = []
    for instrument_id, txs in grouped.items():
        series = value_series(holdings, instrument_id)
        if series.empty:
            continue
        deposits, withdrawals = flow_totals(txs)
        per_instrument.append(_stat_record(instrument_id, series, deposits, withdrawals))

    out: list[StatRecord] = []
    agg = value_series(holdings)
    if not agg.empty:
        deposits = sum(r.total_deposits for r in per_instrument)
        withdrawals = sum(r.total_withdrawals for r in per_instrument)
        out.append(_stat_record(None, agg, deposits, withdrawals))
    out.extend(per_instrument)
    return out
