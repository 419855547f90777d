"""
Holdings simulation: ledger + normalized prices -> daily market values.

Each instrument holds a running unit count:
- buy/deposit:   units += amount / effective_price
- sell/withdraw: units = max(0, units - amount / effective_price)

effective_price is the transaction's override price when given, otherwise the
normalized close on the transaction date. Transactions without any resolvable
price are skipped for valuation (they stay in the ledger).
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, Sequence

import pandas as pd

from investo.engine.models import HoldingsPoint, Transaction
from investo.engine.prices import price_on

logger = logging.getLogger(__name__)

# Residual units below this after a sell are float noise from a full exit.
_UNIT_DUST = 1e-9


def round_cents(x: float) -> float:
    return round(float(x), 2)


def group_transactions(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    """Group by instrument; each group sorted by (date, id)."""
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        grouped[tx.instrument_id].append(tx)
    return {k: sorted(v, key=lambda t: t.sort_key) for k, v in sorted(grouped.items())}


def unit_steps(transactions: Sequence[Transaction], normalized: pd.DataFrame) -> pd.Series:
    """
    Cumulative units after each transaction date for one instrument.

    The series is indexed by transaction date (one entry per date, holding the
    count after the last transaction of that date).
    """
    units = 0.0
    steps: dict[date, float] = {}
    for tx in transactions:
        px = tx.override_price if tx.override_price is not None else price_on(normalized, tx.instrument_id, tx.date)
        if px is None or px <= 0:
            logger.debug("No price for %s on %s; transaction %s skipped", tx.instrument_id, tx.date, tx.id)
            continue
        delta = float(tx.amount) / float(px)
        if tx.kind.is_inflow:
            units += delta
        else:
            units = units - delta
            if units < _UNIT_DUST:
                if units < 0:
                    logger.debug("Oversell of %s on %s clamped to zero units", tx.instrument_id, tx.date)
                units = 0.0
        steps[tx.date] = units
    return pd.Series(steps, dtype=float)


def instrument_values(
    instrument_id: str,
    transactions: Sequence[Transaction],
    normalized: pd.DataFrame,
) -> pd.Series:
    """
    Unrounded market value per axis date, from the first transaction onward.

    Dates where the instrument is unpriced are dropped.
    """
    if not transactions or instrument_id not in normalized.columns:
        return pd.Series(dtype=float)

    first = min(tx.date for tx in transactions)
    axis = [d for d in normalized.index if d >= first]
    if not axis:
        return pd.Series(dtype=float)

    axis_index = pd.Index(axis, dtype=object)
    steps = unit_steps(transactions, normalized)
    if steps.empty:
        units = pd.Series(0.0, index=axis_index, dtype=float)
    else:
        # Override-priced steps may fall on dates outside the axis.
        merged = pd.Index(sorted(set(steps.index) | set(axis)), dtype=object)
        units = steps.reindex(merged).ffill().reindex(axis_index).fillna(0.0)
    prices = normalized.loc[axis, instrument_id]
    values = prices * units
    return values.dropna()


def simulate_holdings(normalized: pd.DataFrame, transactions: Iterable[Transaction]) -> list[HoldingsPoint]:
    """
    Build the holdings series: one point per axis date with at least one
    active, priced instrument. Values are rounded to cents; the aggregate is
    the rounded sum of unrounded instrument values.
    """
    grouped = group_transactions(transactions)
    per_instrument: dict[str, pd.Series] = {}
    for instrument_id, txs in grouped.items():
        values = instrument_values(instrument_id, txs, normalized)
        if values.empty:
            logger.debug("No priced dates for %s; omitted from holdings", instrument_id)
            continue
        per_instrument[instrument_id] = values

    out: list[HoldingsPoint] = []
    for d in normalized.index:
        point_values: dict[str, float] = {}
        total = 0.0
        for instrument_id, values in per_instrument.items():
            if d not in values.index:
                continue
            v = float(values.at[d])
            point_values[instrument_id] = round_cents(v)
            total += v
        if not point_values:
            continue
        out.append(HoldingsPoint(date=d, values=point_values, aggregate_value=round_cents(total)))
    return out
