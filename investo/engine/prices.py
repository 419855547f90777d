"""
Price series normalization.

Aligns sparse per-instrument daily closes onto one unified date axis:
- the axis is the sorted union of every quote date and every transaction date
- each column carries its last known price forward (weekends, holidays)
- dates before an instrument's first quote stay NaN (never back-filled)
- synthetic instruments (cash) are priced at 1.0 on every axis date
"""
from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Mapping, Sequence

import pandas as pd

from investo.engine.models import PricePoint


def _valid_price(p: object) -> float | None:
    try:
        x = float(p)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(x) or x <= 0:
        return None
    return x


def date_axis(
    price_lists: Mapping[str, Sequence[PricePoint]],
    transaction_dates: Iterable[date],
) -> list[date]:
    dates: set[date] = set(transaction_dates)
    for points in price_lists.values():
        dates.update(p.date for p in points if _valid_price(p.price) is not None)
    return sorted(dates)


def normalize_prices(
    price_lists: Mapping[str, Sequence[PricePoint]],
    transaction_dates: Iterable[date],
    synthetic_ids: Iterable[str] = (),
) -> pd.DataFrame:
    """
    Returns a dataframe indexed by axis date with one column per instrument.

    Unpriced cells are NaN. Columns are sorted by instrument id so the output
    does not depend on mapping order.
    """
    axis = date_axis(price_lists, transaction_dates)
    index = pd.Index(axis, dtype=object, name="date")

    columns: dict[str, pd.Series] = {}
    for instrument_id in sorted(price_lists):
        quotes: dict[date, float] = {}
        for p in price_lists[instrument_id]:
            px = _valid_price(p.price)
            if px is not None:
                # Duplicate quotes on one date: last wins.
                quotes[p.date] = px
        if not quotes:
            columns[instrument_id] = pd.Series(float("nan"), index=index, dtype=float)
            continue
        s = pd.Series(quotes, dtype=float)
        columns[instrument_id] = s.reindex(index).ffill()

    for instrument_id in synthetic_ids:
        columns[instrument_id] = pd.Series(1.0, index=index, dtype=float)

    if not columns:
        return pd.DataFrame(index=index, dtype=float)
    out = pd.DataFrame({k: columns[k] for k in sorted(columns)}, index=index)
    return out


def price_on(normalized: pd.DataFrame, instrument_id: str, on: date) -> float | None:
    """Normalized price for an instrument on a date, or None when unpriced."""
    if instrument_id not in normalized.columns or on not in normalized.index:
        return None
    v = normalized.at[on, instrument_id]
    if pd.isna(v):
        return None
    return float(v)
