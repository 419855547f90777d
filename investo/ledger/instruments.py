from __future__ import annotations

from typing import Iterable, Mapping

from investo.engine.models import Instrument, Transaction

PALETTE = [
    "#3b82f6",
    "#8b5cf6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
]
CASH_COLOR = "#64748b"


def cash_instrument(cash_id: str = "CASH") -> Instrument:
    return Instrument(id=cash_id, display_name="Cash", color_hint=CASH_COLOR, is_synthetic=True)


def instruments_for(
    transactions: Iterable[Transaction],
    names: Mapping[str, str] | None = None,
    cash_id: str = "CASH",
) -> dict[str, Instrument]:
    """
    Instrument registry for a ledger.

    Colours are handed out from PALETTE in order of first appearance
    (by date, then id), so the same ledger always gets the same colours.
    """
    names = names or {}
    out: dict[str, Instrument] = {}
    idx = 0
    for tx in sorted(transactions, key=lambda t: t.sort_key):
        iid = tx.instrument_id
        if iid in out:
            continue
        if iid == cash_id:
            out[iid] = cash_instrument(cash_id)
            continue
        out[iid] = Instrument(
            id=iid,
            display_name=names.get(iid) or iid,
            color_hint=PALETTE[idx % len(PALETTE)],
        )
        idx += 1
    return out


def synthetic_ids(instruments: Mapping[str, Instrument]) -> list[str]:
    return sorted(i.id for i in instruments.values() if i.is_synthetic)


def market_ids(instruments: Mapping[str, Instrument]) -> list[str]:
    return sorted(i.id for i in instruments.values() if not i.is_synthetic)
