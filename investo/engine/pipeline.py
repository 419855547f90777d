from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

from pydantic import BaseModel, Field

from investo.engine.analytics import compute_stats
from investo.engine.holdings import simulate_holdings
from investo.engine.models import HoldingsPoint, PricePoint, StatRecord, Transaction
from investo.engine.prices import normalize_prices


class EngineResult(BaseModel):
    holdings: List[HoldingsPoint] = Field(default_factory=list)
    stats: List[StatRecord] = Field(default_factory=list)

    def chart_rows(self) -> list[dict]:
        return [p.to_row() for p in self.holdings]


def run_engine(
    price_lists: Mapping[str, Sequence[PricePoint]],
    transactions: Iterable[Transaction],
    synthetic_ids: Iterable[str] = (),
) -> EngineResult:
    """
    Raw prices + ledger -> holdings series + stat records.

    Pure: no I/O, no state kept between calls. Instruments with missing or
    partial price data degrade independently by omission.
    """
    transactions = list(transactions)
    if not transactions:
        return EngineResult()
    normalized = normalize_prices(
        price_lists,
        (tx.date for tx in transactions),
        synthetic_ids=synthetic_ids,
    )
    holdings = simulate_holdings(normalized, transactions)
    return EngineResult(holdings=holdings, stats=compute_stats(holdings, transactions))
