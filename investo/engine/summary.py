from __future__ import annotations

from typing import Iterable, List, Mapping

from pydantic import BaseModel, Field

from investo.engine.models import Instrument, StatRecord


class PortfolioSummary(BaseModel):
    """Numeric roll-up of stat records, split into market holdings and cash."""

    net_worth: float = 0.0

    stock_value: float = 0.0
    stock_invested: float = 0.0
    stock_sold: float = 0.0
    stock_return: float = 0.0

    cash_balance: float = 0.0
    cash_deposited: float = 0.0
    cash_withdrawn: float = 0.0

    # "Currently owned" view: per-instrument records with a positive final value
    owned: List[StatRecord] = Field(default_factory=list)

    @property
    def stock_return_pct(self) -> float:
        return self.stock_return / self.stock_invested if self.stock_invested > 0 else 0.0

    @property
    def cash_pct(self) -> float:
        return self.cash_balance / self.net_worth if self.net_worth > 0 else 0.0


def owned_positions(stats: Iterable[StatRecord]) -> list[StatRecord]:
    return [s for s in stats if not s.is_aggregate and s.final_value > 0]


def summarize(stats: Iterable[StatRecord], instruments: Mapping[str, Instrument]) -> PortfolioSummary:
    """
    Roll per-instrument stat records up into a portfolio summary.

    Instruments flagged synthetic count as cash; everything else (including
    ids missing from `instruments`) counts as a market holding.
    """
    stats = list(stats)
    out = PortfolioSummary()
    for s in stats:
        if s.is_aggregate:
            continue
        inst = instruments.get(s.instrument_id or "")
        if inst is not None and inst.is_synthetic:
            out.cash_balance += s.final_value
            out.cash_deposited += s.total_deposits
            out.cash_withdrawn += s.total_withdrawals
        else:
            out.stock_value += s.final_value
            out.stock_invested += s.total_deposits
            out.stock_sold += s.total_withdrawals
    out.stock_return = out.stock_value + out.stock_sold - out.stock_invested
    out.net_worth = out.stock_value + out.cash_balance
    out.owned = owned_positions(stats)
    return out
