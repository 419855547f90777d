from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from datetime import date
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

AGGREGATE_KEY = "Total Portfolio"


class TransactionKind(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"

    @property
    def is_inflow(self) -> bool:
        # deposit/withdraw are presentational aliases of buy/sell
        return self in (TransactionKind.BUY, TransactionKind.DEPOSIT)


@dataclass(frozen=True)
class Instrument:
    id: str
    display_name: str
    color_hint: str = "#94a3b8"
    is_synthetic: bool = False


@dataclass(frozen=True)
class PricePoint:
    date: date
    price: float


@dataclass(frozen=True)
class Transaction:
    id: int
    instrument_id: str
    kind: TransactionKind
    amount: float
    date: date
    override_price: float | None = None
    note: str = ""

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.date, self.id)


class HoldingsPoint(BaseModel):
    date: dt.date
    values: Dict[str, float] = Field(default_factory=dict)
    aggregate_value: Optional[float] = None

    def to_row(self) -> dict:
        """Flatten into a chart-ready row keyed by instrument id."""
        row: dict = {"date": self.date.isoformat()}
        row.update(self.values)
        if self.aggregate_value is not None:
            row[AGGREGATE_KEY] = self.aggregate_value
        return row


class StatRecord(BaseModel):
    # None marks the aggregate ("Total Portfolio") record
    instrument_id: Optional[str] = None

    final_value: float
    initial_value: float
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0

    # Fractions (0.05 = 5%)
    total_return: float = 0.0
    annualized_return: float = 0.0
    max_drawdown: float = 0.0

    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_aggregate(self) -> bool:
        return self.instrument_id is None

    @property
    def label(self) -> str:
        return self.instrument_id or AGGREGATE_KEY
