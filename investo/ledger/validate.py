"""
Ledger input validation.

Everything the engine assumes about a Transaction (positive amount, real
calendar date, known kind) is enforced here, before a record is built.
"""
from __future__ import annotations

import itertools
import math
from typing import Any, Iterator

from investo.engine.models import Transaction, TransactionKind
from investo.utils.dates import parse_date_any

_KIND_ALIASES = {
    "buy": TransactionKind.BUY,
    "b": TransactionKind.BUY,
    "sell": TransactionKind.SELL,
    "s": TransactionKind.SELL,
    "deposit": TransactionKind.DEPOSIT,
    "dep": TransactionKind.DEPOSIT,
    "withdraw": TransactionKind.WITHDRAW,
    "withdrawal": TransactionKind.WITHDRAW,
    "wd": TransactionKind.WITHDRAW,
}

# Named fractions accepted by `resolve_sell_amount`.
NAMED_FRACTIONS = {
    "all": 1.0,
    "half": 0.5,
    "third": 1.0 / 3.0,
    "quarter": 0.25,
}


class InvalidTransaction(ValueError):
    """A ledger entry the engine must never see."""


def id_sequence(start: int = 1) -> Iterator[int]:
    """Monotonic transaction ids scoped to one session/run."""
    return itertools.count(start)


def parse_kind(value: Any) -> TransactionKind:
    if isinstance(value, TransactionKind):
        return value
    key = str(value or "").strip().lower()
    kind = _KIND_ALIASES.get(key)
    if kind is None:
        raise InvalidTransaction(f"Unknown transaction kind '{value}'. Expected buy, sell, deposit or withdraw.")
    return kind


def parse_amount(value: Any) -> float:
    s = str(value if value is not None else "").strip().replace("$", "").replace(",", "")
    if not s:
        raise InvalidTransaction("Missing amount.")
    try:
        amount = float(s)
    except ValueError:
        raise InvalidTransaction(f"Bad amount '{value}'.") from None
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidTransaction(f"Amount must be a positive number, got {value!r}.")
    return amount


def parse_override_price(value: Any) -> float | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        px = float(str(value).strip().replace("$", "").replace(",", ""))
    except ValueError:
        raise InvalidTransaction(f"Bad price '{value}'.") from None
    if not math.isfinite(px) or px <= 0:
        raise InvalidTransaction(f"Price must be a positive number, got {value!r}.")
    return px


def parse_instrument_id(value: Any) -> str:
    symbol = str(value or "").strip().upper()
    if not symbol:
        raise InvalidTransaction("Missing instrument symbol.")
    return symbol


def build_transaction(
    *,
    id: int,
    instrument_id: Any,
    kind: Any,
    amount: Any,
    date: Any,
    override_price: Any = None,
    note: str = "",
) -> Transaction:
    """Validate raw fields and build a Transaction, or raise InvalidTransaction."""
    d = parse_date_any(date)
    if d is None:
        raise InvalidTransaction(f"Unparseable date '{date}'.")
    return Transaction(
        id=int(id),
        instrument_id=parse_instrument_id(instrument_id),
        kind=parse_kind(kind),
        amount=parse_amount(amount),
        date=d,
        override_price=parse_override_price(override_price),
        note=str(note or ""),
    )


def resolve_sell_amount(
    current_value: float,
    *,
    fraction: float | str | None = None,
    sell_all: bool = False,
) -> float:
    """
    Turn "sell half / a quarter / everything" into a concrete currency amount.

    `fraction` is a number in (0, 1] or one of NAMED_FRACTIONS. The result is
    rounded to cents.
    """
    if current_value <= 0:
        raise InvalidTransaction("Nothing to sell: current holding value is zero.")
    if sell_all:
        f = 1.0
    elif isinstance(fraction, str):
        key = fraction.strip().lower()
        if key not in NAMED_FRACTIONS:
            try:
                f = float(key)
            except ValueError:
                raise InvalidTransaction(f"Bad fraction '{fraction}'.") from None
        else:
            f = NAMED_FRACTIONS[key]
    elif fraction is not None:
        f = float(fraction)
    else:
        raise InvalidTransaction("Give a fraction or sell_all.")
    if not (0 < f <= 1):
        raise InvalidTransaction(f"Fraction must be in (0, 1], got {f}.")
    return round(float(current_value) * f, 2)
