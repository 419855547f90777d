from __future__ import annotations

import csv
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable

from investo.engine.models import Transaction
from investo.ledger.validate import (
    InvalidTransaction,
    build_transaction,
    parse_amount,
    parse_instrument_id,
    parse_kind,
    parse_override_price,
)
from investo.utils.dates import parse_date_any


def default_ledger_path() -> str:
    # Spreadsheet-friendly CSV of the caller's transactions.
    return os.environ.get("INVESTO_LEDGER", "data/ledger.csv")


_FIELDS = ["id", "date", "instrument_id", "kind", "amount", "override_price", "note"]


def _row(tx: Transaction) -> dict[str, str]:
    return {
        "id": str(tx.id),
        "date": tx.date.isoformat(),
        "instrument_id": tx.instrument_id,
        "kind": tx.kind.value,
        "amount": f"{float(tx.amount):.6f}",
        "override_price": "" if tx.override_price is None else f"{float(tx.override_price):.6f}",
        "note": tx.note,
    }


def _write_all(path: str, transactions: Iterable[Transaction]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    tmp = Path(path).with_suffix(".tmp")
    with open(tmp, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=_FIELDS)
        w.writeheader()
        for tx in transactions:
            w.writerow(_row(tx))
    os.replace(tmp, path)


def read_transactions(*, path: str | None = None) -> list[Transaction]:
    """Read the ledger, sorted by (date, id). Rows that fail validation raise InvalidTransaction."""
    path = path or default_ledger_path()
    if not Path(path).exists():
        return []
    with open(path, newline="") as f:
        r = csv.DictReader(f)
        out: list[Transaction] = []
        for lineno, row in enumerate(r, start=2):
            try:
                out.append(
                    build_transaction(
                        id=int(row.get("id") or 0),
                        instrument_id=row.get("instrument_id"),
                        kind=row.get("kind"),
                        amount=row.get("amount"),
                        date=row.get("date"),
                        override_price=row.get("override_price"),
                        note=str(row.get("note") or ""),
                    )
                )
            except (InvalidTransaction, ValueError) as e:
                raise InvalidTransaction(f"{path}:{lineno}: {e}") from e
    out.sort(key=lambda x: x.sort_key)
    return out


def next_transaction_id(transactions: Iterable[Transaction]) -> int:
    return max((tx.id for tx in transactions), default=0) + 1


def append_transaction(
    *,
    instrument_id: str,
    kind: str,
    amount: Any,
    date: Any,
    override_price: Any = None,
    note: str = "",
    path: str | None = None,
) -> Transaction:
    """Validate and append one transaction; the id is max(existing) + 1."""
    path = path or default_ledger_path()
    existing = read_transactions(path=path)
    tx = build_transaction(
        id=next_transaction_id(existing),
        instrument_id=instrument_id,
        kind=kind,
        amount=amount,
        date=date,
        override_price=override_price,
        note=note,
    )
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    file_exists = Path(path).exists()
    with open(path, "a", newline="") as f:
        w = csv.DictWriter(f, fieldnames=_FIELDS)
        if not file_exists:
            w.writeheader()
        w.writerow(_row(tx))
    return tx


def update_transaction(
    tx_id: int,
    *,
    amount: Any = None,
    date: Any = None,
    override_price: Any = None,
    clear_price: bool = False,
    kind: Any = None,
    instrument_id: Any = None,
    path: str | None = None,
) -> Transaction:
    """Replace a transaction's fields; unspecified fields keep their value."""
    path = path or default_ledger_path()
    rows = read_transactions(path=path)
    for i, tx in enumerate(rows):
        if tx.id != tx_id:
            continue
        changes: dict[str, Any] = {}
        if amount is not None:
            changes["amount"] = parse_amount(amount)
        if date is not None:
            d = parse_date_any(date)
            if d is None:
                raise InvalidTransaction(f"Unparseable date '{date}'.")
            changes["date"] = d
        if clear_price:
            changes["override_price"] = None
        elif override_price is not None:
            changes["override_price"] = parse_override_price(override_price)
        if kind is not None:
            changes["kind"] = parse_kind(kind)
        if instrument_id is not None:
            changes["instrument_id"] = parse_instrument_id(instrument_id)
        new = replace(tx, **changes)
        rows[i] = new
        _write_all(path, rows)
        return new
    raise KeyError(tx_id)


def delete_transaction(tx_id: int, *, path: str | None = None) -> Transaction:
    path = path or default_ledger_path()
    rows = read_transactions(path=path)
    keep = [tx for tx in rows if tx.id != tx_id]
    if len(keep) == len(rows):
        raise KeyError(tx_id)
    removed = next(tx for tx in rows if tx.id == tx_id)
    _write_all(path, keep)
    return removed
