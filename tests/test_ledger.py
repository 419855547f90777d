from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from conftest import day, make_tx
from investo.engine.models import TransactionKind
from investo.ledger.instruments import PALETTE, cash_instrument, instruments_for, market_ids, synthetic_ids
from investo.ledger.store import (
    append_transaction,
    delete_transaction,
    next_transaction_id,
    read_transactions,
    update_transaction,
)
from investo.ledger.validate import (
    InvalidTransaction,
    build_transaction,
    id_sequence,
    parse_kind,
    resolve_sell_amount,
)


class TestValidation:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("buy", TransactionKind.BUY),
            ("SELL", TransactionKind.SELL),
            (" deposit ", TransactionKind.DEPOSIT),
            ("withdrawal", TransactionKind.WITHDRAW),
            (TransactionKind.WITHDRAW, TransactionKind.WITHDRAW),
        ],
    )
    def test_parse_kind(self, raw, expected):
        assert parse_kind(raw) is expected

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidTransaction):
            parse_kind("short")

    def test_build_transaction_normalizes_fields(self):
        tx = build_transaction(id=7, instrument_id=" spy ", kind="buy", amount="$1,250.50", date="01/15/2025", override_price="410")
        assert tx.id == 7
        assert tx.instrument_id == "SPY"
        assert tx.amount == 1250.50
        assert tx.date == date(2025, 1, 15)
        assert tx.override_price == 410.0

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "", "nan"])
    def test_bad_amounts_rejected(self, amount):
        with pytest.raises(InvalidTransaction):
            build_transaction(id=1, instrument_id="X", kind="buy", amount=amount, date="2025-01-01")

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidTransaction):
            build_transaction(id=1, instrument_id="X", kind="buy", amount=10, date="2025-13-45")

    def test_invalid_transaction_is_a_value_error(self):
        assert issubclass(InvalidTransaction, ValueError)

    def test_id_sequence_is_scoped(self):
        a = id_sequence()
        b = id_sequence()
        assert [next(a), next(a), next(a)] == [1, 2, 3]
        assert next(b) == 1


class TestSellAmount:
    def test_named_fractions(self):
        assert resolve_sell_amount(1000.0, fraction="half") == 500.0
        assert resolve_sell_amount(1000.0, fraction="quarter") == 250.0
        assert resolve_sell_amount(1000.0, fraction="third") == 333.33

    def test_numeric_and_all(self):
        assert resolve_sell_amount(800.0, fraction=0.1) == 80.0
        assert resolve_sell_amount(800.0, fraction="0.25") == 200.0
        assert resolve_sell_amount(812.34, sell_all=True) == 812.34

    @pytest.mark.parametrize("fraction", [0, 1.5, -0.2, "lots"])
    def test_bad_fraction(self, fraction):
        with pytest.raises(InvalidTransaction):
            resolve_sell_amount(100.0, fraction=fraction)

    def test_nothing_to_sell(self):
        with pytest.raises(InvalidTransaction):
            resolve_sell_amount(0.0, sell_all=True)

    def test_needs_fraction_or_all(self):
        with pytest.raises(InvalidTransaction):
            resolve_sell_amount(100.0)


class TestStore:
    def test_append_assigns_increasing_ids(self, ledger_path: str):
        a = append_transaction(instrument_id="spy", kind="buy", amount=1000, date="2024-01-02", path=ledger_path)
        b = append_transaction(instrument_id="CASH", kind="deposit", amount="250", date="2024-01-01", path=ledger_path)
        assert (a.id, b.id) == (1, 2)

        rows = read_transactions(path=ledger_path)
        # processing order: date, then id
        assert [tx.id for tx in rows] == [2, 1]
        assert rows[1].instrument_id == "SPY"
        assert rows[1].override_price is None

    def test_override_price_round_trips(self, ledger_path: str):
        append_transaction(instrument_id="X", kind="buy", amount=100, date="2024-01-02", override_price="12.5", note="fill", path=ledger_path)
        (tx,) = read_transactions(path=ledger_path)
        assert tx.override_price == 12.5
        assert tx.note == "fill"

    def test_missing_ledger_reads_empty(self, tmp_path: Path):
        assert read_transactions(path=str(tmp_path / "nope.csv")) == []

    def test_update_replaces_only_given_fields(self, ledger_path: str):
        append_transaction(instrument_id="X", kind="buy", amount=100, date="2024-01-02", override_price=10, path=ledger_path)
        tx = update_transaction(1, amount="150", date="2024-01-05", path=ledger_path)
        assert tx.amount == 150.0
        assert tx.date == date(2024, 1, 5)
        assert tx.override_price == 10.0
        tx = update_transaction(1, clear_price=True, path=ledger_path)
        assert tx.override_price is None
        (stored,) = read_transactions(path=ledger_path)
        assert stored == tx

    def test_update_validates(self, ledger_path: str):
        append_transaction(instrument_id="X", kind="buy", amount=100, date="2024-01-02", path=ledger_path)
        with pytest.raises(InvalidTransaction):
            update_transaction(1, amount="-1", path=ledger_path)

    def test_update_and_delete_unknown_id(self, ledger_path: str):
        append_transaction(instrument_id="X", kind="buy", amount=100, date="2024-01-02", path=ledger_path)
        with pytest.raises(KeyError):
            update_transaction(99, amount=5, path=ledger_path)
        with pytest.raises(KeyError):
            delete_transaction(99, path=ledger_path)

    def test_delete_keeps_other_ids(self, ledger_path: str):
        for n in range(3):
            append_transaction(instrument_id="X", kind="buy", amount=10 + n, date="2024-01-02", path=ledger_path)
        removed = delete_transaction(2, path=ledger_path)
        assert removed.amount == 11.0
        rows = read_transactions(path=ledger_path)
        assert [tx.id for tx in rows] == [1, 3]
        assert next_transaction_id(rows) == 4

    def test_corrupt_row_raises_with_location(self, ledger_path: str):
        Path(ledger_path).write_text(
            "id,date,instrument_id,kind,amount,override_price,note\n1,2024-01-02,X,buy,-5,,\n"
        )
        with pytest.raises(InvalidTransaction, match=":2:"):
            read_transactions(path=ledger_path)


class TestInstruments:
    def test_colours_follow_first_appearance(self):
        txs = [
            make_tx(3, "B", "buy", 1.0, day(2)),
            make_tx(1, "A", "buy", 1.0, day(1)),
            make_tx(2, "CASH", "deposit", 1.0, day(0)),
            make_tx(4, "A", "buy", 1.0, day(3)),
        ]
        reg = instruments_for(txs, names={"A": "Alpha"})
        assert reg["A"].color_hint == PALETTE[0]
        assert reg["A"].display_name == "Alpha"
        assert reg["B"].color_hint == PALETTE[1]
        assert reg["CASH"] == cash_instrument()
        assert synthetic_ids(reg) == ["CASH"]
        assert market_ids(reg) == ["A", "B"]
