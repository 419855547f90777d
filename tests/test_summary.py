from __future__ import annotations

import pytest

from conftest import daily_points, day, make_tx
from investo.engine.pipeline import run_engine
from investo.engine.summary import owned_positions, summarize
from investo.ledger.instruments import instruments_for, synthetic_ids


def test_summary_splits_cash_from_holdings():
    txs = [
        make_tx(1, "CASH", "deposit", 1000.0, day(0)),
        make_tx(2, "CASH", "withdraw", 200.0, day(3)),
        make_tx(3, "X", "buy", 500.0, day(0)),
        make_tx(4, "X", "sell", 100.0, day(2)),
        make_tx(5, "Y", "buy", 50.0, day(0)),
        make_tx(6, "Y", "sell", 50.0, day(1)),
    ]
    instruments = instruments_for(txs, cash_id="CASH")
    prices = {"X": daily_points(0, 4, 10.0), "Y": daily_points(0, 4, 5.0)}
    result = run_engine(prices, txs, synthetic_ids=synthetic_ids(instruments))
    summary = summarize(result.stats, instruments)

    assert summary.cash_balance == 800.0
    assert summary.cash_deposited == 1000.0
    assert summary.cash_withdrawn == 200.0
    assert summary.stock_value == 400.0
    assert summary.stock_invested == 550.0
    assert summary.stock_sold == 150.0
    assert summary.stock_return == pytest.approx(0.0)
    assert summary.net_worth == 1200.0
    assert summary.cash_pct == pytest.approx(800.0 / 1200.0)

    # Y was fully sold: still in stats, not in the owned view
    assert "Y" in {s.instrument_id for s in result.stats}
    assert [s.instrument_id for s in summary.owned] == ["CASH", "X"]


def test_owned_positions_excludes_aggregate():
    result = run_engine({"X": daily_points(0, 1, 10.0)}, [make_tx(1, "X", "buy", 10.0, day(0))])
    owned = owned_positions(result.stats)
    assert [s.instrument_id for s in owned] == ["X"]


def test_empty_summary():
    summary = summarize([], {})
    assert summary.net_worth == 0.0
    assert summary.stock_return_pct == 0.0
    assert summary.cash_pct == 0.0
    assert summary.owned == []
