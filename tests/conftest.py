"""
Pytest configuration and shared fixtures for investo tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest


def pytest_configure():
    """
    Ensure the repo root is on sys.path for the package import (`investo`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


# =============================================================================
# Test Data Helpers
# =============================================================================

D0 = date(2024, 1, 1)  # a Monday


def day(n: int) -> date:
    """Calendar day n of the test window (day(0) == 2024-01-01)."""
    return D0 + timedelta(days=n)


def make_tx(
    id: int,
    instrument_id: str,
    kind: str,
    amount: float,
    on: date,
    override_price: float | None = None,
):
    """
    Create a Transaction for testing.

    Usage:
        tx = make_tx(1, "X", "buy", 1000.0, day(0))
    """
    from investo.engine.models import Transaction, TransactionKind

    return Transaction(
        id=id,
        instrument_id=instrument_id,
        kind=TransactionKind(kind),
        amount=amount,
        date=on,
        override_price=override_price,
    )


def make_points(prices: dict):
    """{date: price} -> list[PricePoint] in date order."""
    from investo.engine.models import PricePoint

    return [PricePoint(date=d, price=p) for d, p in sorted(prices.items())]


def daily_points(start: int, end: int, price: float, weekdays_only: bool = False):
    """Constant-price quotes for day(start)..day(end) inclusive."""
    from investo.utils.dates import date_range_days

    return make_points(
        {d: price for d in date_range_days(day(start), day(end)) if not (weekdays_only and d.weekday() >= 5)}
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def ledger_path(tmp_path: Path) -> str:
    return str(tmp_path / "ledger.csv")


@pytest.fixture
def investo_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point settings at a throwaway ledger and price cache."""
    monkeypatch.setenv("INVESTO_LEDGER", str(tmp_path / "ledger.csv"))
    monkeypatch.setenv("INVESTO_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("INVESTO_PRICE_SOURCE", "yahoo")
    monkeypatch.setenv("INVESTO_CASH_ID", "CASH")
    monkeypatch.chdir(tmp_path)
    return tmp_path
