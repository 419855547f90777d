from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from investo.ledger.validate import InvalidTransaction


def _settings():
    from investo.utils.settings import safe_load_settings

    return safe_load_settings()


def register(tx_app: typer.Typer) -> None:
    @tx_app.command("add")
    def tx_add(
        kind: str = typer.Argument(..., help="buy | sell | deposit | withdraw"),
        symbol: str = typer.Argument(..., help="Ticker symbol, or the cash id (default CASH)."),
        amount: str = typer.Argument(..., help="Positive USD amount, e.g. 1000 or $1,000."),
        date: str = typer.Option("", "--date", help="Transaction date (YYYY-MM-DD). Defaults to today (UTC)."),
        price: str = typer.Option("", "--price", help="Override price per unit instead of the historical close."),
        note: str = typer.Option("", "--note", help="Optional note."),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Record a buy/sell/deposit/withdraw."""
        from investo.ledger.store import append_transaction
        from investo.utils.dates import today_utc

        settings = _settings()
        try:
            tx = append_transaction(
                instrument_id=symbol,
                kind=kind,
                amount=amount,
                date=date or today_utc(),
                override_price=price or None,
                note=note,
                path=ledger_path or settings.ledger_path,
            )
        except InvalidTransaction as e:
            raise typer.BadParameter(str(e))
        Console().print(
            Panel(
                f"#{tx.id} {tx.date} {tx.kind.value} {tx.instrument_id} ${tx.amount:,.2f}"
                + (f" @ ${tx.override_price:,.2f}" if tx.override_price is not None else ""),
                title="Transaction added",
                expand=False,
            )
        )

    @tx_app.command("sell")
    def tx_sell(
        symbol: str = typer.Argument(..., help="Ticker symbol to sell."),
        fraction: str = typer.Option("", "--fraction", help="Fraction of the position: 0.5, half, third, quarter."),
        sell_all: bool = typer.Option(False, "--all", help="Sell the whole position."),
        date: str = typer.Option("", "--date", help="Transaction date (YYYY-MM-DD). Defaults to today (UTC)."),
        note: str = typer.Option("", "--note"),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Sell a fraction of a position, sized from its current value."""
        from investo.cli_commands.shared import value_ledger
        from investo.engine.analytics import value_series
        from investo.ledger.store import append_transaction, read_transactions
        from investo.ledger.validate import resolve_sell_amount
        from investo.utils.dates import parse_date_any, today_utc
        from investo.utils.logging import log_event

        settings = _settings()
        path = ledger_path or settings.ledger_path
        sym = symbol.strip().upper()
        transactions = read_transactions(path=path)
        d = date or today_utc().isoformat()
        on = parse_date_any(d)
        if on is None:
            raise typer.BadParameter(f"Unparseable date '{d}'.")
        # Holding as of the sell date; later ledger rows do not count.
        held = [tx for tx in transactions if tx.date <= on]
        result, _instruments = value_ledger(settings, held, end=on.isoformat())

        series = value_series(result.holdings, sym)
        series = series[[d0 <= on for d0 in series.index]]
        current = float(series.iloc[-1]) if not series.empty else 0.0
        kind = "withdraw" if sym == settings.cash_id else "sell"
        try:
            amount = resolve_sell_amount(current, fraction=fraction or None, sell_all=sell_all)
            tx = append_transaction(instrument_id=sym, kind=kind, amount=amount, date=d, note=note, path=path)
        except InvalidTransaction as e:
            raise typer.BadParameter(str(e))
        log_event(
            "transaction_added",
            {"transaction": tx, "position_value": current, "fraction": 1.0 if sell_all else fraction},
        )

    @tx_app.command("list")
    def tx_list(
        symbol: str = typer.Option("", "--symbol", help="Only show one instrument."),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Show the ledger in processing order (date, then id)."""
        from investo.ledger.store import read_transactions

        settings = _settings()
        path = ledger_path or settings.ledger_path
        rows = read_transactions(path=path)
        if symbol:
            rows = [tx for tx in rows if tx.instrument_id == symbol.strip().upper()]

        c = Console()
        if not rows:
            c.print(Panel("No transactions yet. Use `investo tx add ...`", title="Ledger", expand=False))
            raise typer.Exit(code=0)

        tbl = Table(title=f"Ledger ({path})")
        tbl.add_column("id", justify="right")
        tbl.add_column("date")
        tbl.add_column("symbol", style="bold")
        tbl.add_column("kind")
        tbl.add_column("amount", justify="right")
        tbl.add_column("price", justify="right")
        tbl.add_column("note")
        for tx in rows:
            tbl.add_row(
                str(tx.id),
                tx.date.isoformat(),
                tx.instrument_id,
                tx.kind.value,
                f"{tx.amount:,.2f}",
                "-" if tx.override_price is None else f"{tx.override_price:,.2f}",
                tx.note,
            )
        c.print(tbl)

    @tx_app.command("edit")
    def tx_edit(
        tx_id: int = typer.Argument(..., help="Transaction id."),
        amount: str = typer.Option("", "--amount"),
        date: str = typer.Option("", "--date"),
        price: str = typer.Option("", "--price", help="New override price."),
        clear_price: bool = typer.Option(False, "--clear-price", help="Drop the override price."),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Change a transaction's amount, date or override price."""
        from investo.ledger.store import update_transaction

        settings = _settings()
        c = Console()
        try:
            tx = update_transaction(
                tx_id,
                amount=amount or None,
                date=date or None,
                override_price=price or None,
                clear_price=clear_price,
                path=ledger_path or settings.ledger_path,
            )
        except InvalidTransaction as e:
            raise typer.BadParameter(str(e))
        except KeyError:
            c.print(f"[red]No transaction with id {tx_id}.[/red]")
            raise typer.Exit(code=1)
        c.print(Panel(f"#{tx.id} {tx.date} {tx.kind.value} {tx.instrument_id} ${tx.amount:,.2f}", title="Transaction updated", expand=False))

    @tx_app.command("rm")
    def tx_rm(
        tx_id: int = typer.Argument(..., help="Transaction id."),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Delete a transaction."""
        from investo.ledger.store import delete_transaction

        settings = _settings()
        c = Console()
        try:
            tx = delete_transaction(tx_id, path=ledger_path or settings.ledger_path)
        except KeyError:
            c.print(f"[red]No transaction with id {tx_id}.[/red]")
            raise typer.Exit(code=1)
        c.print(Panel(f"Removed #{tx.id} {tx.date} {tx.kind.value} {tx.instrument_id}", title="Transaction removed", expand=False))
