from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from investo.utils.formatting import fmt_pct, fmt_signed_pct, fmt_signed_usd, fmt_usd, return_color


def register(portfolio_app: typer.Typer) -> None:
    @portfolio_app.command("run")
    def portfolio_run(
        start: str = typer.Option("", "--start", help="History start (YYYY-MM-DD). Defaults to the first transaction."),
        end: str = typer.Option("", "--end", help="History end (YYYY-MM-DD). Defaults to today (UTC)."),
        tail: int = typer.Option(0, "--tail", help="Also show the last N holdings rows."),
        refresh: bool = typer.Option(False, "--refresh", help="Ignore the price cache."),
        as_json: bool = typer.Option(False, "--json", help="Print holdings + stats as JSON."),
        ledger_path: str = typer.Option("", "--ledger", help="Override INVESTO_LEDGER (CSV)."),
    ):
        """Value the ledger against historical prices and print return/risk stats."""
        from investo.cli_commands.shared import value_ledger
        from investo.engine.summary import summarize
        from investo.ledger.store import read_transactions
        from investo.utils.settings import safe_load_settings

        settings = safe_load_settings()
        transactions = read_transactions(path=ledger_path or settings.ledger_path)
        result, instruments = value_ledger(settings, transactions, start=start, end=end, refresh=refresh)
        summary = summarize(result.stats, instruments)

        if as_json:
            payload = {
                "holdings": result.chart_rows(),
                "stats": [s.model_dump(mode="json") for s in result.stats],
                "summary": summary.model_dump(mode="json"),
            }
            typer.echo(json.dumps(payload, indent=2))
            return

        c = Console()
        if not result.holdings:
            c.print(Panel("Nothing to value yet: no priced transactions in the ledger.", title="Portfolio", expand=False))
            raise typer.Exit(code=0)

        last = result.holdings[-1]
        c.print(
            Panel(
                f"asof: {last.date}\n"
                f"net worth: {fmt_usd(summary.net_worth)}\n"
                f"holdings: {fmt_usd(summary.stock_value)}  invested {fmt_usd(summary.stock_invested)}  "
                f"sold {fmt_usd(summary.stock_sold)}  P&L {fmt_signed_usd(summary.stock_return)} "
                f"({fmt_signed_pct(summary.stock_return_pct)})\n"
                f"cash: {fmt_usd(summary.cash_balance)} ({fmt_pct(summary.cash_pct)} of net worth)",
                title="Portfolio summary",
                expand=False,
            )
        )

        tbl = Table(title="Performance (money-weighted)")
        tbl.add_column("asset", style="bold")
        tbl.add_column("value", justify="right")
        tbl.add_column("deposits", justify="right")
        tbl.add_column("withdrawals", justify="right")
        tbl.add_column("return", justify="right")
        tbl.add_column("annualized", justify="right")
        tbl.add_column("max DD", justify="right")
        for s in result.stats:
            inst = instruments.get(s.instrument_id or "")
            name = s.label if inst is None else f"{inst.display_name}"
            color = return_color(s.total_return)
            tbl.add_row(
                name,
                fmt_usd(s.final_value),
                fmt_usd(s.total_deposits),
                fmt_usd(s.total_withdrawals),
                f"[{color}]{fmt_signed_pct(s.total_return)}[/{color}]",
                fmt_signed_pct(s.annualized_return),
                fmt_pct(s.max_drawdown),
            )
        c.print(tbl)

        if tail > 0:
            ids = sorted({k for p in result.holdings for k in p.values})
            ht = Table(title=f"Holdings (last {tail})")
            ht.add_column("date")
            for iid in ids:
                ht.add_column(iid, justify="right")
            ht.add_column("total", justify="right", style="bold")
            for p in result.holdings[-tail:]:
                ht.add_row(
                    p.date.isoformat(),
                    *[fmt_usd(p.values.get(iid)) for iid in ids],
                    fmt_usd(p.aggregate_value),
                )
            c.print(ht)
