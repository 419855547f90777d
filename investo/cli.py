"""
Investo CLI

Primary commands:
- investo tx add/sell/list/edit/rm   maintain the transaction ledger
- investo portfolio run              value the ledger against historical prices
"""
from __future__ import annotations

import typer

from investo.utils.logging import configure_logging

app = typer.Typer(add_completion=False, help="Investo CLI: personal investment tracker")
tx_app = typer.Typer(add_completion=False, help="Transaction ledger (buy/sell/deposit/withdraw)")
app.add_typer(tx_app, name="tx")
portfolio_app = typer.Typer(add_completion=False, help="Holdings valuation and return/risk statistics")
app.add_typer(portfolio_app, name="portfolio")

_COMMANDS_REGISTERED = False


@app.callback()
def _root(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    configure_logging(verbose)


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return
    # Import here to keep `investo.cli` lightweight at import time.
    from investo.cli_commands.ledger_cmd import register as register_ledger
    from investo.cli_commands.portfolio_cmd import register as register_portfolio

    register_ledger(tx_app)
    register_portfolio(portfolio_app)
    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register commands when imported as a console-script entrypoint (`pyproject.toml` uses `investo.cli:app`).
_register_commands()


if __name__ == "__main__":
    main()
