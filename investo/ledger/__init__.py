"""Transaction ledger (calling layer).

This package owns everything the engine deliberately does not:
- validating raw user input into Transaction records
- keeping the ledger in a spreadsheet-friendly CSV (add/edit/delete)
- the instrument registry (display names, colours, synthetic cash)
- resolving "sell half / sell all" into concrete amounts
"""
