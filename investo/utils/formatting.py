"""
Display formatting utilities for CLI output.

Provides consistent formatting for:
- Percentages (returns, drawdowns, allocation shares)
- Currency values
"""
from __future__ import annotations

from typing import Optional


# ============================================================================
# Percentages
# ============================================================================

def fmt_pct(x: Optional[float], decimals: int = 1, multiply: bool = True) -> str:
    """
    Format as percentage.

    Args:
        x: Value to format
        decimals: Decimal places to show
        multiply: If True, multiply by 100 (i.e., 0.05 -> 5.0%)
    """
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    value = float(x) * 100.0 if multiply else float(x)
    return f"{value:.{decimals}f}%"


def fmt_signed_pct(x: Optional[float], decimals: int = 1, multiply: bool = True) -> str:
    """Format as signed percentage with + prefix for positives."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    value = float(x) * 100.0 if multiply else float(x)
    return f"{value:+.{decimals}f}%"


# ============================================================================
# Currency
# ============================================================================

def fmt_usd(x: Optional[float], show_cents: bool = True) -> str:
    """Format as USD currency."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    if show_cents:
        return f"${float(x):,.2f}"
    return f"${float(x):,.0f}"


def fmt_signed_usd(x: Optional[float], show_cents: bool = True) -> str:
    """Format as signed USD with + prefix for positives."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    if show_cents:
        return f"${float(x):+,.2f}"
    return f"${float(x):+,.0f}"


def return_color(x: Optional[float]) -> str:
    """Rich color for a signed return."""
    if x is None:
        return "dim"
    if float(x) > 0:
        return "green"
    if float(x) < 0:
        return "red"
    return "white"
