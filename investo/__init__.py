"""Investo: personal investment tracker with a pure valuation & analytics engine."""

__version__ = "0.1.0"
