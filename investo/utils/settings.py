"""Centralized settings utilities."""

from __future__ import annotations

import logging
import os

from investo.config import Settings, load_settings

logger = logging.getLogger(__name__)


def safe_load_settings() -> Settings:
    """
    Load settings with graceful fallback.

    If .env is unreadable (e.g., sandbox), construct Settings directly from environment variables.
    """
    try:
        return load_settings()
    except Exception:
        logger.debug("Settings load failed; falling back to raw environment", exc_info=True)
        return Settings.model_construct(
            INVESTO_PRICE_SOURCE=os.getenv("INVESTO_PRICE_SOURCE", "yahoo"),
            FMP_API_KEY=os.getenv("FMP_API_KEY"),
            INVESTO_LEDGER=os.getenv("INVESTO_LEDGER", "data/ledger.csv"),
            INVESTO_CACHE_DIR=os.getenv("INVESTO_CACHE_DIR", "data/cache/prices"),
            INVESTO_CASH_ID=os.getenv("INVESTO_CASH_ID", "CASH"),
            INVESTO_HISTORY_START=os.getenv("INVESTO_HISTORY_START", "2020-01-01"),
        )
