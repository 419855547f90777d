from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Historical daily closes: yahoo (no key) or fmp (needs FMP_API_KEY).
    INVESTO_PRICE_SOURCE: str = "yahoo"  # yahoo|fmp
    FMP_API_KEY: str | None = None

    INVESTO_LEDGER: str = "data/ledger.csv"
    INVESTO_CACHE_DIR: str = "data/cache/prices"

    # Reserved id of the synthetic cash account (constant price 1.0).
    INVESTO_CASH_ID: str = "CASH"

    # Price history is requested from here when the ledger gives no earlier date.
    INVESTO_HISTORY_START: str = "2020-01-01"

    # Backwards-compatible snake_case accessors used across the codebase.
    @property
    def price_source(self) -> str:
        return (self.INVESTO_PRICE_SOURCE or "yahoo").strip().lower()

    @property
    def fmp_api_key(self) -> str | None:
        return self.FMP_API_KEY

    @property
    def ledger_path(self) -> str:
        return self.INVESTO_LEDGER

    @property
    def cache_dir(self) -> str:
        return self.INVESTO_CACHE_DIR

    @property
    def cash_id(self) -> str:
        return (self.INVESTO_CASH_ID or "CASH").strip().upper()

    @property
    def history_start(self) -> str:
        return self.INVESTO_HISTORY_START


def load_settings() -> Settings:
    return Settings()
