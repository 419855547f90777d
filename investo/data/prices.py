"""
Historical daily closes for the engine's price input.

Sources:
- yahoo: public chart API (adjusted close when available, else close)
- fmp:   Financial Modeling Prep `historical-price-full` (needs FMP_API_KEY)

Every symbol is fetched independently. A failed or empty symbol yields an
empty list; it never aborts the other symbols.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd
import requests
from requests.exceptions import RequestException

from investo.config import Settings
from investo.engine.models import PricePoint

logger = logging.getLogger(__name__)

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
FMP_HISTORY_URL = "https://financialmodelingprep.com/api/v3/historical-price-full/{symbol}"

# A cache whose last row is this close to the requested end is considered fresh
# (weekends and exchange holidays have no rows).
_CACHE_SLACK_DAYS = 4


class PriceFeed(Protocol):
    def fetch_prices(self, symbols: Iterable[str], start: date, end: date) -> dict[str, list[PricePoint]]:
        ...


def _points_from_frame(df: pd.DataFrame, start: date, end: date) -> list[PricePoint]:
    out: list[PricePoint] = []
    for d, px in zip(df["date"], df["price"]):
        d0 = pd.Timestamp(d).date()
        if start <= d0 <= end and pd.notna(px) and float(px) > 0:
            out.append(PricePoint(date=d0, price=float(px)))
    out.sort(key=lambda p: p.date)
    return out


def parse_yahoo_chart(js: dict) -> list[PricePoint]:
    """Daily closes from a Yahoo chart response; null closes are dropped."""
    result = ((js.get("chart") or {}).get("result") or [None])[0]
    if not result or not result.get("timestamp"):
        return []
    indicators = result.get("indicators") or {}
    adj = (indicators.get("adjclose") or [{}])[0].get("adjclose")
    closes = adj or (indicators.get("quote") or [{}])[0].get("close") or []
    out: list[PricePoint] = []
    for ts, px in zip(result["timestamp"], closes):
        if px is None:
            continue
        d = datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
        out.append(PricePoint(date=d, price=float(px)))
    return out


def parse_fmp_history(js: dict) -> list[PricePoint]:
    out: list[PricePoint] = []
    for row in js.get("historical") or []:
        px = row.get("adjClose", row.get("close"))
        d = row.get("date")
        if px is None or not d:
            continue
        out.append(PricePoint(date=date.fromisoformat(str(d)[:10]), price=float(px)))
    return out


class HistoricalPriceClient:
    def __init__(
        self,
        source: str = "yahoo",
        api_key: str | None = None,
        cache_dir: str = "data/cache/prices",
        session: requests.Session | None = None,
    ):
        self.source = (source or "yahoo").strip().lower()
        if self.source not in ("yahoo", "fmp"):
            raise ValueError(f"Unknown price source '{source}'. Expected yahoo or fmp.")
        self.api_key = api_key
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "HistoricalPriceClient":
        return cls(source=settings.price_source, api_key=settings.fmp_api_key, cache_dir=settings.cache_dir)

    def _cache_path(self, symbol: str) -> Path:
        return self.cache_dir / f"{self.source}_{symbol.replace('/', '_')}.csv"

    def _read_cache(self, symbol: str) -> pd.DataFrame | None:
        path = self._cache_path(symbol)
        if not path.exists():
            return None
        df = pd.read_csv(path)
        if df.empty:
            return None
        df["date"] = pd.to_datetime(df["date"])
        return df

    @staticmethod
    def _covered_from(cached: pd.DataFrame) -> date:
        """
        Earliest date the cache answers for. A symbol listed after the requested
        start has no rows before its listing, so the requested start is kept too.
        """
        first = cached["date"].min().date()
        if "requested_from" in cached.columns:
            req = pd.to_datetime(cached["requested_from"]).dropna()
            if not req.empty:
                first = min(first, req.min().date())
        return first

    def _write_cache(
        self, symbol: str, points: list[PricePoint], start: date, end: date, cached: pd.DataFrame | None,
    ) -> None:
        df = pd.DataFrame({"date": pd.to_datetime([p.date for p in points]), "price": [p.price for p in points]})
        covered_from = start
        if cached is not None:
            slack = timedelta(days=_CACHE_SLACK_DAYS)
            cached_first = self._covered_from(cached)
            cached_last = cached["date"].max().date()
            # Windows that do not touch replace the cache.
            if start <= cached_last + slack and end >= cached_first - slack:
                df = pd.concat([cached[["date", "price"]], df], ignore_index=True)
                df = df.drop_duplicates(subset="date", keep="last")
                covered_from = min(start, cached_first)
        df = df.sort_values("date")
        df["date"] = df["date"].dt.strftime("%Y-%m-%d")
        df["requested_from"] = covered_from.isoformat()
        df.to_csv(self._cache_path(symbol), index=False)

    def _request(self, symbol: str, start: date, end: date) -> list[PricePoint]:
        if self.source == "fmp":
            if not self.api_key:
                raise RuntimeError("FMP_API_KEY is not set.")
            url = FMP_HISTORY_URL.format(symbol=symbol)
            params = {"from": start.isoformat(), "to": end.isoformat(), "apikey": self.api_key}
            headers = {}
        else:
            url = YAHOO_CHART_URL.format(symbol=symbol)
            period1 = int(datetime.combine(start, time.min, tzinfo=timezone.utc).timestamp())
            period2 = int(datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc).timestamp())
            params = {"period1": period1, "period2": period2, "interval": "1d"}
            headers = {"User-Agent": "Mozilla/5.0"}

        last_err: Exception | None = None
        for _attempt in range(3):
            try:
                r = self.session.get(url, params=params, headers=headers, timeout=30)
                r.raise_for_status()
                js = r.json()
                break
            except (RequestException, ValueError) as e:
                last_err = e
        else:
            raise last_err  # type: ignore[misc]

        if self.source == "fmp":
            return parse_fmp_history(js)
        return parse_yahoo_chart(js)

    def fetch_symbol(self, symbol: str, start: date, end: date, refresh: bool = False) -> list[PricePoint]:
        """
        Closes for one symbol in [start, end]. Empty list when nothing usable
        could be fetched and no cache exists.
        """
        sym = symbol.strip().upper()
        cached = self._read_cache(sym)
        if cached is not None and not refresh:
            last = cached["date"].max().date()
            first = self._covered_from(cached)
            if first <= start + timedelta(days=_CACHE_SLACK_DAYS) and last >= end - timedelta(days=_CACHE_SLACK_DAYS):
                return _points_from_frame(cached, start, end)

        try:
            points = self._request(sym, start, end)
        except (RequestException, ValueError, RuntimeError):
            logger.debug("Price fetch failed for %s", sym, exc_info=True)
            if cached is not None:
                # Network failed; fall back to cache if available.
                return _points_from_frame(cached, start, end)
            return []

        points = [p for p in points if start <= p.date <= end and p.price > 0]
        points.sort(key=lambda p: p.date)
        if points:
            self._write_cache(sym, points, start, end, cached)
        else:
            logger.debug("No price history returned for %s", sym)
        return points

    def fetch_prices(
        self,
        symbols: Iterable[str],
        start: date,
        end: date,
        refresh: bool = False,
    ) -> dict[str, list[PricePoint]]:
        out: dict[str, list[PricePoint]] = {}
        for sym in sorted({s.strip().upper() for s in symbols if s and s.strip()}):
            out[sym] = self.fetch_symbol(sym, start, end, refresh=refresh)
        return out
