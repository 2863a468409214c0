"""Funding rate acquisition -- polls the perps contract and stores snapshots.

Uses REST polling on a fixed schedule (every 15 minutes by default).
Funding rates move slowly, so a fresh-enough stored snapshot is reused
instead of querying the chain again.

CONVENTION: The contract reports a daily funding rate as a fraction.
Stored rates are annualized percent: rate * 365 * 100.
"""

import asyncio
import sqlite3
import time
from decimal import Decimal, InvalidOperation
from typing import Any

from perpdash.analytics.timeframe import filter_by_timeframe
from perpdash.chain.client import ChainClient
from perpdash.config import ChainSettings, PollerSettings
from perpdash.data.store import SnapshotStore
from perpdash.exceptions import ChainQueryError
from perpdash.logging import get_logger
from perpdash.models import Cadence, MarketInfo, MarketRate, Snapshot, now_ms

logger = get_logger(__name__)

_ANNUALIZE = Decimal("365") * Decimal("100")

#: Errors from a malformed contract payload.
_PARSE_ERRORS = (AttributeError, KeyError, TypeError, ValueError, InvalidOperation)


def annualize_rate(raw_rate: Any) -> Decimal:
    """Convert a daily fractional rate into annualized percent."""
    return Decimal(str(raw_rate or 0)) * _ANNUALIZE


def parse_perps_markets(payload: Any, timestamp: int) -> Snapshot:
    """Build a Snapshot from the perps contract ``markets`` response.

    Args:
        payload: Contract answer, ``{"data": [{denom, current_funding_rate,
            long_oi_value, short_oi_value, ...}, ...]}``.
        timestamp: Poll time in Unix milliseconds, shared by every entry.

    Raises:
        KeyError, TypeError, ValueError, InvalidOperation, AttributeError:
            On a malformed payload.
    """
    markets: dict[str, MarketRate] = {}
    for entry in payload["data"]:
        markets[entry["denom"]] = MarketRate(
            funding_rate=annualize_rate(entry.get("current_funding_rate")),
            long_oi=str(entry.get("long_oi_value") or "0"),
            short_oi=str(entry.get("short_oi_value") or "0"),
            timestamp=timestamp,
        )
    return Snapshot(timestamp=timestamp, markets=markets)


class FundingRateFetcher:
    """Fetches markets and funding rates from chain, persisting snapshots.

    Every chain failure falls back to what the store already holds, so
    callers always get data when any has been stored before.
    """

    def __init__(
        self,
        chain: ChainClient,
        store: SnapshotStore,
        chain_settings: ChainSettings,
        poller_settings: PollerSettings,
    ) -> None:
        self._chain = chain
        self._store = store
        self._chain_settings = chain_settings
        self._settings = poller_settings
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self.last_poll_at: float | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Begin polling in the background."""
        if self._running:
            logger.warning("funding_fetcher_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "funding_fetcher_started",
            poll_interval=self._settings.poll_interval_seconds,
        )

    async def stop(self) -> None:
        """Stop polling gracefully."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("funding_fetcher_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("funding_fetcher_poll_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._settings.poll_interval_seconds)

    async def poll_once(self) -> Snapshot:
        """One scheduled fetch: refresh markets, then funding rates."""
        await self.get_markets()
        snapshot = await self.fetch_funding_rates()
        self.last_poll_at = time.time()
        logger.info(
            "funding_poll_complete",
            timestamp_ms=snapshot.timestamp,
            markets=len(snapshot),
        )
        return snapshot

    # ──────────────────────────────────────────────
    # Markets
    # ──────────────────────────────────────────────

    async def get_markets(self) -> list[MarketInfo]:
        """Return enabled markets, refreshing from chain at most hourly.

        On chain failure the stored list is returned (possibly empty).
        """
        updated_at = await self._store.get_markets_updated_at()
        max_age_ms = self._settings.market_cache_seconds * 1000
        if updated_at is not None and now_ms() - updated_at <= max_age_ms:
            return await self._store.get_markets()

        try:
            raw = await self._chain.query_contract_smart(
                self._chain_settings.markets_contract, {"markets": {}}
            )
            markets = [
                MarketInfo(denom=m["denom"], display=m["display"])
                for m in raw
                if m.get("enabled")
            ]
        except (ChainQueryError, *_PARSE_ERRORS) as e:
            logger.warning("markets_fetch_failed", error=str(e))
            return await self._stored_markets()

        await self._store.upsert_markets(markets)
        logger.info("markets_refreshed", count=len(markets))
        return markets

    async def _stored_markets(self) -> list[MarketInfo]:
        try:
            return await self._store.get_markets()
        except sqlite3.Error:
            logger.warning("stored_markets_unavailable", exc_info=True)
            return []

    # ──────────────────────────────────────────────
    # Funding rates
    # ──────────────────────────────────────────────

    async def fetch_funding_rates(self) -> Snapshot:
        """Return a current snapshot, querying chain only when needed.

        A stored snapshot younger than funding_cache_seconds is returned
        as-is. Otherwise the perps contract is queried and the result is
        stored. On failure the latest stored snapshot (of any age) is
        returned, or an empty snapshot if there is none.
        """
        cached, fresh = await self._store.get_latest_with_cache(
            self._settings.funding_cache_seconds * 1000
        )
        if fresh and cached is not None:
            logger.debug("funding_rates_from_cache", timestamp_ms=cached.timestamp)
            return cached

        try:
            payload = await self._chain.query_contract_smart(
                self._chain_settings.perps_contract,
                {"markets": {"limit": self._chain_settings.markets_limit}},
            )
            snapshot = parse_perps_markets(payload, now_ms())
        except (ChainQueryError, *_PARSE_ERRORS) as e:
            logger.warning("funding_rates_fetch_failed", error=str(e))
            return cached if cached is not None else Snapshot(timestamp=now_ms())

        await self._store.insert_snapshot(snapshot)
        logger.debug("funding_rates_fetched", markets=len(snapshot))
        return snapshot

    async def get_current(self) -> Snapshot:
        """Latest stored snapshot regardless of age, or an empty snapshot."""
        latest = await self._store.get_latest()
        return latest if latest is not None else Snapshot(timestamp=now_ms())

    async def get_historical(
        self, hours_back: int = 24, cadence: Cadence = Cadence.RAW
    ) -> list[Snapshot]:
        """Stored snapshots from the last ``hours_back`` hours at ``cadence``.

        Store failures yield an empty series.
        """
        end_ms = now_ms()
        start_ms = end_ms - hours_back * 60 * 60 * 1000
        try:
            series = await self._store.get_range(start_ms, end_ms)
        except (sqlite3.Error, OverflowError):
            logger.warning("historical_fetch_failed", exc_info=True)
            return []
        return filter_by_timeframe(series, cadence)
