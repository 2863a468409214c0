"""Entry points for the funding rate risk dashboard.

Wires all components together, optionally embeds the FastAPI dashboard,
and starts the snapshot poller. When the dashboard is enabled (default),
the poller and the dashboard share a single asyncio event loop via
uvicorn's programmatic API and FastAPI's lifespan context manager.

Component wiring order (in _build_components):
1. SnapshotDatabase + SnapshotStore (persistence)
2. CosmWasmRestClient (chain access)
3. FundingRateFetcher (scheduled acquisition)
4. MistralClient + DataAnalyst (LLM sidebar)

Commands:
    perpdash        serve the dashboard API (or poll headless)
    perpdash-fetch  fetch one snapshot and exit 0 on success, 1 otherwise
"""

import asyncio
import signal
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from perpdash.analysis.analyst import DataAnalyst
from perpdash.analysis.mistral_client import MistralClient
from perpdash.chain.cosmwasm_client import CosmWasmRestClient
from perpdash.config import AppSettings
from perpdash.data.database import SnapshotDatabase
from perpdash.data.store import SnapshotStore
from perpdash.logging import get_logger, setup_logging
from perpdash.market_data.fetcher import FundingRateFetcher


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Note: Does NOT connect the database or the chain client -- that happens
    in the lifespan (dashboard mode) or in the headless runners.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("perpdash.main")

    database = SnapshotDatabase(settings.store.db_path)
    store = SnapshotStore(database)

    chain_client = CosmWasmRestClient(settings.chain)

    fetcher = FundingRateFetcher(
        chain=chain_client,
        store=store,
        chain_settings=settings.chain,
        poller_settings=settings.poller,
    )

    mistral_client = MistralClient(settings.analysis)
    if not mistral_client.is_configured:
        logger.warning(
            "no_mistral_api_key",
            note="Analysis and chat endpoints will return errors.",
        )
    analyst = DataAnalyst(mistral_client, settings.analysis)

    return {
        "database": database,
        "store": store,
        "chain_client": chain_client,
        "fetcher": fetcher,
        "mistral_client": mistral_client,
        "analyst": analyst,
    }


async def _open(components: dict[str, Any]) -> None:
    await components["database"].connect()
    await components["chain_client"].connect()


async def _close(components: dict[str, Any]) -> None:
    await components["mistral_client"].close()
    await components["chain_client"].close()
    await components["database"].close()


def _setup_signal_handlers(fetcher: FundingRateFetcher) -> None:
    """Register SIGINT/SIGTERM to stop the poller gracefully.

    Only used in headless mode; uvicorn installs its own handlers when
    serving. Must be called after the asyncio event loop is running.
    """
    logger = get_logger("perpdash.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(fetcher.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: opens the store and chain client, stores components on
    app.state, starts the poller when enabled.

    On shutdown: stops the poller and closes every connection.
    """
    logger = get_logger("perpdash.main")
    settings = app.state.settings
    components = app.state.components

    await _open(components)

    app.state.store = components["store"]
    app.state.fetcher = components["fetcher"]
    app.state.analyst = components["analyst"]

    if settings.poller.enabled:
        await components["fetcher"].start()

    logger.info("lifespan_started", poller_enabled=settings.poller.enabled)

    yield

    await components["fetcher"].stop()
    await _close(components)

    logger.info("funding_dashboard_stopped")


async def _run_headless(settings: AppSettings, components: dict[str, Any]) -> None:
    """Poll without a web server until SIGINT/SIGTERM."""
    logger = get_logger("perpdash.main")
    fetcher = components["fetcher"]

    logger.info(
        "starting_without_dashboard",
        poll_interval=settings.poller.poll_interval_seconds,
    )

    try:
        await _open(components)
        _setup_signal_handlers(fetcher)
        await fetcher.start()
        while fetcher.is_running:
            await asyncio.sleep(1)
    finally:
        await fetcher.stop()
        await _close(components)
        logger.info("funding_dashboard_stopped")


async def run() -> None:
    """Run the dashboard server, or the poller alone when the dashboard is off."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("perpdash.main")

    components = _build_components(settings)

    if not settings.dashboard.enabled:
        await _run_headless(settings, components)
        return

    from perpdash.dashboard.app import create_dashboard_app

    app = create_dashboard_app(settings=settings, lifespan=lifespan)
    app.state.components = components

    logger.info(
        "starting_with_dashboard",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


async def fetch_once(settings: AppSettings | None = None) -> bool:
    """Fetch markets and funding rates once.

    Returns:
        True when a non-empty snapshot is available afterwards.
    """
    settings = settings or AppSettings()
    logger = get_logger("perpdash.main")
    components = _build_components(settings)

    try:
        await _open(components)
        snapshot = await components["fetcher"].poll_once()
    finally:
        await _close(components)

    if not snapshot.markets:
        logger.error("fetch_once_failed", reason="no funding data available")
        return False
    logger.info("fetch_once_complete", markets=len(snapshot), timestamp_ms=snapshot.timestamp)
    return True


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


def fetch_main() -> None:
    """Synchronous entry point for the one-shot fetch command."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    ok = asyncio.run(fetch_once(settings))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
