"""JSON API endpoints for snapshots and risk analytics.

Analytics are computed on every request from the latest stored snapshot
(and a filtered history window where needed); nothing is cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from perpdash.analytics import (
    analyze_concentration,
    analyze_risk_dashboard,
    analyze_sentiment,
    analyze_squeeze_potential,
    detect_alerts_from_history,
    summarize_concentration,
    top_funding_rates,
)
from perpdash.config import AppSettings
from perpdash.logging import get_logger
from perpdash.market_data.fetcher import FundingRateFetcher
from perpdash.models import Cadence, Snapshot

log = get_logger(__name__)

router = APIRouter()


def _fetcher(request: Request) -> FundingRateFetcher | None:
    return getattr(request.app.state, "fetcher", None)


def _settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _unavailable() -> JSONResponse:
    return JSONResponse(content={"error": "Snapshot data not available"}, status_code=503)


def _parse_window(
    request: Request, hours: str | None, timeframe: str
) -> tuple[int, Cadence] | JSONResponse:
    """Validate the history window query params.

    ``hours`` arrives as raw text so every malformed value gets the same 400
    as an out-of-range one. Returns (hours, cadence) or a 400 JSONResponse.
    """
    try:
        cadence = Cadence(timeframe)
    except ValueError:
        valid = ", ".join(c.value for c in Cadence)
        return JSONResponse(
            content={"error": f"Invalid timeframe {timeframe!r}; expected one of {valid}"},
            status_code=400,
        )

    dashboard = _settings(request).dashboard
    if hours is None:
        return dashboard.default_hours, cadence
    try:
        hours_back = int(hours)
    except ValueError:
        return JSONResponse(content={"error": "hours must be an integer"}, status_code=400)
    if not 0 < hours_back <= dashboard.max_hours:
        return JSONResponse(
            content={"error": f"hours must be between 1 and {dashboard.max_hours}"},
            status_code=400,
        )
    return hours_back, cadence


def _series_to_dict(series: list[Snapshot]) -> list[dict]:
    return [s.to_dict() for s in series]


def _concentration_payload(snapshot: Snapshot, limit: int) -> dict:
    entries = analyze_concentration(snapshot, limit=limit)
    return {
        "entries": [e.to_dict() for e in entries],
        "summary": summarize_concentration(entries).to_dict(),
    }


@router.get("/funding-rates/current")
async def get_current_rates(request: Request) -> JSONResponse:
    """Latest stored snapshot."""
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    snapshot = await fetcher.get_current()
    return JSONResponse(content=snapshot.to_dict())


@router.get("/funding-rates/history")
async def get_history(
    request: Request, hours: str | None = None, timeframe: str = Cadence.RAW.value
) -> JSONResponse:
    """Snapshots from the last ``hours`` hours, subsampled to ``timeframe``."""
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    window = _parse_window(request, hours, timeframe)
    if isinstance(window, JSONResponse):
        return window

    series = await fetcher.get_historical(*window)
    return JSONResponse(content=_series_to_dict(series))


@router.get("/analytics/sentiment")
async def get_sentiment(request: Request) -> JSONResponse:
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    snapshot = await fetcher.get_current()
    return JSONResponse(content=analyze_sentiment(snapshot).to_dict())


@router.get("/analytics/concentration")
async def get_concentration(request: Request) -> JSONResponse:
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    snapshot = await fetcher.get_current()
    limit = _settings(request).analytics.concentration_limit
    return JSONResponse(content=_concentration_payload(snapshot, limit))


@router.get("/analytics/squeeze")
async def get_squeeze(request: Request) -> JSONResponse:
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    snapshot = await fetcher.get_current()
    limit = _settings(request).analytics.squeeze_limit
    return JSONResponse(
        content=[e.to_dict() for e in analyze_squeeze_potential(snapshot, limit=limit)]
    )


@router.get("/analytics/top-rates")
async def get_top_rates(request: Request) -> JSONResponse:
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    snapshot = await fetcher.get_current()
    limit = _settings(request).analytics.top_rates_limit
    return JSONResponse(content=[e.to_dict() for e in top_funding_rates(snapshot, limit=limit)])


@router.get("/analytics/risk")
async def get_risk(
    request: Request, hours: str | None = None, timeframe: str = Cadence.RAW.value
) -> JSONResponse:
    """Aggregate risk index; volatility uses the requested history window."""
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    window = _parse_window(request, hours, timeframe)
    if isinstance(window, JSONResponse):
        return window

    snapshot = await fetcher.get_current()
    history = await fetcher.get_historical(*window)
    analytics = _settings(request).analytics
    result = analyze_risk_dashboard(
        snapshot,
        history,
        volatility_window=analytics.volatility_window,
        market_risk_limit=analytics.market_risk_limit,
    )
    return JSONResponse(content=result.to_dict())


@router.get("/analytics/alerts")
async def get_alerts(
    request: Request, hours: str | None = None, timeframe: str = Cadence.RAW.value
) -> JSONResponse:
    """Changes between the last two snapshots of the requested window."""
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    window = _parse_window(request, hours, timeframe)
    if isinstance(window, JSONResponse):
        return window

    history = await fetcher.get_historical(*window)
    return JSONResponse(content=detect_alerts_from_history(history).to_dict())


@router.get("/dashboard")
async def get_dashboard(
    request: Request, hours: str | None = None, timeframe: str = Cadence.RAW.value
) -> JSONResponse:
    """Everything the dashboard page renders, computed from one read."""
    fetcher = _fetcher(request)
    if fetcher is None:
        return _unavailable()
    window = _parse_window(request, hours, timeframe)
    if isinstance(window, JSONResponse):
        return window

    settings = _settings(request)
    snapshot = await fetcher.get_current()
    history = await fetcher.get_historical(*window)
    analytics = settings.analytics

    risk = analyze_risk_dashboard(
        snapshot,
        history,
        volatility_window=analytics.volatility_window,
        market_risk_limit=analytics.market_risk_limit,
    )
    content = {
        "current": snapshot.to_dict(),
        "history": _series_to_dict(history),
        "timeframe": window[1].value,
        "sentiment": analyze_sentiment(snapshot).to_dict(),
        "risk": risk.to_dict(),
        "alerts": detect_alerts_from_history(history).to_dict(),
        "squeeze": [
            e.to_dict()
            for e in analyze_squeeze_potential(snapshot, limit=analytics.squeeze_limit)
        ],
        "concentration": _concentration_payload(snapshot, analytics.concentration_limit),
        "top_rates": [
            e.to_dict() for e in top_funding_rates(snapshot, limit=analytics.top_rates_limit)
        ],
        "default_chart_markets": [
            m for m in settings.dashboard.default_chart_markets if m in snapshot.markets
        ],
        "default_oi_market": settings.dashboard.default_oi_market,
    }
    log.debug("dashboard_payload_built", markets=len(snapshot), history=len(history))
    return JSONResponse(content=content)


@router.get("/data-status")
async def get_data_status(request: Request) -> JSONResponse:
    """Store status plus poller state."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        return JSONResponse(content={"enabled": False})

    status = await store.get_data_status()
    fetcher = _fetcher(request)
    result = {"enabled": True, **status}
    if fetcher is not None:
        result["poller_running"] = fetcher.is_running
        result["last_poll_at"] = fetcher.last_poll_at
    return JSONResponse(content=result)
