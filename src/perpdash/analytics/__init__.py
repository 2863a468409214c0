"""Funding rate risk analytics.

Pure, stateless functions over snapshots: timeframe subsampling, market
sentiment, OI concentration, squeeze potential, the aggregate risk
dashboard, change alerts and the top funding rates table. None of them
perform I/O or mutate their inputs, so they are safe to call from
concurrent request handlers.
"""

from perpdash.analytics.alerts import detect_alerts, detect_alerts_from_history
from perpdash.analytics.concentration import (
    analyze_concentration,
    format_ratio,
    summarize_concentration,
)
from perpdash.analytics.models import (
    AlertEntry,
    AlertReport,
    AlertTrigger,
    AlertType,
    ConcentrationEntry,
    ConcentrationSummary,
    MarketRisk,
    RiskDashboardResult,
    RiskLevel,
    SentimentLabel,
    SentimentResult,
    Severity,
    SqueezeEntry,
    TopRateEntry,
)
from perpdash.analytics.risk_dashboard import analyze_risk_dashboard, risk_label
from perpdash.analytics.sentiment import analyze_sentiment
from perpdash.analytics.squeeze import analyze_squeeze_potential, squeeze_label
from perpdash.analytics.timeframe import filter_by_timeframe
from perpdash.analytics.top_rates import format_usd, top_funding_rates

__all__ = [
    "AlertEntry",
    "AlertReport",
    "AlertTrigger",
    "AlertType",
    "ConcentrationEntry",
    "ConcentrationSummary",
    "MarketRisk",
    "RiskDashboardResult",
    "RiskLevel",
    "SentimentLabel",
    "SentimentResult",
    "Severity",
    "SqueezeEntry",
    "TopRateEntry",
    "analyze_concentration",
    "analyze_risk_dashboard",
    "analyze_sentiment",
    "analyze_squeeze_potential",
    "detect_alerts",
    "detect_alerts_from_history",
    "filter_by_timeframe",
    "format_ratio",
    "format_usd",
    "risk_label",
    "squeeze_label",
    "summarize_concentration",
    "top_funding_rates",
]
