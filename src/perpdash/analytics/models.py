"""Result models produced by the risk analyzers.

Every result is computed fresh per call and never mutated afterwards.
The to_dict() methods serialize Decimal values as strings for JSON
transport, matching how snapshots are served.

CRITICAL: All score and rate values use Decimal. Never use float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from perpdash.models import Side


class SentimentLabel(str, Enum):
    """OI-weighted market sentiment classification."""

    EXTREMELY_BULLISH = "Extremely Bullish"
    BULLISH = "Bullish"
    SLIGHTLY_BULLISH = "Slightly Bullish"
    NEUTRAL = "Neutral"
    SLIGHTLY_BEARISH = "Slightly Bearish"
    BEARISH = "Bearish"
    EXTREMELY_BEARISH = "Extremely Bearish"

    @property
    def tone(self) -> str:
        """Display tone for the label: bullish, bearish or neutral."""
        if self.value.endswith("Bullish"):
            return "bullish"
        if self.value.endswith("Bearish"):
            return "bearish"
        return "neutral"


class RiskLevel(str, Enum):
    """Risk classification bucket."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Severity(str, Enum):
    """Alert severity."""

    HIGH = "high"
    MEDIUM = "medium"


class AlertType(str, Enum):
    """Funding rate change conditions that raise an alert."""

    LARGE_CHANGE = "large_change"
    SIGN_FLIP = "sign_flip"
    RAPID_INCREASE = "rapid_increase"
    RAPID_DECREASE = "rapid_decrease"
    EXTREME_LEVEL = "extreme_level"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass
class SentimentResult:
    """Aggregate funding sentiment across all markets of one snapshot."""

    total_markets: int
    positive_count: int
    negative_count: int
    neutral_count: int
    positive_percentage: Decimal
    negative_percentage: Decimal
    neutral_percentage: Decimal
    weighted_sentiment: Decimal  # OI-weighted mean funding rate
    label: SentimentLabel
    extreme_positive_count: int  # funding_rate > 100
    extreme_negative_count: int  # funding_rate < -100
    total_oi: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_markets": self.total_markets,
            "positive_count": self.positive_count,
            "negative_count": self.negative_count,
            "neutral_count": self.neutral_count,
            "positive_percentage": str(self.positive_percentage),
            "negative_percentage": str(self.negative_percentage),
            "neutral_percentage": str(self.neutral_percentage),
            "weighted_sentiment": str(self.weighted_sentiment),
            "label": self.label.value,
            "tone": self.label.tone,
            "extreme_positive_count": self.extreme_positive_count,
            "extreme_negative_count": self.extreme_negative_count,
            "total_oi": str(self.total_oi),
        }


@dataclass
class ConcentrationEntry:
    """Long/short dominance and concentration risk for a single market."""

    market: str
    long_oi: Decimal
    short_oi: Decimal
    total_oi: Decimal
    long_percent: Decimal
    short_percent: Decimal
    concentration: Decimal  # share of the dominant side, 50-100
    dominant_side: Side
    ratio: Decimal  # dominant / weaker OI
    funding_rate: Decimal
    funding_aligned: bool  # dominant side is the one paying funding
    risk_score: Decimal  # 0-100
    ratio_display: str  # "4.00x", or "∞" past the display cap
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "long_oi": str(self.long_oi),
            "short_oi": str(self.short_oi),
            "total_oi": str(self.total_oi),
            "long_percent": str(self.long_percent),
            "short_percent": str(self.short_percent),
            "concentration": str(self.concentration),
            "dominant_side": self.dominant_side.value,
            "ratio": str(self.ratio),
            "ratio_display": self.ratio_display,
            "funding_rate": str(self.funding_rate),
            "funding_aligned": self.funding_aligned,
            "risk_score": str(self.risk_score),
            "risk_level": self.risk_level.value,
        }


@dataclass
class ConcentrationSummary:
    """Headline counts over a concentration ranking."""

    critical_risk: int  # risk_score >= 80
    high_risk: int  # 60 <= risk_score < 80
    extreme_concentration: int  # concentration > 90

    def to_dict(self) -> dict[str, Any]:
        return {
            "critical_risk": self.critical_risk,
            "high_risk": self.high_risk,
            "extreme_concentration": self.extreme_concentration,
        }


@dataclass
class SqueezeEntry:
    """Short/long squeeze scoring for a single market."""

    market: str
    long_oi: Decimal
    short_oi: Decimal
    oi_ratio: Decimal
    dominant_side: Side
    imbalance: Decimal  # percent, 0-100
    funding_rate: Decimal
    short_squeeze_score: Decimal
    long_squeeze_score: Decimal
    max_score: Decimal
    squeeze_type: Side
    label: str  # Extreme, High, Moderate, Low or Minimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "long_oi": str(self.long_oi),
            "short_oi": str(self.short_oi),
            "oi_ratio": str(self.oi_ratio),
            "dominant_side": self.dominant_side.value,
            "imbalance": str(self.imbalance),
            "funding_rate": str(self.funding_rate),
            "short_squeeze_score": str(self.short_squeeze_score),
            "long_squeeze_score": str(self.long_squeeze_score),
            "max_score": str(self.max_score),
            "type": self.squeeze_type.value,
            "label": self.label,
        }


@dataclass
class MarketRisk:
    """Per-market risk ranking entry of the risk dashboard."""

    market: str
    risk: Decimal
    total_oi: Decimal
    level: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "risk": str(self.risk),
            "total_oi": str(self.total_oi),
            "level": self.level.value,
        }


@dataclass
class RiskDashboardResult:
    """Whole-market risk index with its contributing factors."""

    overall_risk: Decimal  # 0-100
    risk_level: RiskLevel
    total_long_oi: Decimal
    total_short_oi: Decimal
    extreme_funding_count: int
    imbalanced_markets: int
    volatility_score: Decimal
    oi_imbalance: Decimal  # percent, 0-100
    long_oi_percent: Decimal
    short_oi_percent: Decimal
    market_risks: list[MarketRisk] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_risk": str(self.overall_risk),
            "risk_level": self.risk_level.value,
            "total_long_oi": str(self.total_long_oi),
            "total_short_oi": str(self.total_short_oi),
            "extreme_funding_count": self.extreme_funding_count,
            "imbalanced_markets": self.imbalanced_markets,
            "volatility_score": str(self.volatility_score),
            "oi_imbalance": str(self.oi_imbalance),
            "long_oi_percent": str(self.long_oi_percent),
            "short_oi_percent": str(self.short_oi_percent),
            "market_risks": [m.to_dict() for m in self.market_risks],
        }


@dataclass
class AlertTrigger:
    """One fired alert condition."""

    type: AlertType
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "label": self.type.label,
            "severity": self.severity.value,
        }


@dataclass
class AlertEntry:
    """All alert conditions fired for one market between two snapshots."""

    market: str
    previous_rate: Decimal
    current_rate: Decimal
    change: Decimal
    change_percent: Decimal
    triggers: list[AlertTrigger]
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "previous_rate": str(self.previous_rate),
            "current_rate": str(self.current_rate),
            "change": str(self.change),
            "change_percent": str(self.change_percent),
            "alerts": [t.to_dict() for t in self.triggers],
            "severity": self.severity.value,
        }


@dataclass
class AlertReport:
    """Alerts derived from a series, flagging when it is too short to compare."""

    sufficient_data: bool
    alerts: list[AlertEntry] = field(default_factory=list)
    previous_timestamp: int | None = None
    current_timestamp: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sufficient_data": self.sufficient_data,
            "previous_timestamp": self.previous_timestamp,
            "current_timestamp": self.current_timestamp,
            "alerts": [a.to_dict() for a in self.alerts],
        }


@dataclass
class TopRateEntry:
    """A market ranked by absolute funding rate."""

    market: str
    funding_rate: Decimal
    long_oi: Decimal
    short_oi: Decimal
    total_oi: Decimal
    long_oi_display: str  # compact USD, e.g. "$1.23M"
    short_oi_display: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "funding_rate": str(self.funding_rate),
            "long_oi": str(self.long_oi),
            "short_oi": str(self.short_oi),
            "total_oi": str(self.total_oi),
            "long_oi_display": self.long_oi_display,
            "short_oi_display": self.short_oi_display,
        }
