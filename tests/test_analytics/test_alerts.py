"""Tests for funding rate change alerts."""

from decimal import Decimal

from perpdash.analytics.alerts import (
    change_percent,
    detect_alerts,
    detect_alerts_from_history,
    evaluate_triggers,
)
from perpdash.analytics.models import AlertType, Severity

HOUR_MS = 60 * 60 * 1000


def _types(triggers) -> list[tuple[AlertType, Severity]]:
    return [(t.type, t.severity) for t in triggers]


class TestChangePercent:
    def test_relative_to_absolute_previous(self) -> None:
        assert change_percent(Decimal("-10"), Decimal("5")) == Decimal("50")

    def test_zero_previous(self) -> None:
        assert change_percent(Decimal("0"), Decimal("30")) == Decimal("0")


class TestEvaluateTriggers:
    def test_sign_flip_with_large_change(self) -> None:
        """10 -> -15: large change (25, medium), sign flip, rapid decrease (-250%)."""
        triggers = evaluate_triggers(Decimal("10"), Decimal("-15"))
        assert _types(triggers) == [
            (AlertType.LARGE_CHANGE, Severity.MEDIUM),
            (AlertType.SIGN_FLIP, Severity.HIGH),
            (AlertType.RAPID_DECREASE, Severity.HIGH),
        ]

    def test_large_change_high_above_50(self) -> None:
        triggers = evaluate_triggers(Decimal("100"), Decimal("160"))
        assert (AlertType.LARGE_CHANGE, Severity.HIGH) in _types(triggers)

    def test_large_change_is_strict(self) -> None:
        assert evaluate_triggers(Decimal("100"), Decimal("120")) == []

    def test_rapid_increase_medium(self) -> None:
        triggers = evaluate_triggers(Decimal("10"), Decimal("20"))
        assert _types(triggers) == [(AlertType.RAPID_INCREASE, Severity.MEDIUM)]

    def test_rapid_increase_high(self) -> None:
        triggers = evaluate_triggers(Decimal("10"), Decimal("25"))
        assert _types(triggers) == [(AlertType.RAPID_INCREASE, Severity.HIGH)]

    def test_rapid_increase_needs_minimum_change(self) -> None:
        assert evaluate_triggers(Decimal("2"), Decimal("6")) == []

    def test_rapid_decrease_medium(self) -> None:
        triggers = evaluate_triggers(Decimal("20"), Decimal("6"))
        assert _types(triggers) == [(AlertType.RAPID_DECREASE, Severity.MEDIUM)]

    def test_extreme_level_on_crossing_only(self) -> None:
        crossing = evaluate_triggers(Decimal("190"), Decimal("210"))
        assert _types(crossing) == [(AlertType.EXTREME_LEVEL, Severity.HIGH)]

        already_extreme = evaluate_triggers(Decimal("210"), Decimal("215"))
        assert already_extreme == []

    def test_negative_extreme_level(self) -> None:
        triggers = evaluate_triggers(Decimal("-195"), Decimal("-205"))
        assert _types(triggers) == [(AlertType.EXTREME_LEVEL, Severity.HIGH)]

    def test_from_zero_is_not_a_sign_flip(self) -> None:
        triggers = evaluate_triggers(Decimal("0"), Decimal("30"))
        assert _types(triggers) == [(AlertType.LARGE_CHANGE, Severity.MEDIUM)]

    def test_no_change(self) -> None:
        assert evaluate_triggers(Decimal("42"), Decimal("42")) == []


class TestDetectAlerts:
    def test_market_severity_is_highest_trigger(self, make_snapshot) -> None:
        previous = make_snapshot({"A": ("10", 1, 1)}, timestamp=0)
        current = make_snapshot({"A": ("-15", 1, 1)}, timestamp=HOUR_MS)
        [alert] = detect_alerts(previous, current)

        assert alert.market == "A"
        assert alert.severity == Severity.HIGH
        assert alert.change == Decimal("-25")
        assert alert.change_percent == Decimal("-250")

    def test_markets_missing_from_either_side_skipped(self, make_snapshot) -> None:
        previous = make_snapshot({"old": ("10", 1, 1)}, timestamp=0)
        current = make_snapshot({"new": ("500", 1, 1)}, timestamp=HOUR_MS)
        assert detect_alerts(previous, current) == []

    def test_ordering(self, make_snapshot) -> None:
        previous = make_snapshot(
            {
                "medium_big": ("100", 1, 1),
                "medium_small": ("10", 1, 1),
                "high_small": ("190", 1, 1),
                "high_big": ("10", 1, 1),
                "high_tie": ("190", 1, 1),
            },
            timestamp=0,
        )
        current = make_snapshot(
            {
                "medium_big": ("145", 1, 1),
                "medium_small": ("20", 1, 1),
                "high_small": ("210", 1, 1),
                "high_big": ("-60", 1, 1),
                "high_tie": ("210", 1, 1),
            },
            timestamp=HOUR_MS,
        )
        alerts = detect_alerts(previous, current)
        assert [a.market for a in alerts] == [
            "high_big",
            "high_small",
            "high_tie",
            "medium_big",
            "medium_small",
        ]

    def test_deterministic(self, make_snapshot) -> None:
        previous = make_snapshot({"A": ("10", 1, 1), "B": ("10", 1, 1)}, timestamp=0)
        current = make_snapshot({"A": ("40", 1, 1), "B": ("-20", 1, 1)}, timestamp=HOUR_MS)
        assert detect_alerts(previous, current) == detect_alerts(previous, current)

    def test_to_dict_uses_alerts_key(self, make_snapshot) -> None:
        previous = make_snapshot({"A": ("10", 1, 1)}, timestamp=0)
        current = make_snapshot({"A": ("-15", 1, 1)}, timestamp=HOUR_MS)
        data = detect_alerts(previous, current)[0].to_dict()
        assert data["severity"] == "high"
        assert data["alerts"][1] == {
            "type": "sign_flip",
            "label": "Sign Flip",
            "severity": "high",
        }


class TestDetectAlertsFromHistory:
    def test_insufficient_data(self, make_snapshot) -> None:
        for series in ([], [make_snapshot({"A": ("10", 1, 1)})]):
            report = detect_alerts_from_history(series)
            assert report.sufficient_data is False
            assert report.alerts == []

    def test_compares_last_two(self, make_snapshot) -> None:
        series = [
            make_snapshot({"A": ("500", 1, 1)}, timestamp=0),
            make_snapshot({"A": ("10", 1, 1)}, timestamp=HOUR_MS),
            make_snapshot({"A": ("20", 1, 1)}, timestamp=2 * HOUR_MS),
        ]
        report = detect_alerts_from_history(series)
        assert report.sufficient_data is True
        assert report.previous_timestamp == HOUR_MS
        assert report.current_timestamp == 2 * HOUR_MS
        assert [a.market for a in report.alerts] == ["A"]
        assert report.alerts[0].change == Decimal("10")
