"""Tests for snapshot data models and their stored document shape."""

from decimal import Decimal

from perpdash.models import MarketRate, Snapshot, oi_to_units


class TestOiToUnits:
    def test_six_implied_decimals(self) -> None:
        assert oi_to_units("5000000") == Decimal("5")

    def test_fractional_units(self) -> None:
        assert oi_to_units("1500") == Decimal("0.0015")

    def test_zero(self) -> None:
        assert oi_to_units("0") == Decimal("0")


class TestMarketRate:
    def test_unit_properties(self) -> None:
        rate = MarketRate(
            funding_rate=Decimal("10"), long_oi="2000000", short_oi="500000", timestamp=1
        )
        assert rate.long_oi_units == Decimal("2")
        assert rate.short_oi_units == Decimal("0.5")

    def test_to_dict_uses_camel_case_and_string_rate(self) -> None:
        rate = MarketRate(
            funding_rate=Decimal("12.5"), long_oi="1", short_oi="2", timestamp=42
        )
        assert rate.to_dict() == {
            "fundingRate": "12.5",
            "longOI": "1",
            "shortOI": "2",
            "timestamp": 42,
        }

    def test_to_dict_includes_price_when_set(self) -> None:
        rate = MarketRate(
            funding_rate=Decimal("1"), long_oi="0", short_oi="0", timestamp=1, price="3.2"
        )
        assert rate.to_dict()["price"] == "3.2"

    def test_from_dict_accepts_numeric_rate_without_float_noise(self) -> None:
        rate = MarketRate.from_dict(
            {"fundingRate": 0.1, "longOI": "10", "shortOI": "20", "timestamp": 5}
        )
        assert rate.funding_rate == Decimal("0.1")
        assert rate.long_oi == "10"
        assert rate.timestamp == 5

    def test_from_dict_defaults_missing_fields(self) -> None:
        rate = MarketRate.from_dict({}, default_timestamp=99)
        assert rate.funding_rate == Decimal("0")
        assert rate.long_oi == "0"
        assert rate.short_oi == "0"
        assert rate.timestamp == 99
        assert rate.price is None


class TestSnapshot:
    def test_len_counts_markets(self, sample_snapshot: Snapshot) -> None:
        assert len(sample_snapshot) == 3

    def test_document_round_trip_preserves_decimals(self, sample_snapshot: Snapshot) -> None:
        restored = Snapshot.from_dict(sample_snapshot.to_dict())
        assert restored == sample_snapshot

    def test_from_dict_entry_timestamp_defaults_to_snapshot(self) -> None:
        snapshot = Snapshot.from_dict(
            {"timestamp": 1000, "data": {"perps/ubtc": {"fundingRate": "5"}}}
        )
        assert snapshot.markets["perps/ubtc"].timestamp == 1000

    def test_from_dict_without_data(self) -> None:
        snapshot = Snapshot.from_dict({"timestamp": 1000})
        assert snapshot.markets == {}
