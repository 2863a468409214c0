"""Tests for the dashboard JSON API and streaming analysis endpoints.

Uses FastAPI TestClient with mocked components on app.state.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from perpdash.config import AppSettings
from perpdash.dashboard.app import create_dashboard_app
from perpdash.exceptions import AnalysisUnavailableError
from perpdash.models import Cadence, Snapshot

HOUR_MS = 60 * 60 * 1000


class FakeAnalyst:
    """Stands in for DataAnalyst, recording calls and yielding fixed chunks."""

    def __init__(self, chunks: list[str], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.calls: list[tuple] = []

    async def _stream(self):
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk

    def ask(self, data, question, data_type):
        self.calls.append(("ask", data, question, data_type))
        return self._stream()

    def chat(self, message, history, context, data):
        self.calls.append(("chat", message, history, context, data))
        return self._stream()


@pytest.fixture
def history(make_snapshot) -> list[Snapshot]:
    return [
        make_snapshot({"perps/ubtc": ("10", 80, 20), "perps/ueth": ("5", 1, 1)}, timestamp=0),
        make_snapshot(
            {"perps/ubtc": ("-15", 80, 20), "perps/ueth": ("5", 1, 1)}, timestamp=HOUR_MS
        ),
    ]


@pytest.fixture
def mock_fetcher(history: list[Snapshot]) -> MagicMock:
    fetcher = MagicMock()
    fetcher.get_current = AsyncMock(return_value=history[-1])
    fetcher.get_historical = AsyncMock(return_value=history)
    fetcher.is_running = True
    fetcher.last_poll_at = 1700000000.0
    return fetcher


@pytest.fixture
def app(mock_settings: AppSettings, mock_fetcher: MagicMock):
    app = create_dashboard_app(settings=mock_settings)
    app.state.fetcher = mock_fetcher
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


class TestUnavailable:
    def test_no_fetcher_returns_503(self, mock_settings: AppSettings) -> None:
        client = TestClient(create_dashboard_app(settings=mock_settings))
        response = client.get("/api/funding-rates/current")
        assert response.status_code == 503

    def test_no_store_reports_disabled(self, client: TestClient) -> None:
        assert client.get("/api/data-status").json() == {"enabled": False}


class TestFundingRates:
    def test_current(self, client: TestClient) -> None:
        response = client.get("/api/funding-rates/current")
        assert response.status_code == 200
        body = response.json()
        assert body["timestamp"] == HOUR_MS
        assert body["data"]["perps/ubtc"]["fundingRate"] == "-15"
        assert body["data"]["perps/ubtc"]["longOI"] == "80000000"

    def test_history_defaults(self, client: TestClient, mock_fetcher: MagicMock) -> None:
        response = client.get("/api/funding-rates/history")
        assert response.status_code == 200
        assert len(response.json()) == 2
        mock_fetcher.get_historical.assert_awaited_once_with(24, Cadence.RAW)

    def test_history_params(self, client: TestClient, mock_fetcher: MagicMock) -> None:
        client.get("/api/funding-rates/history", params={"hours": 168, "timeframe": "4h"})
        mock_fetcher.get_historical.assert_awaited_once_with(168, Cadence.FOUR_HOURLY)

    def test_invalid_timeframe(self, client: TestClient) -> None:
        response = client.get("/api/funding-rates/history", params={"timeframe": "2h"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_non_positive_hours(self, client: TestClient) -> None:
        response = client.get("/api/funding-rates/history", params={"hours": 0})
        assert response.status_code == 400

    def test_non_integer_hours(self, client: TestClient, mock_fetcher: MagicMock) -> None:
        response = client.get("/api/funding-rates/history", params={"hours": "abc"})
        assert response.status_code == 400
        assert "error" in response.json()
        mock_fetcher.get_historical.assert_not_awaited()

    def test_hours_above_limit(
        self, client: TestClient, mock_fetcher: MagicMock, mock_settings: AppSettings
    ) -> None:
        too_many = mock_settings.dashboard.max_hours + 1
        for path in ("/api/funding-rates/history", "/api/analytics/risk", "/api/dashboard"):
            response = client.get(path, params={"hours": too_many})
            assert response.status_code == 400
        response = client.get("/api/analytics/alerts", params={"hours": 10**15})
        assert response.status_code == 400
        mock_fetcher.get_historical.assert_not_awaited()

    def test_hours_at_limit(
        self, client: TestClient, mock_fetcher: MagicMock, mock_settings: AppSettings
    ) -> None:
        max_hours = mock_settings.dashboard.max_hours
        response = client.get("/api/funding-rates/history", params={"hours": max_hours})
        assert response.status_code == 200
        mock_fetcher.get_historical.assert_awaited_once_with(max_hours, Cadence.RAW)


class TestAnalytics:
    def test_sentiment(self, client: TestClient) -> None:
        body = client.get("/api/analytics/sentiment").json()
        assert body["total_markets"] == 2
        assert body["negative_count"] == 1

    def test_concentration(self, client: TestClient) -> None:
        """ubtc is 80% long while paying shorts: base 60, misaligned x1.5."""
        body = client.get("/api/analytics/concentration").json()
        top = body["entries"][0]
        assert top["market"] == "perps/ubtc"
        assert Decimal(top["concentration"]) == Decimal("80")
        assert top["ratio_display"] == "4.00x"
        assert Decimal(top["risk_score"]) == Decimal("90")
        assert top["risk_level"] == "Critical"
        assert body["summary"] == {
            "critical_risk": 1,
            "high_risk": 0,
            "extreme_concentration": 0,
        }

    def test_concentration_one_sided_ratio_renders_infinite(
        self, client: TestClient, mock_fetcher: MagicMock, make_snapshot
    ) -> None:
        mock_fetcher.get_current.return_value = make_snapshot({"perps/uatom": ("5", 100, 0)})
        body = client.get("/api/analytics/concentration").json()
        [entry] = body["entries"]
        assert entry["ratio_display"] == "∞"
        assert body["summary"]["extreme_concentration"] == 1

    def test_squeeze(self, client: TestClient) -> None:
        """Only the balanced market paying longs scores (0 * 100 + 5 / 10)."""
        body = client.get("/api/analytics/squeeze").json()
        assert [e["market"] for e in body] == ["perps/ueth"]
        assert Decimal(body[0]["max_score"]) == Decimal("0.5")
        assert body[0]["label"] == "Minimal"

    def test_top_rates(self, client: TestClient) -> None:
        body = client.get("/api/analytics/top-rates").json()
        assert [e["market"] for e in body] == ["perps/ubtc", "perps/ueth"]
        assert body[0]["long_oi_display"] == "$80.00"
        assert body[0]["short_oi_display"] == "$20.00"

    def test_top_rates_skip_markets_without_oi(
        self, client: TestClient, mock_fetcher: MagicMock, make_snapshot
    ) -> None:
        mock_fetcher.get_current.return_value = make_snapshot(
            {"perps/udead": ("900", 0, 0), "perps/ulive": ("50", 10, 5)}
        )
        body = client.get("/api/analytics/top-rates").json()
        assert [e["market"] for e in body] == ["perps/ulive"]

    def test_risk(self, client: TestClient) -> None:
        """ubtc: ratio 4 scores 15, long-heavy with negative funding adds 20."""
        body = client.get("/api/analytics/risk", params={"timeframe": "1h"}).json()
        assert "overall_risk" in body
        assert body["volatility_score"] == "12.5"
        [market_risk] = body["market_risks"]
        assert market_risk["market"] == "perps/ubtc"
        assert Decimal(market_risk["risk"]) == Decimal("35")
        assert market_risk["level"] == "Low"

    def test_alerts(self, client: TestClient) -> None:
        body = client.get("/api/analytics/alerts").json()
        assert body["sufficient_data"] is True
        [alert] = body["alerts"]
        assert alert["market"] == "perps/ubtc"
        assert alert["severity"] == "high"

    def test_alerts_insufficient(self, client: TestClient, mock_fetcher: MagicMock) -> None:
        mock_fetcher.get_historical.return_value = []
        body = client.get("/api/analytics/alerts").json()
        assert body["sufficient_data"] is False
        assert body["alerts"] == []


class TestDashboard:
    def test_payload(self, client: TestClient) -> None:
        body = client.get("/api/dashboard").json()

        assert set(body) >= {
            "current",
            "history",
            "sentiment",
            "risk",
            "alerts",
            "squeeze",
            "concentration",
            "top_rates",
        }
        assert body["timeframe"] == "15m"
        assert body["concentration"]["summary"]["critical_risk"] == 1
        assert body["concentration"]["entries"][0]["risk_level"] == "Critical"
        assert body["risk"]["market_risks"][0]["level"] == "Low"
        assert body["default_chart_markets"] == ["perps/ubtc", "perps/ueth"]
        assert body["default_oi_market"] == "perps/ulink"


class TestDataStatus:
    def test_with_store(self, app, client: TestClient) -> None:
        store = MagicMock()
        store.get_data_status = AsyncMock(
            return_value={
                "total_snapshots": 2,
                "total_markets": 2,
                "earliest_ms": 0,
                "latest_ms": HOUR_MS,
            }
        )
        app.state.store = store

        body = client.get("/api/data-status").json()
        assert body["enabled"] is True
        assert body["total_snapshots"] == 2
        assert body["poller_running"] is True


class TestAnalysisEndpoints:
    def test_analyze_streams_text(self, app, client: TestClient) -> None:
        analyst = FakeAnalyst(["Crowded ", "longs."])
        app.state.analyst = analyst

        response = client.post(
            "/api/analyze-data",
            json={"data": {"x": 1}, "question": "Risk?", "dataType": "concentration"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Crowded longs."
        assert analyst.calls[0][1:3] == ({"x": 1}, "Risk?")

    def test_analyze_failure_before_stream_is_500(self, app, client: TestClient) -> None:
        app.state.analyst = FakeAnalyst([], error=AnalysisUnavailableError("no key"))
        response = client.post("/api/analyze-data", json={"data": {}, "question": "?"})
        assert response.status_code == 500
        assert response.text == "Error analyzing data"

    def test_analyze_invalid_data_type(self, app, client: TestClient) -> None:
        app.state.analyst = FakeAnalyst(["x"])
        response = client.post(
            "/api/analyze-data", json={"data": {}, "question": "?", "dataType": "weather"}
        )
        assert response.status_code == 400

    def test_analyze_missing_question(self, app, client: TestClient) -> None:
        app.state.analyst = FakeAnalyst(["x"])
        response = client.post("/api/analyze-data", json={"data": {}})
        assert response.status_code == 400

    def test_analysis_unavailable(self, client: TestClient) -> None:
        response = client.post("/api/analyze-data", json={"data": {}, "question": "?"})
        assert response.status_code == 503

    def test_chat_streams_text(self, app, client: TestClient) -> None:
        analyst = FakeAnalyst(["Hi", "!"])
        app.state.analyst = analyst

        response = client.post(
            "/api/chat",
            json={
                "message": "hello",
                "messages": [{"role": "user", "content": "earlier"}, "junk"],
                "context": "Risk page",
            },
        )

        assert response.status_code == 200
        assert response.text == "Hi!"
        _, message, history, context, data = analyst.calls[0]
        assert message == "hello"
        assert history == [{"role": "user", "content": "earlier"}]
        assert context == "Risk page"
        assert data is None

    def test_chat_failure_is_500(self, app, client: TestClient) -> None:
        app.state.analyst = FakeAnalyst([], error=AnalysisUnavailableError("down"))
        response = client.post("/api/chat", json={"message": "hello"})
        assert response.status_code == 500

    def test_chat_missing_message(self, app, client: TestClient) -> None:
        app.state.analyst = FakeAnalyst(["x"])
        response = client.post("/api/chat", json={"messages": []})
        assert response.status_code == 400
