"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainSettings(BaseSettings):
    """Neutron chain access and contract addresses."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_")

    rest_url: str = "https://rest-kralum.neutron-1.neutron.org"
    perps_contract: str = (
        "neutron1g3catxyv0fk8zzsra2mjc0v4s69a7xygdjt85t54l7ym3gv0un4q2xhaf6"
    )
    markets_contract: str = (
        "neutron17v2cwmaynxhc004uph4rle45feepg0z86wwxkue2kc0t5hx82f2s6gmu73"
    )
    markets_limit: int = 50  # perps contract page size
    request_timeout: float = 30.0


class PollerSettings(BaseSettings):
    """Snapshot acquisition schedule and cache windows."""

    model_config = SettingsConfigDict(env_prefix="POLLER_")

    enabled: bool = True
    poll_interval_seconds: int = 900  # every 15 minutes
    funding_cache_seconds: int = 300  # reuse a snapshot younger than 5 min
    market_cache_seconds: int = 3600  # market list changes rarely


class StoreSettings(BaseSettings):
    """Snapshot store location."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    db_path: str = "data/snapshots.db"


class AnalysisSettings(BaseSettings):
    """Mistral chat-completions backend for the analysis sidebar."""

    model_config = SettingsConfigDict(env_prefix="MISTRAL_")

    api_key: SecretStr = SecretStr("")
    base_url: str = "https://api.mistral.ai/v1"
    analysis_model: str = "mistral-small-latest"
    chat_model: str = "mistral-small-latest"
    timeout: float = 60.0


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    enabled: bool = True  # False runs the poller without the HTTP server
    host: str = "0.0.0.0"
    port: int = 8080
    default_hours: int = 24  # history window when the client sends none
    max_hours: int = 24 * 365  # longest history window a request may ask for
    default_chart_markets: list[str] = [
        "perps/ulink",
        "perps/uakt",
        "perps/uinj",
        "perps/ubtc",
        "perps/ueth",
    ]
    default_oi_market: str = "perps/ulink"


class AnalyticsSettings(BaseSettings):
    """Result sizes and windows for the risk analyzers.

    Thresholds and weights are fixed in the analyzers themselves; only the
    display truncation and history window are tunable.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    volatility_window: int = 10  # most recent snapshots used for volatility
    concentration_limit: int = 15
    squeeze_limit: int = 10
    market_risk_limit: int = 5
    top_rates_limit: int = 10


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    chain: ChainSettings = ChainSettings()
    poller: PollerSettings = PollerSettings()
    store: StoreSettings = StoreSettings()
    analysis: AnalysisSettings = AnalysisSettings()
    dashboard: DashboardSettings = DashboardSettings()
    analytics: AnalyticsSettings = AnalyticsSettings()
