"""Market data acquisition -- scheduled funding rate polling from chain."""

from perpdash.market_data.fetcher import FundingRateFetcher, parse_perps_markets

__all__ = ["FundingRateFetcher", "parse_perps_markets"]
