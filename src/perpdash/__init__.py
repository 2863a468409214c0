"""Perpetuals funding-rate and open-interest risk dashboard."""

__version__ = "0.1.0"
