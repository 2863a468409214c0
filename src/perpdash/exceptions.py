"""Custom exceptions for the funding rate dashboard.

The analytics functions never raise for business conditions (empty
snapshots, zero open interest); these exceptions belong to the I/O
collaborators around them.
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""


class ChainQueryError(DashboardError):
    """Raised when a smart-contract query against the chain fails."""


class StoreNotConnectedError(DashboardError):
    """Raised when the snapshot store is used before connect()."""


class AnalysisUnavailableError(DashboardError):
    """Raised when the LLM analysis backend is not configured or fails."""
