"""Abstract chain client interface.

Acquisition code depends only on this interface, keeping the transport
(LCD REST today) isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from typing import Any


class ChainClient(ABC):
    """Abstract base class for read-only CosmWasm contract access."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying transport."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport."""
        ...

    @abstractmethod
    async def query_contract_smart(self, address: str, query: dict) -> Any:
        """Run a smart query against a contract and return its JSON result."""
        ...
