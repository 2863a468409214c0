"""CosmWasm smart-query client over a Cosmos LCD (REST) endpoint via httpx.

Smart queries are base64-encoded JSON in the URL path:
    GET {rest_url}/cosmwasm/wasm/v1/contract/{address}/smart/{query_b64}
and the contract's answer comes back under the "data" key.
"""

import base64
import json
from typing import Any

import httpx

from perpdash.chain.client import ChainClient
from perpdash.config import ChainSettings
from perpdash.exceptions import ChainQueryError
from perpdash.logging import get_logger

logger = get_logger(__name__)


def encode_query(query: dict) -> str:
    """URL-safe base64 of the compact JSON query."""
    raw = json.dumps(query, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode()


class CosmWasmRestClient(ChainClient):
    """Concrete chain client using httpx.AsyncClient against an LCD endpoint."""

    def __init__(
        self,
        settings: ChainSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        if self._client is not None and not self._client.is_closed:
            return
        self._client = httpx.AsyncClient(
            base_url=self._settings.rest_url,
            timeout=self._settings.request_timeout,
            transport=self._transport,
        )
        logger.info("chain_client_connected", rest_url=self._settings.rest_url)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.info("chain_client_closed")
        self._client = None

    async def query_contract_smart(self, address: str, query: dict) -> Any:
        """Run a smart query.

        Raises:
            ChainQueryError: On transport failure, a non-2xx response or a
                body without a "data" field.
        """
        if self._client is None:
            await self.connect()
        assert self._client is not None

        path = f"/cosmwasm/wasm/v1/contract/{address}/smart/{encode_query(query)}"
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ChainQueryError(f"Smart query to {address} failed: {e}") from e

        if not isinstance(body, dict) or "data" not in body:
            raise ChainQueryError(f"Smart query to {address} returned no data")

        logger.debug("chain_query_ok", address=address, query=list(query))
        return body["data"]
