"""Chain client layer -- CosmWasm contract queries via an LCD endpoint."""

from perpdash.chain.client import ChainClient
from perpdash.chain.cosmwasm_client import CosmWasmRestClient, encode_query

__all__ = ["ChainClient", "CosmWasmRestClient", "encode_query"]
