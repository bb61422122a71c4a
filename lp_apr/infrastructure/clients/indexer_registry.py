from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock

from lp_apr.domain.entities.chain import chain_key
from lp_apr.domain.exceptions import NoIndexerClientForNetworkError
from lp_apr.infrastructure.clients.subgraph_client import (
    RequestThrottle,
    SubgraphClient,
    SubgraphClientSettings,
)


logger = logging.getLogger(__name__)

BLOCKS = "blocks"
EXCHANGE = "exchange"
V3 = "v3"


@dataclass(frozen=True)
class IndexerRegistrySettings:
    graph_gateway_base: str
    graph_api_key: str
    blocks_subgraphs: dict
    exchange_subgraphs: dict
    v3_subgraphs: dict
    stable_swap_subgraph: str
    timeout_seconds: float
    min_interval_ms: int


class IndexerClientRegistry:
    """Maps a chain to the subgraph client of each data domain."""

    def __init__(self, settings: IndexerRegistrySettings):
        self._settings = settings
        self._client_settings = SubgraphClientSettings(
            timeout_seconds=settings.timeout_seconds,
            min_interval_ms=settings.min_interval_ms,
        )
        self._throttle = RequestThrottle(settings.min_interval_ms)
        self._clients: dict[str, SubgraphClient] = {}
        self._lock = Lock()

    def blocks_client(self, *, chain_id: int) -> SubgraphClient:
        return self._client_for(BLOCKS, self._settings.blocks_subgraphs, chain_id)

    def exchange_client(self, *, chain_id: int) -> SubgraphClient:
        return self._client_for(EXCHANGE, self._settings.exchange_subgraphs, chain_id)

    def v3_client(self, *, chain_id: int) -> SubgraphClient:
        return self._client_for(V3, self._settings.v3_subgraphs, chain_id)

    def stable_swap_client(self) -> SubgraphClient:
        subgraph = str(self._settings.stable_swap_subgraph or "").strip()
        if not subgraph:
            raise NoIndexerClientForNetworkError("Missing STABLESWAP_SUBGRAPH.")
        return self._get_or_create(self._build_gateway_url(subgraph))

    def _client_for(self, domain: str, subgraphs: dict, chain_id: int) -> SubgraphClient:
        key = chain_key(chain_id)
        if not key:
            raise NoIndexerClientForNetworkError(f"Unsupported chain_id for {domain} subgraph: {chain_id}")

        subgraph = str(subgraphs.get(key) or "").strip()
        if not subgraph:
            logger.error(
                "indexer_registry: subgraph_not_configured domain=%s chain=%s chain_id=%s",
                domain,
                key,
                chain_id,
            )
            raise NoIndexerClientForNetworkError(
                f"No {domain} subgraph configured for chain '{key}' (chain_id={chain_id})."
            )
        return self._get_or_create(self._build_gateway_url(subgraph))

    def _get_or_create(self, url: str) -> SubgraphClient:
        with self._lock:
            client = self._clients.get(url)
            if client is None:
                client = SubgraphClient(url=url, settings=self._client_settings, throttle=self._throttle)
                self._clients[url] = client
            return client

    def _build_gateway_url(self, subgraph_id: str) -> str:
        if subgraph_id.startswith("http://") or subgraph_id.startswith("https://"):
            return subgraph_id.rstrip("/")
        base = self._settings.graph_gateway_base.rstrip("/")
        api_key = self._settings.graph_api_key.strip()
        if api_key:
            return f"{base}/{api_key}/subgraphs/id/{subgraph_id}"
        return f"{base}/subgraphs/id/{subgraph_id}"
