from __future__ import annotations

import logging

from lp_apr.application.dto.subgraph_rows import V2PoolSubgraphRow, V3PoolSubgraphRow
from lp_apr.application.ports.subgraph_pool_port import SubgraphPoolPort
from lp_apr.domain.exceptions import IndexerRequestFailedError
from lp_apr.infrastructure.clients.indexer_registry import IndexerClientRegistry
from lp_apr.infrastructure.clients.subgraph_client import SubgraphClient, SubgraphRequestError


logger = logging.getLogger(__name__)

QUERY_V2_POOLS = """
query getPools($pageSize: Int!, $poolAddrs: [ID!]) {
  pairs(first: $pageSize, where: { id_in: $poolAddrs }) {
    id
    reserve0
    reserve1
    reserveUSD
  }
}
"""

QUERY_V3_POOLS = """
query getPools($pageSize: Int!, $poolAddrs: [String]) {
  pools(first: $pageSize, where: { id_in: $poolAddrs }) {
    id
    tick
    sqrtPrice
    feeTier
    liquidity
    feeProtocol
    totalValueLockedUSD
  }
}
"""


class SubgraphPoolRepository(SubgraphPoolPort):
    def __init__(self, registry: IndexerClientRegistry, *, page_size: int = 1000):
        self._registry = registry
        self._page_size = page_size

    def get_v2_pools(self, *, chain_id: int, addresses: list[str]) -> list[V2PoolSubgraphRow]:
        rows = self._fetch_rows(
            client=self._registry.exchange_client(chain_id=chain_id),
            query=QUERY_V2_POOLS,
            field="pairs",
            addresses=addresses,
            chain_id=chain_id,
        )
        return [
            V2PoolSubgraphRow(
                id=str(row["id"]).lower(),
                reserve0=row.get("reserve0"),
                reserve1=row.get("reserve1"),
                reserve_usd=row.get("reserveUSD"),
            )
            for row in rows
        ]

    def get_v3_pools(self, *, chain_id: int, addresses: list[str]) -> list[V3PoolSubgraphRow]:
        rows = self._fetch_rows(
            client=self._registry.v3_client(chain_id=chain_id),
            query=QUERY_V3_POOLS,
            field="pools",
            addresses=addresses,
            chain_id=chain_id,
        )
        return [
            V3PoolSubgraphRow(
                id=str(row["id"]).lower(),
                liquidity=row.get("liquidity"),
                sqrt_price=row.get("sqrtPrice"),
                tick=row.get("tick"),
                fee_tier=row.get("feeTier"),
                fee_protocol=row.get("feeProtocol"),
                total_value_locked_usd=row.get("totalValueLockedUSD"),
            )
            for row in rows
        ]

    def _fetch_rows(
        self,
        *,
        client: SubgraphClient,
        query: str,
        field: str,
        addresses: list[str],
        chain_id: int,
    ) -> list[dict]:
        if not addresses:
            return []
        try:
            data = client.request(
                query,
                {"pageSize": self._page_size, "poolAddrs": [address.lower() for address in addresses]},
            )
        except SubgraphRequestError as exc:
            raise IndexerRequestFailedError(f"Failed to fetch {field} for chain_id={chain_id}: {exc}") from exc

        rows = [row for row in data.get(field) or [] if isinstance(row, dict) and row.get("id")]
        logger.info(
            "pools_repository: fetched_%s requested=%s fetched=%s chain_id=%s",
            field,
            len(addresses),
            len(rows),
            chain_id,
        )
        return rows
