from __future__ import annotations

import logging

from lp_apr.application.dto.subgraph_rows import FarmSubgraphRow, FarmsBulkRows
from lp_apr.application.ports.farm_data_port import FarmDataPort, StableSwapPort
from lp_apr.domain.entities.farm import VirtualPriceSnapshot
from lp_apr.domain.exceptions import IndexerRequestFailedError
from lp_apr.infrastructure.clients.indexer_registry import IndexerClientRegistry
from lp_apr.infrastructure.clients.subgraph_client import SubgraphRequestError


logger = logging.getLogger(__name__)

QUERY_FARMS_BULK = """
query farmsBulk($addresses: [String]!, $blockWeekAgo: Int!, $first: Int!) {
  farmsAtLatestBlock: pairs(first: $first, where: { id_in: $addresses }) {
    id
    volumeUSD
    reserveUSD
  }
  farmsOneWeekAgo: pairs(first: $first, where: { id_in: $addresses }, block: { number: $blockWeekAgo }) {
    id
    volumeUSD
    reserveUSD
  }
}
"""

QUERY_VIRTUAL_PRICE = """
query virtualPriceStableSwap($stableSwapAddress: String, $blockDayAgo: Int!) {
  virtualPriceAtLatestBlock: pair(id: $stableSwapAddress) {
    virtualPrice
  }
  virtualPriceOneDayAgo: pair(id: $stableSwapAddress, block: { number: $blockDayAgo }) {
    virtualPrice
  }
}
"""


def _farm_rows(raw_rows) -> list[FarmSubgraphRow]:
    rows: list[FarmSubgraphRow] = []
    for row in raw_rows or []:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        rows.append(
            FarmSubgraphRow(
                id=str(row["id"]).lower(),
                volume_usd=row.get("volumeUSD"),
                reserve_usd=row.get("reserveUSD"),
            )
        )
    return rows


class SubgraphFarmRepository(FarmDataPort, StableSwapPort):
    def __init__(self, registry: IndexerClientRegistry):
        self._registry = registry

    def get_farms_bulk(
        self,
        *,
        chain_id: int,
        addresses: list[str],
        block_week_ago: int,
    ) -> FarmsBulkRows:
        if not addresses:
            return FarmsBulkRows()

        client = self._registry.exchange_client(chain_id=chain_id)
        try:
            data = client.request(
                QUERY_FARMS_BULK,
                {
                    "addresses": [address.lower() for address in addresses],
                    "blockWeekAgo": block_week_ago,
                    "first": len(addresses),
                },
            )
        except SubgraphRequestError as exc:
            raise IndexerRequestFailedError(f"Failed to fetch farms bulk for chain_id={chain_id}: {exc}") from exc

        result = FarmsBulkRows(
            at_latest_block=_farm_rows(data.get("farmsAtLatestBlock")),
            one_week_ago=_farm_rows(data.get("farmsOneWeekAgo")),
        )
        logger.info(
            "farms_repository: fetched_farms requested=%s latest=%s week_ago=%s chain_id=%s block_week_ago=%s",
            len(addresses),
            len(result.at_latest_block),
            len(result.one_week_ago),
            chain_id,
            block_week_ago,
        )
        return result

    def get_virtual_prices(
        self,
        *,
        stable_swap_address: str,
        block_number: int,
    ) -> VirtualPriceSnapshot:
        client = self._registry.stable_swap_client()
        try:
            data = client.request(
                QUERY_VIRTUAL_PRICE,
                {"stableSwapAddress": stable_swap_address.lower(), "blockDayAgo": block_number},
            )
        except SubgraphRequestError as exc:
            raise IndexerRequestFailedError(
                f"Failed to fetch virtual price for {stable_swap_address}: {exc}"
            ) from exc

        latest = data.get("virtualPriceAtLatestBlock") or {}
        previous = data.get("virtualPriceOneDayAgo") or {}
        return VirtualPriceSnapshot(
            current=latest.get("virtualPrice"),
            previous=previous.get("virtualPrice"),
        )
