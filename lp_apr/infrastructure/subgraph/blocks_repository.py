from __future__ import annotations

import logging

from lp_apr.application.ports.block_indexer_port import BlockIndexerPort
from lp_apr.domain.exceptions import IndexerRequestFailedError
from lp_apr.infrastructure.clients.indexer_registry import IndexerClientRegistry
from lp_apr.infrastructure.clients.subgraph_client import SubgraphRequestError


logger = logging.getLogger(__name__)

QUERY_FIRST_BLOCK_IN_WINDOW = """
query getBlock($timestampGreater: Int!, $timestampLessOrEqual: Int!) {
  blocks(
    first: 1,
    orderBy: timestamp,
    orderDirection: asc,
    where: { timestamp_gt: $timestampGreater, timestamp_lte: $timestampLessOrEqual }
  ) {
    number
  }
}
"""


class SubgraphBlockRepository(BlockIndexerPort):
    def __init__(self, registry: IndexerClientRegistry):
        self._registry = registry

    def get_first_block_number(
        self,
        *,
        chain_id: int,
        timestamp_gt: int,
        timestamp_lte: int,
    ) -> str | None:
        client = self._registry.blocks_client(chain_id=chain_id)
        try:
            data = client.request(
                QUERY_FIRST_BLOCK_IN_WINDOW,
                {"timestampGreater": timestamp_gt, "timestampLessOrEqual": timestamp_lte},
            )
        except SubgraphRequestError as exc:
            raise IndexerRequestFailedError(
                f"Failed to fetch block number for {timestamp_gt} on chain_id={chain_id}: {exc}"
            ) from exc

        blocks = data.get("blocks") or []
        if not blocks:
            return None
        number = blocks[0].get("number") if isinstance(blocks[0], dict) else None
        if number is None:
            return None
        return str(number)
