from __future__ import annotations

from typing import Protocol

from lp_apr.application.dto.subgraph_rows import V2PoolSubgraphRow, V3PoolSubgraphRow


class SubgraphPoolPort(Protocol):
    def get_v2_pools(self, *, chain_id: int, addresses: list[str]) -> list[V2PoolSubgraphRow]:
        ...

    def get_v3_pools(self, *, chain_id: int, addresses: list[str]) -> list[V3PoolSubgraphRow]:
        ...
