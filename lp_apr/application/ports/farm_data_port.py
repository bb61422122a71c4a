from __future__ import annotations

from typing import Protocol

from lp_apr.application.dto.subgraph_rows import FarmsBulkRows
from lp_apr.domain.entities.farm import VirtualPriceSnapshot


class FarmDataPort(Protocol):
    def get_farms_bulk(
        self,
        *,
        chain_id: int,
        addresses: list[str],
        block_week_ago: int,
    ) -> FarmsBulkRows:
        ...


class StableSwapPort(Protocol):
    def get_virtual_prices(
        self,
        *,
        stable_swap_address: str,
        block_number: int,
    ) -> VirtualPriceSnapshot:
        ...
