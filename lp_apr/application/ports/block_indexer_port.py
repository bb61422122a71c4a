from __future__ import annotations

from typing import Protocol


class BlockIndexerPort(Protocol):
    def get_first_block_number(
        self,
        *,
        chain_id: int,
        timestamp_gt: int,
        timestamp_lte: int,
    ) -> str | None:
        ...
