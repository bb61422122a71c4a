from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FarmSubgraphRow:
    id: str
    volume_usd: str | None
    reserve_usd: str | None


@dataclass(frozen=True)
class FarmsBulkRows:
    at_latest_block: list[FarmSubgraphRow] = field(default_factory=list)
    one_week_ago: list[FarmSubgraphRow] = field(default_factory=list)


@dataclass(frozen=True)
class V2PoolSubgraphRow:
    id: str
    reserve0: str | None
    reserve1: str | None
    reserve_usd: str | None


@dataclass(frozen=True)
class V3PoolSubgraphRow:
    id: str
    liquidity: str | None
    sqrt_price: str | None
    tick: str | None
    fee_tier: str | None
    fee_protocol: str | None
    total_value_locked_usd: str | None
