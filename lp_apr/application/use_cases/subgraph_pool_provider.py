from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Generic, Iterable, Optional, TypeVar

from lp_apr.application.dto.subgraph_rows import V2PoolSubgraphRow, V3PoolSubgraphRow
from lp_apr.application.ports.subgraph_pool_port import SubgraphPoolPort
from lp_apr.application.services.batched_fetcher import DEFAULT_BATCH_SIZE, fetch_in_batches
from lp_apr.application.services.pool_meta_deriver import Pair, PoolMetaDeriver
from lp_apr.domain.entities.pool import PoolMeta, V2Pool, V3Pool, V3PoolMeta
from lp_apr.domain.entities.token import try_parse_amount
from lp_apr.domain.exceptions import InvalidPairInputError
from lp_apr.domain.services.pool_address import parse_protocol_fees


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=PoolMeta)
P = TypeVar("P")

MetaLookup = Callable[[str], Optional[M]]
FetchPools = Callable[[int, list[str], MetaLookup], list[P]]


def _usd_to_int(value: str | None) -> int:
    return int(Decimal(str(value)))


def build_v2_pool(row: V2PoolSubgraphRow, meta: PoolMeta | None) -> V2Pool | None:
    if meta is None:
        return None
    token0, token1 = meta.sorted_tokens()
    reserve0 = try_parse_amount(row.reserve0, token0)
    reserve1 = try_parse_amount(row.reserve1, token1)
    if reserve0 is None or reserve1 is None:
        return None
    try:
        tvl_usd = _usd_to_int(row.reserve_usd)
    except (InvalidOperation, ValueError):
        return None
    return V2Pool(
        address=meta.address,
        token0=token0,
        token1=token1,
        reserve0=reserve0,
        reserve1=reserve1,
        tvl_usd=tvl_usd,
    )


def build_v3_pool(row: V3PoolSubgraphRow, meta: V3PoolMeta | None) -> V3Pool | None:
    if meta is None:
        return None
    token0, token1 = meta.sorted_tokens()
    try:
        token0_protocol_fee, token1_protocol_fee = parse_protocol_fees(row.fee_protocol or 0)
        return V3Pool(
            address=meta.address,
            token0=token0,
            token1=token1,
            fee=meta.fee,
            liquidity=int(row.liquidity),
            sqrt_ratio_x96=int(row.sqrt_price),
            tick=int(row.tick),
            tvl_usd=_usd_to_int(row.total_value_locked_usd),
            token0_protocol_fee=token0_protocol_fee,
            token1_protocol_fee=token1_protocol_fee,
        )
    except (InvalidOperation, TypeError, ValueError):
        logger.debug("subgraph_pool_provider: malformed_v3_row id=%s", row.id)
        return None


class SubgraphPoolProvider(Generic[M, P]):
    """Resolves the current subgraph state of every candidate pool of a set of pairs.

    Candidates from overlapping pairs are deduplicated by address before the
    batched fetch. Rows that do not map back to a candidate are dropped.
    """

    def __init__(
        self,
        *,
        id: str,
        get_pool_metas: Callable[[Pair], list[M]],
        get_pools_from_subgraph: FetchPools,
    ):
        self.id = id
        self._get_pool_metas = get_pool_metas
        self._get_pools_from_subgraph = get_pools_from_subgraph

    def get_pools(self, pairs: Iterable[Pair]) -> list[P]:
        pairs = list(pairs)
        if not pairs:
            return []
        chain_id = pairs[0][0].chain_id
        if not chain_id:
            return []

        logger.debug("subgraph_pool_provider: subgraph_pools_start id=%s pairs=%s", self.id, len(pairs))

        meta_map: dict[str, M] = {}
        for pair in pairs:
            try:
                metas = self._get_pool_metas(pair)
            except ValueError as exc:
                raise InvalidPairInputError(str(exc)) from exc
            for meta in metas:
                meta_map[meta.address.lower()] = meta

        pools = self._get_pools_from_subgraph(chain_id, list(meta_map.keys()), meta_map.get)
        result = [pool for pool in pools if pool is not None]

        logger.info(
            "subgraph_pool_provider: subgraph_pools_end id=%s chain_id=%s pairs=%s candidates=%s pools=%s",
            self.id,
            chain_id,
            len(pairs),
            len(meta_map),
            len(result),
        )
        return result


def build_v2_pool_provider(
    *,
    pool_port: SubgraphPoolPort,
    deriver: PoolMetaDeriver,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> SubgraphPoolProvider[PoolMeta, V2Pool]:
    def get_pools_from_subgraph(
        chain_id: int,
        addresses: list[str],
        get_pool_meta_by_address: MetaLookup,
    ) -> list[V2Pool]:
        def fetch_group(group: list[str]) -> list[V2Pool | None]:
            rows = pool_port.get_v2_pools(chain_id=chain_id, addresses=group)
            return [build_v2_pool(row, get_pool_meta_by_address(row.id.lower())) for row in rows]

        return fetch_in_batches(addresses, fetch_group, batch_size=batch_size)

    return SubgraphPoolProvider(
        id="V2",
        get_pool_metas=deriver.get_v2_pool_metas,
        get_pools_from_subgraph=get_pools_from_subgraph,
    )


def build_v3_pool_provider(
    *,
    pool_port: SubgraphPoolPort,
    deriver: PoolMetaDeriver,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> SubgraphPoolProvider[V3PoolMeta, V3Pool]:
    def get_pools_from_subgraph(
        chain_id: int,
        addresses: list[str],
        get_pool_meta_by_address: MetaLookup,
    ) -> list[V3Pool]:
        def fetch_group(group: list[str]) -> list[V3Pool | None]:
            rows = pool_port.get_v3_pools(chain_id=chain_id, addresses=group)
            return [build_v3_pool(row, get_pool_meta_by_address(row.id.lower())) for row in rows]

        return fetch_in_batches(addresses, fetch_group, batch_size=batch_size)

    return SubgraphPoolProvider(
        id="V3",
        get_pool_metas=deriver.get_v3_pool_metas,
        get_pools_from_subgraph=get_pools_from_subgraph,
    )
