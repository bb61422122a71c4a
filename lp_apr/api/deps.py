from __future__ import annotations

from functools import lru_cache

from lp_apr.application.services.pool_meta_deriver import PoolMetaCache, PoolMetaDeriver
from lp_apr.application.use_cases.resolve_historical_block import HistoricalBlockResolver
from lp_apr.application.use_cases.stable_farm_apr import StableFarmAprCalculator
from lp_apr.application.use_cases.subgraph_pool_provider import (
    SubgraphPoolProvider,
    build_v2_pool_provider,
    build_v3_pool_provider,
)
from lp_apr.application.use_cases.update_lp_aprs import UpdateLpAprsUseCase
from lp_apr.infrastructure.clients.indexer_registry import (
    IndexerClientRegistry,
    IndexerRegistrySettings,
)
from lp_apr.infrastructure.subgraph.blocks_repository import SubgraphBlockRepository
from lp_apr.infrastructure.subgraph.farms_repository import SubgraphFarmRepository
from lp_apr.infrastructure.subgraph.pools_repository import SubgraphPoolRepository
from lp_apr.shared.config import get_settings


@lru_cache(maxsize=1)
def _get_indexer_registry() -> IndexerClientRegistry:
    settings = get_settings()
    return IndexerClientRegistry(
        IndexerRegistrySettings(
            graph_gateway_base=settings.graph_gateway_base,
            graph_api_key=settings.graph_api_key,
            blocks_subgraphs=settings.graph_blocks_subgraphs,
            exchange_subgraphs=settings.graph_exchange_subgraphs,
            v3_subgraphs=settings.graph_v3_subgraphs,
            stable_swap_subgraph=settings.stableswap_subgraph,
            timeout_seconds=settings.graph_request_timeout_seconds,
            min_interval_ms=settings.graph_min_interval_ms,
        )
    )


@lru_cache(maxsize=1)
def _get_pool_meta_deriver() -> PoolMetaDeriver:
    settings = get_settings()
    return PoolMetaDeriver(cache=PoolMetaCache.with_max_size(settings.pool_meta_cache_size))


def get_update_lp_aprs_use_case() -> UpdateLpAprsUseCase:
    settings = get_settings()
    registry = _get_indexer_registry()
    block_resolver = HistoricalBlockResolver(block_indexer_port=SubgraphBlockRepository(registry))
    farm_repository = SubgraphFarmRepository(registry)
    return UpdateLpAprsUseCase(
        block_resolver=block_resolver,
        farm_data_port=farm_repository,
        stable_calculator=StableFarmAprCalculator(
            block_resolver=block_resolver,
            stable_swap_port=farm_repository,
            stable_swap_chain_id=settings.stable_swap_chain_id,
        ),
        lp_holders_fee=settings.lp_holders_fee,
        batch_size=settings.farm_batch_size,
        stable_max_workers=settings.stable_apr_max_workers,
    )


def get_subgraph_pool_providers() -> dict[str, SubgraphPoolProvider]:
    settings = get_settings()
    pool_port = SubgraphPoolRepository(_get_indexer_registry())
    deriver = _get_pool_meta_deriver()
    return {
        "v2": build_v2_pool_provider(
            pool_port=pool_port,
            deriver=deriver,
            batch_size=settings.farm_batch_size,
        ),
        "v3": build_v3_pool_provider(
            pool_port=pool_port,
            deriver=deriver,
            batch_size=settings.farm_batch_size,
        ),
    }
