from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv


load_dotenv()

CHAIN_KEYS = ("bsc", "ethereum", "bsc_testnet", "goerli")

DEFAULT_BLOCKS_SUBGRAPHS = {
    "bsc": "https://api.thegraph.com/subgraphs/name/pancakeswap/blocks",
    "ethereum": "https://api.thegraph.com/subgraphs/name/blocklytics/ethereum-blocks",
}
DEFAULT_EXCHANGE_SUBGRAPHS = {
    "bsc": "https://proxy-worker.xoxo-swap.workers.dev/bsc-exchange",
    "ethereum": "https://api.thegraph.com/subgraphs/name/xoxoswap/exhange-eth",
}
DEFAULT_STABLESWAP_SUBGRAPH = "https://api.thegraph.com/subgraphs/name/xoxoswap/exchange-stableswap"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _per_chain(prefix: str, defaults: dict | None = None) -> dict:
    defaults = defaults or {}
    return {key: _env(f"{prefix}_{key.upper()}", defaults.get(key, "")) for key in CHAIN_KEYS}


@dataclass(frozen=True)
class Settings:
    graph_api_key: str
    graph_gateway_base: str
    graph_blocks_subgraphs: dict
    graph_exchange_subgraphs: dict
    graph_v3_subgraphs: dict
    stableswap_subgraph: str
    graph_request_timeout_seconds: float
    graph_min_interval_ms: int
    lp_holders_fee: Decimal
    farm_batch_size: int
    stable_swap_chain_id: int
    stable_apr_max_workers: int
    pool_meta_cache_size: int
    log_level: str


def get_settings() -> Settings:
    return Settings(
        graph_api_key=_env("GRAPH_API_KEY", ""),
        graph_gateway_base=_env("GRAPH_GATEWAY_BASE", "https://gateway.thegraph.com/api"),
        graph_blocks_subgraphs=_per_chain("GRAPH_BLOCKS_SUBGRAPH", DEFAULT_BLOCKS_SUBGRAPHS),
        graph_exchange_subgraphs=_per_chain("GRAPH_EXCHANGE_SUBGRAPH", DEFAULT_EXCHANGE_SUBGRAPHS),
        graph_v3_subgraphs=_per_chain("GRAPH_V3_SUBGRAPH"),
        stableswap_subgraph=_env("STABLESWAP_SUBGRAPH", DEFAULT_STABLESWAP_SUBGRAPH),
        graph_request_timeout_seconds=float(_env("GRAPH_REQUEST_TIMEOUT_SECONDS", "10")),
        graph_min_interval_ms=int(_env("GRAPH_MIN_INTERVAL_MS", "0")),
        lp_holders_fee=Decimal(_env("LP_HOLDERS_FEE", "0.0017")),
        farm_batch_size=int(_env("FARM_BATCH_SIZE", "30")),
        stable_swap_chain_id=int(_env("STABLE_SWAP_CHAIN_ID", "56")),
        stable_apr_max_workers=int(_env("STABLE_APR_MAX_WORKERS", "8")),
        pool_meta_cache_size=int(_env("POOL_META_CACHE_SIZE", "0")),
        log_level=_env("LOG_LEVEL", "INFO"),
    )
