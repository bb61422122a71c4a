from __future__ import annotations

from decimal import Decimal

import pytest

from lp_apr.application.dto.subgraph_rows import V2PoolSubgraphRow, V3PoolSubgraphRow
from lp_apr.application.services.pool_meta_deriver import PoolMetaCache, PoolMetaDeriver
from lp_apr.application.use_cases.subgraph_pool_provider import (
    build_v2_pool,
    build_v2_pool_provider,
    build_v3_pool_provider,
)
from lp_apr.domain.entities.pool import PoolMeta, V2Pool, V3Pool
from lp_apr.domain.entities.token import Token
from lp_apr.domain.exceptions import InvalidPairInputError


TOKEN_A = Token(chain_id=56, address="0x" + "a" * 40, decimals=18, symbol="AAA")
TOKEN_B = Token(chain_id=56, address="0x" + "b" * 40, decimals=6, symbol="BBB")
TOKEN_C = Token(chain_id=56, address="0x" + "c" * 40, decimals=18, symbol="CCC")


def _fake_v2_address(token_a: Token, token_b: Token) -> str:
    keys = sorted([token_a.key, token_b.key])
    return f"0xPAIR-{keys[0][-2:]}{keys[1][-2:]}"


def _fake_v3_address(token_a: Token, token_b: Token, fee: int) -> str:
    keys = sorted([token_a.key, token_b.key])
    return f"0xPOOL-{keys[0][-2:]}{keys[1][-2:]}-{fee}"


def _deriver() -> PoolMetaDeriver:
    return PoolMetaDeriver(
        cache=PoolMetaCache(),
        compute_v2_address=_fake_v2_address,
        compute_v3_address=_fake_v3_address,
    )


class FakeSubgraphPoolPort:
    def __init__(self, v2_rows: dict[str, V2PoolSubgraphRow] | None = None, v3_rows: dict[str, V3PoolSubgraphRow] | None = None):
        self.v2_rows = v2_rows or {}
        self.v3_rows = v3_rows or {}
        self.requested: list[list[str]] = []

    def get_v2_pools(self, *, chain_id: int, addresses: list[str]) -> list[V2PoolSubgraphRow]:
        _ = chain_id
        self.requested.append(list(addresses))
        return [self.v2_rows[address] for address in addresses if address in self.v2_rows]

    def get_v3_pools(self, *, chain_id: int, addresses: list[str]) -> list[V3PoolSubgraphRow]:
        _ = chain_id
        self.requested.append(list(addresses))
        return [self.v3_rows[address] for address in addresses if address in self.v3_rows]


def test_v2_provider_deduplicates_overlapping_pairs_and_builds_pools():
    port = FakeSubgraphPoolPort(
        v2_rows={
            "0xpair-aabb": V2PoolSubgraphRow(id="0xpair-aabb", reserve0="1.5", reserve1="2000", reserve_usd="4000.9"),
        }
    )
    provider = build_v2_pool_provider(pool_port=port, deriver=_deriver())

    pools = provider.get_pools([(TOKEN_A, TOKEN_B), (TOKEN_B, TOKEN_A), (TOKEN_A, TOKEN_C)])

    assert port.requested == [["0xpair-aabb", "0xpair-aacc"]]
    assert len(pools) == 1
    pool = pools[0]
    assert isinstance(pool, V2Pool)
    assert pool.token0 == TOKEN_A
    assert pool.token1 == TOKEN_B
    assert pool.reserve0.raw == 1_500_000_000_000_000_000
    assert pool.reserve1.raw == 2_000_000_000
    assert pool.tvl_usd == 4000


def test_v3_provider_queries_every_fee_tier_and_parses_state():
    port = FakeSubgraphPoolPort(
        v3_rows={
            "0xpool-aabb-500": V3PoolSubgraphRow(
                id="0xpool-aabb-500",
                liquidity="123456",
                sqrt_price="79228162514264337593543950336",
                tick="-5",
                fee_tier="500",
                fee_protocol=str(32000 + (32000 << 16)),
                total_value_locked_usd="12.7",
            ),
        }
    )
    provider = build_v3_pool_provider(pool_port=port, deriver=_deriver())

    pools = provider.get_pools([(TOKEN_B, TOKEN_A)])

    assert port.requested == [[f"0xpool-aabb-{fee}" for fee in (100, 500, 2500, 10000)]]
    assert len(pools) == 1
    pool = pools[0]
    assert isinstance(pool, V3Pool)
    assert pool.fee == 500
    assert pool.liquidity == 123456
    assert pool.sqrt_ratio_x96 == 79228162514264337593543950336
    assert pool.tick == -5
    assert pool.tvl_usd == 12
    assert pool.token0_protocol_fee == Decimal("3.2")
    assert (pool.token0, pool.token1) == (TOKEN_A, TOKEN_B)


def test_v3_provider_drops_malformed_rows():
    port = FakeSubgraphPoolPort(
        v3_rows={
            "0xpool-aabb-100": V3PoolSubgraphRow(
                id="0xpool-aabb-100",
                liquidity=None,
                sqrt_price="1",
                tick="0",
                fee_tier="100",
                fee_protocol="0",
                total_value_locked_usd="0",
            ),
        }
    )
    provider = build_v3_pool_provider(pool_port=port, deriver=_deriver())

    assert provider.get_pools([(TOKEN_A, TOKEN_B)]) == []


def test_provider_without_pairs_or_chain_returns_empty():
    port = FakeSubgraphPoolPort()
    provider = build_v2_pool_provider(pool_port=port, deriver=_deriver())
    no_chain = Token(chain_id=0, address=TOKEN_A.address, decimals=18)

    assert provider.get_pools([]) == []
    assert provider.get_pools([(no_chain, TOKEN_B)]) == []
    assert port.requested == []


def test_provider_rejects_identical_tokens():
    provider = build_v2_pool_provider(pool_port=FakeSubgraphPoolPort(), deriver=_deriver())

    with pytest.raises(InvalidPairInputError):
        provider.get_pools([(TOKEN_A, TOKEN_A)])


def test_build_v2_pool_skips_rows_without_meta_or_reserves():
    meta = PoolMeta(address="0xpair", currency_a=TOKEN_A, currency_b=TOKEN_B)
    row = V2PoolSubgraphRow(id="0xpair", reserve0="0", reserve1="10", reserve_usd="1")

    assert build_v2_pool(row, None) is None
    assert build_v2_pool(row, meta) is None
