from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from lp_apr.domain.entities.token import Token, TokenAmount


class PoolType(str, Enum):
    V2 = "V2"
    V3 = "V3"


class FeeAmount:
    LOWEST = 100
    LOW = 500
    MEDIUM = 2500
    HIGH = 10000


V3_FEE_TIERS = (FeeAmount.LOWEST, FeeAmount.LOW, FeeAmount.MEDIUM, FeeAmount.HIGH)


@dataclass(frozen=True)
class PoolMeta:
    address: str
    currency_a: Token
    currency_b: Token

    def sorted_tokens(self) -> tuple[Token, Token]:
        if self.currency_a.sorts_before(self.currency_b):
            return self.currency_a, self.currency_b
        return self.currency_b, self.currency_a


@dataclass(frozen=True)
class V3PoolMeta(PoolMeta):
    fee: int


@dataclass(frozen=True)
class V2Pool:
    address: str
    token0: Token
    token1: Token
    reserve0: TokenAmount
    reserve1: TokenAmount
    tvl_usd: int
    type: PoolType = PoolType.V2


@dataclass(frozen=True)
class V3Pool:
    address: str
    token0: Token
    token1: Token
    fee: int
    liquidity: int
    sqrt_ratio_x96: int
    tick: int
    tvl_usd: int
    token0_protocol_fee: Decimal
    token1_protocol_fee: Decimal
    type: PoolType = PoolType.V3
