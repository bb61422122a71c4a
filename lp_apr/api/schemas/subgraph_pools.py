from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    address: str = Field(..., description="Endereco do token (0x...).")
    decimals: int = Field(..., ge=0, le=255)
    symbol: str | None = None


class SubgraphPoolsRequest(BaseModel):
    protocol: str = Field("v3", description="v2 (constant product) ou v3 (concentrated liquidity).")
    chain_id: int = Field(..., description="Identificador numerico da chain.")
    pairs: list[tuple[TokenRequest, TokenRequest]] = Field(default_factory=list)


class TokenResponse(BaseModel):
    address: str
    decimals: int
    symbol: str | None


class SubgraphPoolResponse(BaseModel):
    type: str
    address: str
    token0: TokenResponse
    token1: TokenResponse
    tvl_usd: str
    reserve0: str | None = None
    reserve1: str | None = None
    fee: int | None = None
    liquidity: str | None = None
    sqrt_ratio_x96: str | None = None
    tick: int | None = None
    token0_protocol_fee: Decimal | None = None
    token1_protocol_fee: Decimal | None = None
