from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class FarmRequest(BaseModel):
    lp_address: str = Field(..., description="Endereco do LP token / par (0x...).")
    stable_swap_address: str | None = Field(
        None,
        description="Endereco do pool stable swap; quando presente a farm usa o APR por virtual price.",
    )


class LpAprRequest(BaseModel):
    chain_id: int = Field(..., description="Identificador numerico da chain.")
    farms: list[FarmRequest] = Field(default_factory=list)


class LpAprResponse(BaseModel):
    aprs: dict[str, Decimal]
    block_week_ago: int | None
    normal_farms: int
    stable_farms: int
