from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from lp_apr.domain.entities.farm import Farm


@dataclass(frozen=True)
class UpdateLpAprsInput:
    chain_id: int
    farms: list[Farm]


@dataclass(frozen=True)
class UpdateLpAprsOutput:
    aprs: dict[str, Decimal]
    block_week_ago: int | None
    normal_farms: int
    stable_farms: int
