from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class NormalFarm:
    lp_address: str

    @property
    def key(self) -> str:
        return self.lp_address.lower()


@dataclass(frozen=True)
class StableFarm:
    lp_address: str
    stable_swap_address: str

    @property
    def key(self) -> str:
        return self.lp_address.lower()


Farm = Union[NormalFarm, StableFarm]


@dataclass(frozen=True)
class FarmGroups:
    normal_farms: list[NormalFarm] = field(default_factory=list)
    stable_farms: list[StableFarm] = field(default_factory=list)


@dataclass(frozen=True)
class FarmSnapshot:
    address: str
    volume_usd: Decimal
    reserve_usd: Decimal


@dataclass(frozen=True)
class NormalFarmSnapshots:
    address: str
    current: FarmSnapshot
    week_ago: FarmSnapshot | None


@dataclass(frozen=True)
class VirtualPriceSnapshot:
    current: str | None
    previous: str | None


@dataclass(frozen=True)
class HistoricalBlockReference:
    chain_id: int
    timestamp: int
    block_number: int


AprMap = dict[str, Decimal]
