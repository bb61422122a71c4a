from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable

from lp_apr.domain.entities.farm import (
    Farm,
    FarmGroups,
    FarmSnapshot,
    NormalFarm,
    StableFarm,
)
from lp_apr.domain.exceptions import InvalidFarmInputError


LP_HOLDERS_FEE = Decimal("0.0017")
WEEKS_IN_A_YEAR = Decimal("52.1429")
STABLE_COMPOUNDING_PERIODS = 52
APR_QUANTUM = Decimal("0.01")
ZERO_APR = Decimal("0.00")


def quantize_apr(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        # Room for every integer digit plus the two decimal places.
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(APR_QUANTUM, rounding=ROUND_HALF_UP)


def farm_from_record(lp_address: str, stable_swap_address: str | None = None) -> Farm:
    lp_address = (lp_address or "").strip()
    if not lp_address.lower().startswith("0x"):
        raise InvalidFarmInputError("lp_address must start with 0x.")
    stable_swap_address = (stable_swap_address or "").strip()
    if stable_swap_address:
        if not stable_swap_address.lower().startswith("0x"):
            raise InvalidFarmInputError("stable_swap_address must start with 0x.")
        return StableFarm(lp_address=lp_address, stable_swap_address=stable_swap_address)
    return NormalFarm(lp_address=lp_address)


def split_normal_and_stable_farms(farms: Iterable[Farm]) -> FarmGroups:
    normal_farms: list[NormalFarm] = []
    stable_farms: list[StableFarm] = []
    for farm in farms:
        if isinstance(farm, StableFarm):
            stable_farms.append(farm)
        else:
            normal_farms.append(farm)
    return FarmGroups(normal_farms=normal_farms, stable_farms=stable_farms)


def compute_lp_apr(
    current: FarmSnapshot,
    week_ago: FarmSnapshot | None,
    *,
    lp_holders_fee: Decimal = LP_HOLDERS_FEE,
) -> Decimal:
    """LP fee APR (%) from the cumulative volume growth over one week.

    Farms too new to appear in the week-ago snapshot return 0. Untracked pairs
    report zero or negative volume deltas and also return 0.
    """
    if week_ago is None:
        return ZERO_APR
    if not all(
        value.is_finite()
        for value in (current.volume_usd, current.reserve_usd, week_ago.volume_usd, lp_holders_fee)
    ):
        return ZERO_APR

    volume_7d = current.volume_usd - week_ago.volume_usd
    lp_fees_7d = volume_7d * lp_holders_fee
    lp_fees_in_a_year = lp_fees_7d * WEEKS_IN_A_YEAR
    if lp_fees_in_a_year <= 0 or current.reserve_usd <= 0:
        return ZERO_APR
    return quantize_apr(lp_fees_in_a_year * Decimal("100") / current.reserve_usd)


def compute_stable_lp_apr(current_virtual_price: Decimal, previous_virtual_price: Decimal) -> Decimal:
    """Compounded APR (%) from the virtual price growth over one week."""
    try:
        if current_virtual_price == 0:
            return ZERO_APR
        growth = (current_virtual_price - previous_virtual_price) / current_virtual_price
        result = ((Decimal("1") + growth) ** STABLE_COMPOUNDING_PERIODS - Decimal("1")) * Decimal("100")
    except ArithmeticError:
        return ZERO_APR
    if not result.is_finite() or result <= 0:
        return ZERO_APR
    return quantize_apr(result)
