from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from lp_apr.application.ports.farm_data_port import StableSwapPort
from lp_apr.application.use_cases.resolve_historical_block import (
    HistoricalBlockResolver,
    timestamp_ago,
    utc_now,
)
from lp_apr.domain.entities.chain import ChainId
from lp_apr.domain.entities.farm import StableFarm
from lp_apr.domain.exceptions import DomainError
from lp_apr.domain.services.lp_apr import ZERO_APR, compute_stable_lp_apr


logger = logging.getLogger(__name__)


class StableFarmAprCalculator:
    def __init__(
        self,
        *,
        block_resolver: HistoricalBlockResolver,
        stable_swap_port: StableSwapPort,
        stable_swap_chain_id: int = ChainId.BSC,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._block_resolver = block_resolver
        self._stable_swap_port = stable_swap_port
        self._stable_swap_chain_id = stable_swap_chain_id
        self._clock = clock

    def calculate(self, farm: StableFarm) -> Decimal:
        stable_swap_address = farm.stable_swap_address.lower()
        try:
            day_7_ago = timestamp_ago(self._clock(), days=7)
            block = self._block_resolver.resolve(
                timestamp=day_7_ago,
                chain_id=self._stable_swap_chain_id,
            )
            snapshot = self._stable_swap_port.get_virtual_prices(
                stable_swap_address=stable_swap_address,
                block_number=block.block_number,
            )
            apr = compute_stable_lp_apr(
                Decimal(str(snapshot.current)),
                Decimal(str(snapshot.previous)),
            )
        except (DomainError, ArithmeticError, TypeError, ValueError) as exc:
            logger.error(
                "stable_farm_apr: failed lp=%s stable_swap=%s error=%s",
                farm.key,
                stable_swap_address,
                exc,
            )
            return ZERO_APR

        logger.debug(
            "stable_farm_apr: computed lp=%s stable_swap=%s block=%s apr=%s",
            farm.key,
            stable_swap_address,
            block.block_number,
            apr,
        )
        return apr
