from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable

from lp_apr.application.dto.lp_apr import UpdateLpAprsInput, UpdateLpAprsOutput
from lp_apr.application.dto.subgraph_rows import FarmSubgraphRow, FarmsBulkRows
from lp_apr.application.ports.farm_data_port import FarmDataPort
from lp_apr.application.services.batched_fetcher import (
    DEFAULT_BATCH_SIZE,
    SequentialRequestQueue,
    fetch_in_batches,
)
from lp_apr.application.use_cases.resolve_historical_block import (
    HistoricalBlockResolver,
    timestamp_ago,
    utc_now,
)
from lp_apr.application.use_cases.stable_farm_apr import StableFarmAprCalculator
from lp_apr.domain.entities.farm import (
    AprMap,
    FarmSnapshot,
    NormalFarm,
    NormalFarmSnapshots,
    StableFarm,
)
from lp_apr.domain.exceptions import (
    HistoricalDataUnavailableError,
    IndexerRequestFailedError,
    LpAprUpdateError,
)
from lp_apr.domain.services.lp_apr import (
    LP_HOLDERS_FEE,
    ZERO_APR,
    compute_lp_apr,
    split_normal_and_stable_farms,
)


STAGE_RESOLVE_BLOCK = "resolve_historical_block"
STAGE_FETCH_NORMAL_FARMS = "fetch_normal_farms"
logger = logging.getLogger(__name__)


def _parse_farm_row(row: FarmSubgraphRow) -> FarmSnapshot | None:
    try:
        volume_usd = Decimal(str(row.volume_usd))
        reserve_usd = Decimal(str(row.reserve_usd))
        address = row.id.lower()
    except (InvalidOperation, AttributeError):
        logger.debug("update_lp_aprs: malformed_farm_row id=%s", row.id)
        return None
    if not volume_usd.is_finite() or not reserve_usd.is_finite():
        logger.debug("update_lp_aprs: non_finite_farm_row id=%s", row.id)
        return None
    return FarmSnapshot(address=address, volume_usd=volume_usd, reserve_usd=reserve_usd)


def pair_farm_snapshots(rows: FarmsBulkRows) -> list[NormalFarmSnapshots]:
    week_ago_by_address: dict[str, FarmSnapshot] = {}
    for row in rows.one_week_ago:
        snapshot = _parse_farm_row(row)
        if snapshot is not None:
            week_ago_by_address[snapshot.address] = snapshot

    paired: list[NormalFarmSnapshots] = []
    for row in rows.at_latest_block:
        current = _parse_farm_row(row)
        if current is None:
            continue
        paired.append(
            NormalFarmSnapshots(
                address=current.address,
                current=current,
                week_ago=week_ago_by_address.get(current.address),
            )
        )
    return paired


class UpdateLpAprsUseCase:
    """Builds the LP APR map for every farm of one chain.

    Normal farms share the week-ago block and fail the whole run when that
    block or their batched fetch fails. Stable farms are isolated: any error
    degrades that farm to 0.
    """

    def __init__(
        self,
        *,
        block_resolver: HistoricalBlockResolver,
        farm_data_port: FarmDataPort,
        stable_calculator: StableFarmAprCalculator,
        lp_holders_fee: Decimal = LP_HOLDERS_FEE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stable_max_workers: int = 8,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._block_resolver = block_resolver
        self._farm_data_port = farm_data_port
        self._stable_calculator = stable_calculator
        self._lp_holders_fee = lp_holders_fee
        self._batch_size = batch_size
        self._stable_max_workers = max(1, stable_max_workers)
        self._clock = clock

    def execute(self, command: UpdateLpAprsInput) -> UpdateLpAprsOutput:
        groups = split_normal_and_stable_farms(command.farms)
        logger.info(
            "update_lp_aprs: start chain_id=%s farms=%s normal=%s stable=%s",
            command.chain_id,
            len(command.farms),
            len(groups.normal_farms),
            len(groups.stable_farms),
        )

        aprs: AprMap = {}
        block_week_ago: int | None = None
        if groups.normal_farms:
            block_week_ago = self._resolve_block_week_ago(command.chain_id)
            snapshots = self._fetch_normal_farms(
                chain_id=command.chain_id,
                farms=groups.normal_farms,
                block_week_ago=block_week_ago,
            )
            aprs.update(self._compute_normal_aprs(groups.normal_farms, snapshots))

        # Normal and stable keys are disjoint after the partition.
        aprs.update(self._compute_stable_aprs(groups.stable_farms))

        logger.info(
            "update_lp_aprs: done chain_id=%s aprs=%s block_week_ago=%s",
            command.chain_id,
            len(aprs),
            block_week_ago,
        )
        return UpdateLpAprsOutput(
            aprs=aprs,
            block_week_ago=block_week_ago,
            normal_farms=len(groups.normal_farms),
            stable_farms=len(groups.stable_farms),
        )

    def _resolve_block_week_ago(self, chain_id: int) -> int:
        week_ago_timestamp = timestamp_ago(self._clock(), weeks=1)
        try:
            block = self._block_resolver.resolve(timestamp=week_ago_timestamp, chain_id=chain_id)
        except (HistoricalDataUnavailableError, IndexerRequestFailedError) as exc:
            logger.error(
                "update_lp_aprs: block_week_ago_failed chain_id=%s timestamp=%s error=%s",
                chain_id,
                week_ago_timestamp,
                exc,
            )
            raise LpAprUpdateError(str(exc), stage=STAGE_RESOLVE_BLOCK, chain_id=chain_id) from exc
        return block.block_number

    def _fetch_normal_farms(
        self,
        *,
        chain_id: int,
        farms: list[NormalFarm],
        block_week_ago: int,
    ) -> list[NormalFarmSnapshots]:
        addresses = [farm.key for farm in farms]
        logger.info(
            "update_lp_aprs: fetching_farm_data addresses=%s chain_id=%s",
            len(addresses),
            chain_id,
        )

        def fetch_group(group: list[str]) -> list[NormalFarmSnapshots]:
            rows = self._farm_data_port.get_farms_bulk(
                chain_id=chain_id,
                addresses=group,
                block_week_ago=block_week_ago,
            )
            return pair_farm_snapshots(rows)

        try:
            return fetch_in_batches(
                addresses,
                fetch_group,
                batch_size=self._batch_size,
                queue=SequentialRequestQueue(),
            )
        except IndexerRequestFailedError as exc:
            logger.error(
                "update_lp_aprs: farm_group_failed chain_id=%s block_week_ago=%s error=%s",
                chain_id,
                block_week_ago,
                exc,
            )
            raise LpAprUpdateError(
                f"Failed to fetch LP APR data: {exc}",
                stage=STAGE_FETCH_NORMAL_FARMS,
                chain_id=chain_id,
            ) from exc

    def _compute_normal_aprs(
        self,
        farms: list[NormalFarm],
        snapshots: list[NormalFarmSnapshots],
    ) -> AprMap:
        # Farms missing from the latest block default to 0 so every input keeps a key.
        aprs: AprMap = {farm.key: ZERO_APR for farm in farms}
        for snapshot in snapshots:
            if snapshot.address not in aprs:
                continue
            aprs[snapshot.address] = compute_lp_apr(
                snapshot.current,
                snapshot.week_ago,
                lp_holders_fee=self._lp_holders_fee,
            )
        return aprs

    def _compute_stable_aprs(self, farms: list[StableFarm]) -> AprMap:
        if not farms:
            return {}
        workers = min(self._stable_max_workers, len(farms))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self._stable_calculator.calculate, farms))
        return {farm.key: apr for farm, apr in zip(farms, results)}
