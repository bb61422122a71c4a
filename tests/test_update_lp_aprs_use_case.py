from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
import unittest

from lp_apr.application.dto.lp_apr import UpdateLpAprsInput
from lp_apr.application.dto.subgraph_rows import FarmSubgraphRow, FarmsBulkRows
from lp_apr.application.use_cases.resolve_historical_block import HistoricalBlockResolver
from lp_apr.application.use_cases.update_lp_aprs import (
    STAGE_FETCH_NORMAL_FARMS,
    STAGE_RESOLVE_BLOCK,
    UpdateLpAprsUseCase,
    pair_farm_snapshots,
)
from lp_apr.domain.entities.farm import NormalFarm, StableFarm
from lp_apr.domain.exceptions import IndexerRequestFailedError, LpAprUpdateError


FIXED_NOW = datetime(2024, 1, 15, tzinfo=timezone.utc)


class FakeBlockIndexerPort:
    def __init__(self, number: str | None = "1000", error: Exception | None = None):
        self.number = number
        self.error = error
        self.calls = 0

    def get_first_block_number(self, *, chain_id: int, timestamp_gt: int, timestamp_lte: int) -> str | None:
        _ = (chain_id, timestamp_gt, timestamp_lte)
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.number


class FakeFarmDataPort:
    def __init__(self, latest: dict[str, tuple[str, str]], week_ago: dict[str, tuple[str, str]], *, fail: bool = False):
        self.latest = latest
        self.week_ago = week_ago
        self.fail = fail
        self.calls: list[dict] = []

    def get_farms_bulk(self, *, chain_id: int, addresses: list[str], block_week_ago: int) -> FarmsBulkRows:
        self.calls.append({"chain_id": chain_id, "addresses": list(addresses), "block_week_ago": block_week_ago})
        if self.fail:
            raise IndexerRequestFailedError("exchange subgraph down")

        def rows(source: dict[str, tuple[str, str]]) -> list[FarmSubgraphRow]:
            return [
                FarmSubgraphRow(id=address, volume_usd=volume, reserve_usd=reserve)
                for address, (volume, reserve) in source.items()
                if address in addresses
            ]

        return FarmsBulkRows(at_latest_block=rows(self.latest), one_week_ago=rows(self.week_ago))


class FakeStableCalculator:
    def __init__(self, aprs: dict[str, Decimal]):
        self.aprs = aprs
        self.calls: list[str] = []

    def calculate(self, farm: StableFarm) -> Decimal:
        self.calls.append(farm.key)
        return self.aprs.get(farm.key, Decimal("0.00"))


def _use_case(
    *,
    block_port: FakeBlockIndexerPort | None = None,
    farm_port: FakeFarmDataPort | None = None,
    stable: FakeStableCalculator | None = None,
    batch_size: int = 30,
) -> UpdateLpAprsUseCase:
    return UpdateLpAprsUseCase(
        block_resolver=HistoricalBlockResolver(block_indexer_port=block_port or FakeBlockIndexerPort()),
        farm_data_port=farm_port or FakeFarmDataPort({}, {}),
        stable_calculator=stable or FakeStableCalculator({}),  # type: ignore[arg-type]
        batch_size=batch_size,
        clock=lambda: FIXED_NOW,
    )


class UpdateLpAprsUseCaseTests(unittest.TestCase):
    def test_computes_normal_and_stable_aprs_into_one_map(self):
        farm_port = FakeFarmDataPort(
            latest={"0xaaa": ("1000", "50000")},
            week_ago={"0xaaa": ("400", "48000")},
        )
        stable = FakeStableCalculator({"0xsss": Decimal("12.34")})
        use_case = _use_case(farm_port=farm_port, stable=stable)

        result = use_case.execute(
            UpdateLpAprsInput(
                chain_id=56,
                farms=[
                    NormalFarm(lp_address="0xAAA"),
                    StableFarm(lp_address="0xSSS", stable_swap_address="0xPOOL"),
                ],
            )
        )

        self.assertEqual(result.aprs, {"0xaaa": Decimal("0.11"), "0xsss": Decimal("12.34")})
        self.assertEqual(result.block_week_ago, 1000)
        self.assertEqual(result.normal_farms, 1)
        self.assertEqual(result.stable_farms, 1)
        self.assertEqual(farm_port.calls[0]["block_week_ago"], 1000)

    def test_farms_missing_from_latest_snapshot_map_to_zero(self):
        farm_port = FakeFarmDataPort(latest={"0xaaa": ("1000", "50000")}, week_ago={})
        use_case = _use_case(farm_port=farm_port)

        result = use_case.execute(
            UpdateLpAprsInput(chain_id=56, farms=[NormalFarm(lp_address="0xaaa"), NormalFarm(lp_address="0xbbb")])
        )

        self.assertEqual(result.aprs, {"0xaaa": Decimal("0.00"), "0xbbb": Decimal("0.00")})

    def test_extreme_or_non_finite_rows_do_not_abort_update(self):
        farm_port = FakeFarmDataPort(
            latest={"0xaaa": ("NaN", "50000"), "0xbbb": ("1000000000", "1E-18")},
            week_ago={"0xaaa": ("0", "48000"), "0xbbb": ("0", "1")},
        )
        use_case = _use_case(farm_port=farm_port)

        result = use_case.execute(
            UpdateLpAprsInput(chain_id=56, farms=[NormalFarm(lp_address="0xaaa"), NormalFarm(lp_address="0xbbb")])
        )

        self.assertEqual(result.aprs["0xaaa"], Decimal("0.00"))
        self.assertEqual(result.aprs["0xbbb"], Decimal("8864293000000000000000000000.00"))

    def test_block_is_resolved_once_for_all_batches(self):
        addresses = [f"0x{i:040x}" for i in range(65)]
        block_port = FakeBlockIndexerPort()
        farm_port = FakeFarmDataPort({}, {})
        use_case = _use_case(block_port=block_port, farm_port=farm_port)

        result = use_case.execute(
            UpdateLpAprsInput(chain_id=56, farms=[NormalFarm(lp_address=address) for address in addresses])
        )

        self.assertEqual(block_port.calls, 1)
        self.assertEqual([len(call["addresses"]) for call in farm_port.calls], [30, 30, 5])
        self.assertEqual(len(result.aprs), 65)

    def test_block_resolution_failure_aborts_update(self):
        block_port = FakeBlockIndexerPort(number=None)
        farm_port = FakeFarmDataPort({}, {})
        use_case = _use_case(block_port=block_port, farm_port=farm_port)

        with self.assertRaises(LpAprUpdateError) as ctx:
            use_case.execute(UpdateLpAprsInput(chain_id=56, farms=[NormalFarm(lp_address="0xaaa")]))

        self.assertEqual(ctx.exception.stage, STAGE_RESOLVE_BLOCK)
        self.assertEqual(ctx.exception.chain_id, 56)
        self.assertEqual(farm_port.calls, [])

    def test_farm_fetch_failure_aborts_update(self):
        use_case = _use_case(farm_port=FakeFarmDataPort({}, {}, fail=True))

        with self.assertRaises(LpAprUpdateError) as ctx:
            use_case.execute(UpdateLpAprsInput(chain_id=56, farms=[NormalFarm(lp_address="0xaaa")]))

        self.assertEqual(ctx.exception.stage, STAGE_FETCH_NORMAL_FARMS)

    def test_only_stable_farms_skip_block_resolution(self):
        block_port = FakeBlockIndexerPort(error=IndexerRequestFailedError("should not be called"))
        stable = FakeStableCalculator({"0xs1": Decimal("1.00")})
        use_case = _use_case(block_port=block_port, stable=stable)

        result = use_case.execute(
            UpdateLpAprsInput(
                chain_id=56,
                farms=[
                    StableFarm(lp_address="0xS1", stable_swap_address="0xp1"),
                    StableFarm(lp_address="0xS2", stable_swap_address="0xp2"),
                ],
            )
        )

        self.assertEqual(block_port.calls, 0)
        self.assertIsNone(result.block_week_ago)
        self.assertEqual(result.aprs, {"0xs1": Decimal("1.00"), "0xs2": Decimal("0.00")})
        self.assertEqual(sorted(stable.calls), ["0xs1", "0xs2"])

    def test_empty_farm_list_returns_empty_map(self):
        block_port = FakeBlockIndexerPort()

        result = _use_case(block_port=block_port).execute(UpdateLpAprsInput(chain_id=56, farms=[]))

        self.assertEqual(result.aprs, {})
        self.assertEqual(block_port.calls, 0)


class PairFarmSnapshotsTests(unittest.TestCase):
    def test_pairs_rows_by_lowercased_address_and_drops_malformed(self):
        rows = FarmsBulkRows(
            at_latest_block=[
                FarmSubgraphRow(id="0xAAA", volume_usd="10", reserve_usd="100"),
                FarmSubgraphRow(id="0xbbb", volume_usd="oops", reserve_usd="100"),
                FarmSubgraphRow(id="0xccc", volume_usd="5", reserve_usd="50"),
            ],
            one_week_ago=[FarmSubgraphRow(id="0xaaa", volume_usd="4", reserve_usd="90")],
        )

        paired = pair_farm_snapshots(rows)

        self.assertEqual([item.address for item in paired], ["0xaaa", "0xccc"])
        self.assertEqual(paired[0].week_ago.volume_usd, Decimal("4"))
        self.assertIsNone(paired[1].week_ago)


if __name__ == "__main__":
    unittest.main()
