from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from lp_apr.application.ports.block_indexer_port import BlockIndexerPort
from lp_apr.domain.entities.farm import HistoricalBlockReference
from lp_apr.domain.exceptions import HistoricalDataUnavailableError, IndexerRequestFailedError


HISTORICAL_BLOCK_WINDOW_SECONDS = 600
logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_ago(now: datetime, *, weeks: int = 0, days: int = 0) -> int:
    return int((now - timedelta(weeks=weeks, days=days)).timestamp())


class HistoricalBlockResolver:
    """Finds the first block mined in ``(timestamp, timestamp + window]``.

    Single attempt: indexer failures propagate and an empty window raises
    ``HistoricalDataUnavailableError`` instead of falling back to block 0.
    """

    def __init__(
        self,
        *,
        block_indexer_port: BlockIndexerPort,
        window_seconds: int = HISTORICAL_BLOCK_WINDOW_SECONDS,
    ):
        self._block_indexer_port = block_indexer_port
        self._window_seconds = window_seconds

    def resolve(self, *, timestamp: int, chain_id: int) -> HistoricalBlockReference:
        raw_number = self._block_indexer_port.get_first_block_number(
            chain_id=chain_id,
            timestamp_gt=timestamp,
            timestamp_lte=timestamp + self._window_seconds,
        )
        if raw_number is None:
            logger.warning(
                "historical_block_resolver: block_not_found timestamp=%s window_seconds=%s chain_id=%s",
                timestamp,
                self._window_seconds,
                chain_id,
            )
            raise HistoricalDataUnavailableError(
                f"Failed to fetch block number for {timestamp} on chain_id={chain_id}."
            )
        try:
            block_number = int(raw_number)
        except (TypeError, ValueError) as exc:
            raise IndexerRequestFailedError(
                f"Invalid block number {raw_number!r} for {timestamp} on chain_id={chain_id}."
            ) from exc

        logger.info(
            "historical_block_resolver: resolved timestamp=%s block=%s chain_id=%s",
            timestamp,
            block_number,
            chain_id,
        )
        return HistoricalBlockReference(
            chain_id=chain_id,
            timestamp=timestamp,
            block_number=block_number,
        )
