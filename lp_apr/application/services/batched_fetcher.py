from __future__ import annotations

import logging
from functools import partial
from threading import Lock
from typing import Callable, Iterable, Sequence, TypeVar


DEFAULT_BATCH_SIZE = 30
logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    if size <= 0:
        raise ValueError("size must be > 0.")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class SequentialRequestQueue:
    """Runs indexer requests one at a time, in submission order.

    The lock keeps at most one request in flight even when the queue is shared
    between threads. A failing job stops the queue and the error propagates.
    """

    def __init__(self):
        self._lock = Lock()
        self.requests_issued = 0

    def run_all(self, jobs: Iterable[Callable[[], T]]) -> list[T]:
        results: list[T] = []
        for job in jobs:
            with self._lock:
                self.requests_issued += 1
                results.append(job())
        return results


def fetch_in_batches(
    addresses: Iterable[str],
    fetch_batch: Callable[[list[str]], Iterable[R | None]],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    queue: SequentialRequestQueue | None = None,
) -> list[R]:
    unique_addresses = list(dict.fromkeys(addresses))
    if not unique_addresses:
        return []

    groups = chunked(unique_addresses, batch_size)
    active_queue = queue if queue is not None else SequentialRequestQueue()
    logger.info(
        "batched_fetcher: start addresses=%s groups=%s batch_size=%s",
        len(unique_addresses),
        len(groups),
        batch_size,
    )

    per_group = active_queue.run_all(partial(fetch_batch, group) for group in groups)

    result: list[R] = []
    for rows in per_group:
        for row in rows:
            if row is not None:
                result.append(row)

    logger.info(
        "batched_fetcher: done addresses=%s groups=%s rows=%s",
        len(unique_addresses),
        len(groups),
        len(result),
    )
    return result
