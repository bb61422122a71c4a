from __future__ import annotations

from threading import Lock
from typing import Callable, Hashable, MutableMapping, TypeVar

from cachetools import LRUCache

from lp_apr.domain.entities.pool import V3_FEE_TIERS, PoolMeta, V3PoolMeta
from lp_apr.domain.entities.token import Token, sort_tokens
from lp_apr.domain.services.pool_address import compute_v2_pool_address, compute_v3_pool_address


T = TypeVar("T")

Pair = tuple[Token, Token]


class PoolMetaCache:
    """Process-wide memo for pool metadata derivations.

    Entries are pure functions of their key, so a concurrent miss that computes
    the same value twice is harmless. Storage is injectable: a plain dict grows
    without bound, a ``cachetools.LRUCache`` caps it.
    """

    def __init__(self, storage: MutableMapping[Hashable, object] | None = None):
        self._storage = storage if storage is not None else {}
        self._lock = Lock()

    @classmethod
    def with_max_size(cls, max_size: int) -> "PoolMetaCache":
        if max_size <= 0:
            return cls()
        return cls(LRUCache(maxsize=max_size))

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        with self._lock:
            if key in self._storage:
                return self._storage[key]  # type: ignore[return-value]
        value = compute()
        with self._lock:
            self._storage[key] = value
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)


def _pair_key(pair: Pair) -> tuple[int, str, str]:
    token0, token1 = sort_tokens(*pair)
    return token0.chain_id, token0.key, token1.key


class PoolMetaDeriver:
    def __init__(
        self,
        *,
        cache: PoolMetaCache | None = None,
        compute_v2_address: Callable[[Token, Token], str] = compute_v2_pool_address,
        compute_v3_address: Callable[[Token, Token, int], str] = compute_v3_pool_address,
        fee_tiers: tuple[int, ...] = V3_FEE_TIERS,
    ):
        self._cache = cache if cache is not None else PoolMetaCache()
        self._compute_v2_address = compute_v2_address
        self._compute_v3_address = compute_v3_address
        self._fee_tiers = fee_tiers

    def get_v2_pool_metas(self, pair: Pair) -> list[PoolMeta]:
        currency_a, currency_b = pair
        key = ("v2",) + _pair_key(pair)

        def compute() -> list[PoolMeta]:
            return [
                PoolMeta(
                    address=self._compute_v2_address(currency_a, currency_b).lower(),
                    currency_a=currency_a,
                    currency_b=currency_b,
                )
            ]

        return self._cache.get_or_compute(key, compute)

    def get_v3_pool_meta(self, pair: Pair, fee: int) -> V3PoolMeta:
        currency_a, currency_b = pair
        key = ("v3",) + _pair_key(pair) + (fee,)

        def compute() -> V3PoolMeta:
            return V3PoolMeta(
                address=self._compute_v3_address(currency_a, currency_b, fee).lower(),
                currency_a=currency_a,
                currency_b=currency_b,
                fee=fee,
            )

        return self._cache.get_or_compute(key, compute)

    def get_v3_pool_metas(self, pair: Pair) -> list[V3PoolMeta]:
        key = ("v3_pair",) + _pair_key(pair)
        return self._cache.get_or_compute(
            key,
            lambda: [self.get_v3_pool_meta(pair, fee) for fee in self._fee_tiers],
        )
