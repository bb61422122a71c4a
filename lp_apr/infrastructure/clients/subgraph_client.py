from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time

import httpx


logger = logging.getLogger(__name__)


class SubgraphRequestError(RuntimeError):
    pass


@dataclass(frozen=True)
class SubgraphClientSettings:
    timeout_seconds: float
    min_interval_ms: int = 0


class RequestThrottle:
    """Minimum spacing between requests, shared by every client of one registry."""

    def __init__(self, min_interval_ms: int):
        self._min_interval = max(0, min_interval_ms) / 1000.0
        self._lock = Lock()
        self._last_request_at = 0.0

    def wait(self) -> None:
        if self._min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < self._min_interval:
                time.sleep(self._min_interval - elapsed)
            self._last_request_at = time.monotonic()


class SubgraphClient:
    def __init__(
        self,
        *,
        url: str,
        settings: SubgraphClientSettings,
        throttle: RequestThrottle | None = None,
    ):
        self.url = url
        self._settings = settings
        self._throttle = throttle or RequestThrottle(settings.min_interval_ms)

    def request(self, query: str, variables: dict | None = None) -> dict:
        self._throttle.wait()
        started = time.perf_counter()
        try:
            with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                response = client.post(
                    self.url,
                    json={"query": query, "variables": variables or {}},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("subgraph_client: request_failed url=%s error=%s", self.url, exc)
            raise SubgraphRequestError(f"GraphQL request failed: {exc}") from exc

        errors = payload.get("errors") or []
        if errors:
            message = " | ".join(str(err.get("message", err)) for err in errors)
            logger.warning("subgraph_client: graphql_errors url=%s errors=%s", self.url, message)
            raise SubgraphRequestError(message)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise SubgraphRequestError("GraphQL response without data.")

        logger.debug(
            "subgraph_client: request_ok url=%s elapsed_ms=%.2f",
            self.url,
            (time.perf_counter() - started) * 1000,
        )
        return data
