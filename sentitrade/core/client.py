"""sentitrade.core.client

One `httpx.AsyncClient` shared by the price and signal sources.

Each request gets a hard timeout and exactly one attempt: the next
mark-to-market or decision cycle is the retry. Failures are tracked per
host, so an outage at a price exchange never opens the breaker in front of
the signal endpoint (or the other exchange).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    timeout_s: float = 5.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_cooldown_s: float = 30.0


class CircuitBreaker:
    def __init__(self, threshold: int, cooldown_s: float) -> None:
        self.threshold = threshold
        self.cooldown_s = cooldown_s
        self.failures = 0
        self.opened_at: float | None = None

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    def allow(self) -> bool:
        if self.opened_at is None:
            return True
        if (time.monotonic() - self.opened_at) >= self.cooldown_s:
            self.failures = 0
            self.opened_at = None
            return True
        return False

    def on_success(self) -> None:
        self.failures = 0
        self.opened_at = None

    def on_failure(self) -> None:
        self.failures += 1
        if self.failures >= self.threshold and self.opened_at is None:
            self.opened_at = time.monotonic()


class DataClient:
    def __init__(self, config: ClientConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config or ClientConfig()
        self._breakers: dict[str, CircuitBreaker] = {}
        self._client = httpx.AsyncClient(timeout=self.config.timeout_s, transport=transport)

    def breaker(self, url: str) -> CircuitBreaker:
        """The breaker guarding `url`'s host, created on first use."""

        host = httpx.URL(url).host
        br = self._breakers.get(host)
        if br is None:
            br = CircuitBreaker(
                threshold=self.config.circuit_breaker_threshold,
                cooldown_s=self.config.circuit_breaker_cooldown_s,
            )
            self._breakers[host] = br
        return br

    def open_hosts(self) -> list[str]:
        return sorted(host for host, br in self._breakers.items() if br.is_open)

    @staticmethod
    def _enforce_max_bytes(resp: httpx.Response, *, max_bytes: int) -> None:
        size = len(resp.content)
        if size > int(max_bytes):
            raise httpx.TransportError(f"response_too_large:{size}")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        br = self.breaker(url)
        if not br.allow():
            raise httpx.TransportError("circuit breaker open")

        try:
            resp = await self._client.request(method, url, **kwargs)
            resp.raise_for_status()
            await resp.aread()
        except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError, httpx.TransportError):
            was_open = br.is_open
            br.on_failure()
            if br.is_open and not was_open:
                logger.warning("circuit_breaker_open", extra={"host": httpx.URL(url).host, "failures": br.failures})
            raise
        br.on_success()
        return resp

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        expected: type | tuple[type, ...] | None = None,
        max_bytes: int = 256 * 1024,
        **kwargs: Any,
    ) -> Any:
        """Request and parse JSON with a body-size cap and a top-level type check."""

        resp = await self.request(method, url, **kwargs)
        self._enforce_max_bytes(resp, max_bytes=max_bytes)
        data: Any = resp.json()
        if expected is not None and not isinstance(data, expected):
            raise httpx.TransportError("response_schema_mismatch")
        return data
