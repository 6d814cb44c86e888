"""Plain timed fetch backend (single metric)."""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from mirrorpick.backends.base import MeasurementBackend
from mirrorpick.config import USER_AGENT
from mirrorpick.models import METRIC_LATENCY, Timing

logger = logging.getLogger(__name__)


class HttpBackend(MeasurementBackend):
    """Measure response latency with a single HTTP GET.

    Latency runs from request initiation until the status line and headers
    have arrived; the body is never read.  Each probe opens a fresh client
    so that connection reuse does not make later runs look faster.  A
    4xx/5xx response counts as a failure.
    """

    def __init__(
        self,
        http2: bool = True,
        verify: bool = True,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http2 = http2
        self._verify = verify
        self._follow_redirects = follow_redirects
        self._transport = transport

    @property
    def name(self) -> str:
        return "HTTP fetch"

    @property
    def slug(self) -> str:
        return "http"

    @property
    def metrics(self) -> tuple[str, ...]:
        return (METRIC_LATENCY,)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        kwargs = {
            "http2": self._http2,
            "verify": self._verify,
            "timeout": httpx.Timeout(timeout),
            "follow_redirects": self._follow_redirects,
            "headers": {"User-Agent": USER_AGENT},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def measure(self, url: str, timeout: float) -> Timing:
        async with self._client(timeout) as client:
            t0 = time.perf_counter()
            async with client.stream("GET", url) as response:
                latency_ms = (time.perf_counter() - t0) * 1000.0
                logger.debug(
                    "%s -> %d %s in %.1fms",
                    url, response.status_code, response.http_version, latency_ms,
                )
                response.raise_for_status()

        return Timing(latency_ms=round(latency_ms, 3))
