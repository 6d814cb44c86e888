"""Headless-browser backend producing latency and time-to-render.

Latency is the time until the first network response event reaches the
page.  Time-to-render (TTR) approximates visual completion as the page
``load`` event plus :data:`~mirrorpick.config.RENDER_SETTLE_MS`.  One
Chromium instance lives for the whole backend lifetime; every probe gets
its own browser context so cookies and cache never carry over.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from playwright.async_api import Browser, Playwright, Response, async_playwright

from mirrorpick.backends.base import MeasurementBackend
from mirrorpick.config import RENDER_SETTLE_MS, USER_AGENT
from mirrorpick.models import METRIC_LATENCY, METRIC_TTR, Timing

logger = logging.getLogger(__name__)


class RenderBackend(MeasurementBackend):
    """Measure first-response latency and approximate visual completion."""

    def __init__(self, headless: bool = True, settle_ms: int = RENDER_SETTLE_MS) -> None:
        self._headless = headless
        self._settle_ms = settle_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def name(self) -> str:
        return "Headless render"

    @property
    def slug(self) -> str:
        return "render"

    @property
    def metrics(self) -> tuple[str, ...]:
        return (METRIC_LATENCY, METRIC_TTR)

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self._headless)
        logger.debug("Launched Chromium (headless=%s)", self._headless)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def measure(self, url: str, timeout: float) -> Timing:
        if self._browser is None:
            raise RuntimeError("RenderBackend used before start()")

        context = await self._browser.new_context(user_agent=USER_AGENT)
        try:
            page = await context.new_page()
            first_response_ms: Optional[float] = None
            t0 = time.perf_counter()

            def on_response(response: Response) -> None:
                nonlocal first_response_ms
                if first_response_ms is None:
                    first_response_ms = (time.perf_counter() - t0) * 1000.0

            page.on("response", on_response)
            await page.goto(url, wait_until="load", timeout=timeout * 1000.0)
            await asyncio.sleep(self._settle_ms / 1000.0)
            ttr_ms = (time.perf_counter() - t0) * 1000.0
        finally:
            await context.close()

        if first_response_ms is None:
            raise ConnectionError(f"No response received from {url}")

        return Timing(latency_ms=round(first_response_ms, 3), ttr_ms=round(ttr_ms, 3))
