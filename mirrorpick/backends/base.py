"""Abstract base class for measurement backends."""

from __future__ import annotations

import abc

from mirrorpick.models import Timing


class MeasurementBackend(abc.ABC):
    """Base class that each measurement backend must implement.

    A backend measures one URL once and returns a :class:`Timing`.  Any
    failure (transport error, timeout, bad status) is raised; the engine
    turns it into a failed sample.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable backend name (e.g. 'HTTP fetch')."""

    @property
    @abc.abstractmethod
    def slug(self) -> str:
        """Short identifier (e.g. 'http')."""

    @property
    @abc.abstractmethod
    def metrics(self) -> tuple[str, ...]:
        """Metric names filled in on every successful Timing, primary first."""

    @abc.abstractmethod
    async def measure(self, url: str, timeout: float) -> Timing:
        """Probe *url* once, giving up after *timeout* seconds."""

    async def start(self) -> None:
        """Acquire long-lived resources (browsers, pools). No-op by default."""

    async def close(self) -> None:
        """Release whatever :meth:`start` acquired."""

    async def __aenter__(self) -> "MeasurementBackend":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
