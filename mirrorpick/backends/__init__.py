"""Measurement backend registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mirrorpick.backends.base import MeasurementBackend

_BACKEND_MAP: dict[str, type[MeasurementBackend]] | None = None


def _load_backends() -> dict[str, type[MeasurementBackend]]:
    from mirrorpick.backends.http import HttpBackend
    from mirrorpick.backends.render import RenderBackend

    return {
        "http": HttpBackend,
        "render": RenderBackend,
    }


def get_backend_map() -> dict[str, type[MeasurementBackend]]:
    """Return the mapping of slug → backend class, loading lazily."""
    global _BACKEND_MAP
    if _BACKEND_MAP is None:
        _BACKEND_MAP = _load_backends()
    return _BACKEND_MAP


def get_backend(slug: str, **options: Any) -> MeasurementBackend:
    """Instantiate a backend by slug."""
    bmap = get_backend_map()
    if slug not in bmap:
        raise ValueError(f"Unknown backend: {slug!r}. Available: {list(bmap)}")
    return bmap[slug](**options)


def list_backends() -> list[str]:
    """Return sorted list of available backend slugs."""
    return sorted(get_backend_map())
