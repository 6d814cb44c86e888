"""mirrorpick: probe near-duplicate mirrors, rank them, pick one."""

__version__ = "0.1.0"
