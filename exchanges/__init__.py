"""Order book snapshot sources"""
from .base import SnapshotFetchError, SnapshotSource
from .nobitex import NobitexSource
from .simulator import SimulatedSource, generate_snapshot

__all__ = [
    "SnapshotFetchError",
    "SnapshotSource",
    "NobitexSource",
    "SimulatedSource",
    "generate_snapshot",
]
