"""
Timing Utilities for Per-Stage Request Logging.

The conversion pipeline times each stage (synthesize, drain, upload) so the
VERBOSE log level can show where a slow request spent its time, which is
almost always one of the two provider round-trips.

Example Usage:
    with timeit("upload") as t:
        store.put(key, body)
    timings["upload"] = t.seconds
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Dict, Optional


@dataclass
class Timing:
    """
    Timing measurement result.

    Attributes:
        name: Stage identifier (e.g., "synthesize", "upload").
        seconds: Duration in seconds.
    """
    name: str
    seconds: float


class timeit:
    """
    Context manager for timing code blocks.

    The timing is recorded even when the block raises, so failed stages
    still show up in logs.

    Attributes:
        name: Stage identifier.
        timing: Timing result (available after context exit).
    """

    def __init__(self, name: str, into: Optional[Dict[str, float]] = None):
        """
        Args:
            name: Stage identifier.
            into: Optional dict to record {name: seconds} into on exit.
        """
        self.name = name
        self._into = into
        self._t0: float | None = None
        self.timing: Timing | None = None

    @property
    def seconds(self) -> float:
        """Elapsed seconds, -1.0 if the block has not finished."""
        return self.timing.seconds if self.timing else -1.0

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=perf_counter() - self._t0)
        if self._into is not None:
            self._into[self.name] = self.timing.seconds
