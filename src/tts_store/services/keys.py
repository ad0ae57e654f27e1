"""
Storage Key Generation.

Every successful conversion creates exactly one new object, so every key
must be unique across sequential and concurrent invocations.

Schemes:
    random (default)  audio-1700000000000-3f9a1c0b7d2e.mp3
        Millisecond timestamp plus 48 random bits. Keys stay sortable by
        creation time and collisions are negligible across processes.

    timestamp         audio-1700000000000.mp3
        Millisecond timestamp only. Within one process the generator never
        issues the same millisecond twice (it bumps to last + 1), but two
        processes (e.g. two Lambda containers) can still collide when they
        convert within the same millisecond.

    uuid              audio-0b9c3d1e-....mp3
        Random UUID4, no ordering.

An optional prefix places keys under a "folder": <prefix>/<key>.
"""
from __future__ import annotations

import threading
import time
import uuid
from typing import Callable, Optional

from tts_store.core.config import KEY_SCHEMES, KeysConfig


def epoch_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class KeyGenerator:
    """
    Thread-safe storage key generator.

    Args:
        scheme: One of "random", "timestamp", "uuid".
        extension: File extension without the dot (e.g. "mp3").
        prefix: Optional key prefix, without leading/trailing slashes.
        basename: Leading part of the file name.
        clock: Callable returning epoch milliseconds (injectable for tests).
    """

    def __init__(
        self,
        scheme: str = "random",
        extension: str = "mp3",
        prefix: str = "",
        basename: str = "audio",
        clock: Optional[Callable[[], int]] = None,
    ):
        if scheme not in KEY_SCHEMES:
            raise ValueError(f"Unknown key scheme: {scheme!r}")
        self.scheme = scheme
        self.extension = extension
        self.prefix = prefix.strip("/")
        self.basename = basename
        self._clock = clock or epoch_millis
        self._lock = threading.Lock()
        self._last_ms = -1

    @classmethod
    def from_config(
        cls,
        config: KeysConfig,
        extension: str,
        clock: Optional[Callable[[], int]] = None,
    ) -> "KeyGenerator":
        return cls(
            scheme=config.scheme,
            extension=extension,
            prefix=config.prefix,
            basename=config.basename,
            clock=clock,
        )

    def _next_millis(self) -> int:
        # Monotonic per process: never hand out the same millisecond twice
        with self._lock:
            now = self._clock()
            if now <= self._last_ms:
                now = self._last_ms + 1
            self._last_ms = now
            return now

    def new_key(self) -> str:
        """Generate a new, never reused storage key."""
        if self.scheme == "uuid":
            name = f"{self.basename}-{uuid.uuid4()}"
        elif self.scheme == "timestamp":
            name = f"{self.basename}-{self._next_millis()}"
        else:
            name = f"{self.basename}-{self._clock()}-{uuid.uuid4().hex[:12]}"

        filename = f"{name}.{self.extension}"
        return f"{self.prefix}/{filename}" if self.prefix else filename
