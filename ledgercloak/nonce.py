"""
Nonce Generator
Unique 12-byte AES-GCM nonces from randomness plus a persisted counter.

Layout: 8 random bytes || 4-byte big-endian counter.

Randomness alone is safe at low volume in a 96-bit space. The counter is
the backstop against a weak randomness source, and it is persisted after
every increment so a restart continues from where it left off rather than
replaying old counter values. The issued-nonce set lives in memory only
and resets on restart; the monotonic counter is what carries uniqueness
across processes.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Protocol

from ledgercloak.config import get_settings
from ledgercloak.exceptions import NonceExhausted
from ledgercloak.logging_setup import get_logger

NONCE_SIZE = 12
RANDOM_PREFIX_SIZE = 8
MAX_ATTEMPTS = 10
# Counter wraps modulo 2^32 - 1, so the all-ones value is never emitted
COUNTER_MODULUS = 0xFFFFFFFF

log = get_logger(__name__)


class CounterStore(Protocol):
    """Durable home for the nonce counter."""

    def load(self) -> int | None:
        """Return the stored counter, or None if nothing usable is stored."""

    def save(self, value: int) -> None:
        """Persist the counter."""


class MemoryCounterStore:
    """In-memory counter store. Survives generator instances, not processes."""

    def __init__(self, value: int | None = None):
        self.value = value
        self.saves = 0

    def load(self) -> int | None:
        return self.value

    def save(self, value: int) -> None:
        self.value = value
        self.saves += 1


class FileCounterStore:
    """
    Counter persisted as a small JSON file.

    Writes go to a temp file first and are renamed into place, so a crash
    mid-write leaves the previous counter intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> int | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            value = data["counter"]
        except (OSError, ValueError, KeyError, TypeError):
            log.warning("nonce_counter_unreadable", path=str(self.path))
            return None
        if not isinstance(value, int) or value < 0:
            return None
        return value

    def save(self, value: int) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"counter": value, "updated": int(time.time())}))
        os.replace(tmp, self.path)


class NonceGenerator:
    """
    Issues nonces that never repeat within this generator's tracking set.

    Args:
        store: Counter persistence. Defaults to an in-memory store.
    """

    def __init__(self, store: CounterStore | None = None):
        self.store = store if store is not None else MemoryCounterStore()
        stored = self.store.load()
        self._counter = stored if stored is not None else int(time.time() * 1000)
        self._issued: set[bytes] = set()
        self._lock = threading.Lock()

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def issued_count(self) -> int:
        return len(self._issued)

    def _compose(self) -> bytes:
        prefix = os.urandom(RANDOM_PREFIX_SIZE)
        return prefix + (self._counter % COUNTER_MODULUS).to_bytes(4, "big")

    def _advance(self) -> None:
        self._counter += 1
        self.store.save(self._counter)

    def next_nonce(self) -> bytes:
        """
        Produce the next nonce.

        Returns:
            12 bytes never before issued by this generator.

        Raises:
            NonceExhausted: If no unique value was found in MAX_ATTEMPTS tries.
        """
        with self._lock:
            for attempt in range(MAX_ATTEMPTS):
                nonce = self._compose()
                if nonce in self._issued:
                    log.warning("nonce_collision", attempt=attempt + 1)
                    self._advance()
                    continue

                self._issued.add(nonce)
                self._advance()
                return nonce

        log.error("nonce_exhausted", attempts=MAX_ATTEMPTS)
        raise NonceExhausted()


def default_nonce_generator() -> NonceGenerator:
    """Generator whose counter persists under the configured data dir."""
    return NonceGenerator(FileCounterStore(get_settings().nonce_counter_path))
