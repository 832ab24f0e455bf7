"""Thread-safe cache of symmetric keys for the Crypto SDK.

The cache is not the source of truth. A miss calls the injected fetch
function (a backend READ). Concurrent misses on the same name share one
fetch; misses on different names fetch in parallel, since the map lock is
never held across a fetch.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from typing import cast

from .types import KeyEntry

logger = logging.getLogger("cryptosdk")

KeyFetcher = Callable[[str], bytes]


def _fresh_error(error: BaseException) -> BaseException:
    """Return a copy of error so each waiting thread raises its own object."""
    try:
        return copy.copy(error)
    except Exception:
        # Not reconstructible from its args; fall back to the shared object.
        return error


class _PendingFetch:
    """A fetch in flight, shared by every caller that missed on the same name."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.entry: KeyEntry | None = None
        self.error: BaseException | None = None

    def result(self) -> KeyEntry:
        """Wait for the leader and return its entry or raise its error."""
        self.done.wait()
        if self.error is not None:
            raise _fresh_error(self.error) from self.error
        return cast(KeyEntry, self.entry)


class KeyCache:
    """Mapping from key name to KeyEntry, filled lazily from the backend.

    A fetch stores its result only if nothing superseded it while it ran:
    remove(), put() and clear() all detach the in-flight fetch for the
    names they touch. Writers that read the cache ``generation`` before a
    slow backend call can pass it to put() so the write is dropped if
    clear() ran in between.

    Example:
        ```python
        cache = KeyCache(lambda name: backend_read(name))
        entry = cache.get("payments")  # fetched once, then served locally
        ```
    """

    def __init__(self, fetch: KeyFetcher) -> None:
        """Initialize the cache.

        Args:
            fetch: Called with a key name on a miss; returns the raw key
                bytes or raises (typically KeyNotFoundError).
        """
        self._fetch = fetch
        self._entries: dict[str, KeyEntry] = {}
        self._pending: dict[str, _PendingFetch] = {}
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Counter bumped by every clear()."""
        with self._lock:
            return self._generation

    def get(self, name: str) -> KeyEntry:
        """Return the cached entry, fetching it from the backend on a miss.

        Args:
            name: Key name.

        Returns:
            The cached KeyEntry.

        Raises:
            KeyNotFoundError: If the backend has no such key.
            Exception: Whatever the fetch function raises. Callers waiting
                on another thread's fetch get a copy chained to it.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None:
                return entry
            in_flight = self._pending.get(name)
            if in_flight is None:
                pending = _PendingFetch()
                self._pending[name] = pending

        if in_flight is not None:
            logger.debug("Waiting for in-flight fetch of key %r", name)
            return in_flight.result()
        return self._load(name, pending)

    def _load(self, name: str, pending: _PendingFetch) -> KeyEntry:
        logger.debug("Key %r not in cache, fetching from backend", name)
        try:
            material = self._fetch(name)
            entry = KeyEntry(name=name, material=bytearray(material))
        except BaseException as e:
            pending.error = e
            with self._lock:
                if self._pending.get(name) is pending:
                    del self._pending[name]
            pending.done.set()
            raise

        with self._lock:
            if self._pending.get(name) is pending:
                del self._pending[name]
                self._entries[name] = entry
            else:
                logger.debug("Fetch of key %r was superseded, not caching it", name)
        pending.entry = entry
        pending.done.set()
        return entry

    def peek(self, name: str) -> KeyEntry | None:
        """Return the cached entry without fetching."""
        with self._lock:
            return self._entries.get(name)

    def put(self, name: str, material: bytes, *, generation: int | None = None) -> KeyEntry:
        """Insert or overwrite an entry with a private copy of the material.

        Args:
            name: Key name.
            material: Raw key bytes.
            generation: Value of ``generation`` read before the material was
                obtained. If clear() has run since, the entry is not stored.

        Returns:
            The KeyEntry built from the material.
        """
        entry = KeyEntry(name=name, material=bytearray(material))
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Cache cleared since key %r was obtained, not caching it", name)
                return entry
            self._entries[name] = entry
            self._pending.pop(name, None)
        return entry

    def remove(self, name: str) -> None:
        """Evict an entry. Removing an absent name is a no-op.

        A fetch of the same name that is still running will not store its
        result.
        """
        with self._lock:
            self._entries.pop(name, None)
            self._pending.pop(name, None)

    def clear(self) -> None:
        """Scrub and evict every entry."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            self._pending.clear()
            self._generation += 1
        for entry in entries:
            entry.scrub()
        if entries:
            logger.debug("Scrubbed %d cached key(s)", len(entries))

    def names(self) -> list[str]:
        """Return the names currently cached."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
