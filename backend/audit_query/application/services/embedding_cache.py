"""In-process embedding cache keyed by finding id."""

import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """Memoizes finding embeddings for the life of the process.

    There is no eviction; the finding corpus is bounded. Writes for the
    same key are last-write-wins since the vector for a given record is
    deterministic. ``clear()`` swaps the backing dict instead of emptying
    it, so a reader holding the old dict never sees it half-cleared.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[float]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> list[float] | None:
        vector = self._entries.get(key)
        if vector is None:
            self._misses += 1
        else:
            self._hits += 1
        return vector

    def put(self, key: str, vector: list[float]) -> None:
        self._entries[key] = vector

    async def get_or_compute(
        self, key: str, compute: Callable[[], Awaitable[list[float]]]
    ) -> list[float]:
        """Cached vector for ``key``, awaiting ``compute()`` and storing it on a miss.

        A failing ``compute`` leaves the cache untouched.
        """
        vector = self.get(key)
        if vector is None:
            vector = await compute()
            self.put(key, vector)
        return vector

    def clear(self) -> None:
        size = len(self._entries)
        self._entries = {}
        self._hits = 0
        self._misses = 0
        logger.info("Embedding cache cleared (%d entries dropped)", size)

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
