"""Per-page locks serializing comparisons and baseline overrides."""

from __future__ import annotations

import asyncio


class PageLocks:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def for_page(self, page_id: str) -> asyncio.Lock:
        lock = self._locks.get(page_id)
        if lock is None:
            lock = self._locks[page_id] = asyncio.Lock()
        return lock

