"""
Per-provider mutual exclusion for commit-time mutations.

Each provider gets its own ``asyncio.Lock`` so "conflict check + write"
sequences for one provider are linearized while unrelated providers
proceed independently. Entries are evicted as soon as no task holds or
waits on them, so the pool does not grow with the provider count.

Usage:
    locks = ProviderLockPool()
    async with locks.hold("prov-1"):
        ...  # check and write
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from booking_engine.logging_context import get_request_logger

logger = get_request_logger(__name__)


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ProviderLockPool:
    """Keyed lock arena indexed by provider id."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, provider_id: str) -> AsyncIterator[None]:
        entry = self._entries.get(provider_id)
        if entry is None:
            entry = self._entries[provider_id] = _Entry()
        entry.users += 1
        if entry.lock.locked():
            logger.debug("Waiting for provider lock %s (%d user(s))", provider_id, entry.users)
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(provider_id) is entry:
                del self._entries[provider_id]

    def is_tracked(self, provider_id: str) -> bool:
        return provider_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
