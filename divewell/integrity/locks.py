"""Per-track mutual exclusion for destructive restores."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class TrackLockRegistry:
  """Hand out one asyncio.Lock per track slug for a single-process deployment."""

  def __init__(self) -> None:
    self._locks: dict[str, asyncio.Lock] = {}

  def lock_for(self, slug: str) -> asyncio.Lock:
    lock = self._locks.get(slug)
    if lock is None:
      lock = asyncio.Lock()
      self._locks[slug] = lock
    return lock

  def is_locked(self, slug: str) -> bool:
    lock = self._locks.get(slug)
    return bool(lock and lock.locked())

  @asynccontextmanager
  async def hold(self, slug: str) -> AsyncIterator[None]:
    async with self.lock_for(slug):
      yield
