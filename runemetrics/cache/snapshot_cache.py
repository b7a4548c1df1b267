import asyncio
import logging
from typing import Optional

from runemetrics.models.profile import PlayerSnapshot
from runemetrics.storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Holds the last reconciled snapshot and persists it through a store.

    A snapshot is only ever replaced as a whole, so readers never observe a
    partially reconciled value.
    """

    def __init__(self, store: SnapshotStore):
        self.store = store
        self.snapshot: Optional[PlayerSnapshot] = None
        self.lock = asyncio.Lock()

    async def load(self) -> Optional[PlayerSnapshot]:
        snapshot = await self.store.load()
        async with self.lock:
            self.snapshot = snapshot
        return snapshot

    async def get(self) -> Optional[PlayerSnapshot]:
        async with self.lock:
            return self.snapshot

    async def publish(self, snapshot: PlayerSnapshot) -> None:
        async with self.lock:
            self.snapshot = snapshot

    async def persist(self) -> bool:
        snapshot = await self.get()
        if snapshot is None:
            return False

        try:
            await self.store.save(snapshot)
        except OSError as e:
            logger.error(f"Unable to write cache: {e}")
            return False

        return True
