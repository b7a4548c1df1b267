import enum
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from runemetrics.models.profile import PlayerSnapshot

logger = logging.getLogger(__name__)

_UNSEEN = object()


class UpdateKey(enum.StrEnum):
    TOTAL_XP = "total_xp"
    FEED = "feed"
    GENERAL = "general"


class ChangeDetector:
    """Remembers when total xp and the newest feed entry last changed."""

    def __init__(self):
        self.known: dict[UpdateKey, Any] = {
            UpdateKey.TOTAL_XP: _UNSEEN,
            UpdateKey.FEED: _UNSEEN,
        }
        self.last_update: dict[UpdateKey, datetime] = {}

    def observe(
        self, snapshot: PlayerSnapshot, now: Optional[datetime] = None
    ) -> set[UpdateKey]:
        now = now or datetime.now(timezone.utc)
        changed: set[UpdateKey] = set()

        newest_activity = (
            snapshot.activities[0].parsed_date() if snapshot.activities else None
        )

        for key, value in (
            (UpdateKey.TOTAL_XP, snapshot.total_xp),
            (UpdateKey.FEED, newest_activity),
        ):
            if self.known[key] is _UNSEEN or self.known[key] != value:
                self.known[key] = value
                self.last_update[key] = now
                changed.add(key)

        self.last_update[UpdateKey.GENERAL] = now
        changed.add(UpdateKey.GENERAL)

        if UpdateKey.TOTAL_XP in changed or UpdateKey.FEED in changed:
            logger.debug(f"Changes detected for {snapshot.name}: {sorted(changed)}")

        return changed

    def last_changed(self, key: UpdateKey) -> Optional[datetime]:
        return self.last_update.get(key)
