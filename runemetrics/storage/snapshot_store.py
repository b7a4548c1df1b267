"""Snapshot <-> JSON document conversion and the on-disk cache file.

The document uses the RuneMetrics profile field names so a cached file and a
profile response share one shape. Skills additionally carry ``TargetLevel``
and ``Updated``.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

import aiofiles
from dateutil.parser import isoparse

from runemetrics.models.profile import ActivityEntry, PlayerSnapshot, SkillProgress

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "metrics.json"


def default_cache_dir() -> str:
    base = os.getenv("XDG_CACHE_HOME") or os.path.join(
        os.path.expanduser("~"), ".cache"
    )
    return os.path.join(base, "runemetrics")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    parsed = isoparse(value)
    # cache files written by older releases may hold the zero time
    if parsed.year <= 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def skill_from_dict(data: dict) -> SkillProgress:
    if not isinstance(data, dict):
        raise TypeError(f"Skill entry must be an object, got {type(data).__name__}")

    return SkillProgress(
        id=int(data["id"]),
        level=int(data["level"]),
        rank=int(data.get("rank") or 0),
        xp=int(data["xp"]),
        target_level=int(data.get("TargetLevel") or 0),
        updated=_parse_datetime(data.get("Updated")),
    )


def activity_from_dict(data: dict) -> ActivityEntry:
    if not isinstance(data, dict):
        raise TypeError(
            f"Activity entry must be an object, got {type(data).__name__}"
        )

    return ActivityEntry(
        date=str(data.get("date", "")),
        details=str(data.get("details", "")),
        text=str(data.get("text", "")),
    )


def snapshot_from_dict(data: dict) -> PlayerSnapshot:
    """Builds a snapshot, raising KeyError/TypeError/ValueError on bad input."""
    if not isinstance(data, dict):
        raise TypeError("Snapshot document must be an object")

    return PlayerSnapshot(
        name=str(data["name"]),
        combat_level=int(data.get("combatlevel") or 0),
        total_xp=int(data.get("totalxp") or 0),
        total_skill=int(data.get("totalskill") or 0),
        rank=str(data.get("rank") or ""),
        quests_complete=int(data.get("questscomplete") or 0),
        quests_started=int(data.get("questsstarted") or 0),
        quests_not_started=int(data.get("questsnotstarted") or 0),
        logged_in=_parse_bool(data.get("loggedIn", False)),
        magic=int(data.get("magic") or 0),
        melee=int(data.get("melee") or 0),
        ranged=int(data.get("ranged") or 0),
        skills=[skill_from_dict(skill) for skill in data["skillvalues"]],
        activities=[
            activity_from_dict(activity) for activity in data.get("activities") or []
        ],
    )


def snapshot_to_dict(snapshot: PlayerSnapshot) -> dict:
    return {
        "name": snapshot.name,
        "combatlevel": snapshot.combat_level,
        "totalxp": snapshot.total_xp,
        "totalskill": snapshot.total_skill,
        "rank": snapshot.rank,
        "questscomplete": snapshot.quests_complete,
        "questsstarted": snapshot.quests_started,
        "questsnotstarted": snapshot.quests_not_started,
        "loggedIn": "true" if snapshot.logged_in else "false",
        "magic": snapshot.magic,
        "melee": snapshot.melee,
        "ranged": snapshot.ranged,
        "skillvalues": [
            {
                "id": skill.id,
                "level": skill.level,
                "rank": skill.rank,
                "xp": skill.xp,
                "TargetLevel": skill.target_level,
                "Updated": skill.updated.isoformat() if skill.updated else None,
            }
            for skill in snapshot.skills
        ],
        "activities": [
            {"date": entry.date, "details": entry.details, "text": entry.text}
            for entry in snapshot.activities
        ],
    }


class SnapshotStore:
    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = cache_dir or default_cache_dir()
        self.file_path = os.path.join(self.cache_dir, CACHE_FILE_NAME)

    async def load(self) -> Optional[PlayerSnapshot]:
        """Reads the cached snapshot; missing or unreadable files yield None."""
        if not os.path.exists(self.file_path):
            logger.info(f"No cache file found at {self.file_path}, starting empty")
            return None

        try:
            async with aiofiles.open(self.file_path, "r") as file:
                content = json.loads(await file.read())

            snapshot = snapshot_from_dict(content)
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Unable to read cache file {self.file_path}: {e}")
            return None

        logger.info(f"Snapshot for {snapshot.name} loaded from {self.file_path}")
        return snapshot

    async def save(self, snapshot: PlayerSnapshot) -> None:
        os.makedirs(self.cache_dir, exist_ok=True)
        temp_path = f"{self.file_path}.tmp"

        async with aiofiles.open(temp_path, "w") as file:
            await file.write(json.dumps(snapshot_to_dict(snapshot)))

        os.replace(temp_path, self.file_path)
        logger.debug(f"Snapshot for {snapshot.name} written to {self.file_path}")
