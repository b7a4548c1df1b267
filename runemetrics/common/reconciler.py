import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from runemetrics.models.profile import ActivityEntry, PlayerSnapshot, SkillProgress

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    snapshot: PlayerSnapshot
    activity_gap: bool = False


def reconcile(
    fresh: PlayerSnapshot,
    previous: Optional[PlayerSnapshot],
    now: Optional[datetime] = None,
) -> ReconcileResult:
    """Merge a freshly fetched snapshot into the previously cached one.

    Aggregates always come from ``fresh``. Skills keep their ``updated`` stamp
    while xp is unchanged and keep a target level until it is reached. The
    activity feed is extended with every previously known entry older than
    the oldest fresh entry. Neither input is modified.
    """
    now = now or datetime.now(timezone.utc)

    if previous is None:
        skills = [
            replace(skill, target_level=0, updated=now) for skill in fresh.skills
        ]
        return ReconcileResult(
            snapshot=replace(fresh, skills=skills, activities=list(fresh.activities))
        )

    skills = [
        _reconcile_skill(skill, previous.get_skill(skill.id), now)
        for skill in fresh.skills
    ]
    activities, gap = merge_activities(fresh.activities, previous.activities)

    if gap:
        logger.warning(
            f"No overlap between fetched and cached activity feed for {fresh.name}, "
            f"dropping {len(previous.activities)} cached entries"
        )

    return ReconcileResult(
        snapshot=replace(fresh, skills=skills, activities=activities),
        activity_gap=gap,
    )


def _reconcile_skill(
    fresh: SkillProgress, previous: Optional[SkillProgress], now: datetime
) -> SkillProgress:
    if previous is None:
        return replace(fresh, target_level=0, updated=now)

    target_level = previous.target_level if previous.target_level > fresh.level else 0
    updated = previous.updated if previous.xp == fresh.xp else now

    return replace(fresh, target_level=target_level, updated=updated or now)


def merge_activities(
    fresh: list[ActivityEntry], previous: list[ActivityEntry]
) -> tuple[list[ActivityEntry], bool]:
    """Returns the merged feed and whether the cached feed had to be dropped."""
    merged = list(fresh)
    if not fresh:
        return merged, False

    # timestamps can repeat, the details text identifies the entry
    oldest = fresh[-1].details
    match = next(
        (index for index, entry in enumerate(previous) if entry.details == oldest),
        None,
    )

    if match is None:
        return merged, len(previous) > 0

    merged.extend(previous[match + 1 :])
    return merged, False


def set_target_level(
    snapshot: PlayerSnapshot, skill_id: int, level: int
) -> PlayerSnapshot:
    """Returns a copy of ``snapshot`` with a target level set for one skill.

    Targets at or below the current level are stored as unset.
    """
    skill = snapshot.get_skill(skill_id)
    if skill is None:
        raise ValueError(f"Skill {skill_id} is not part of the snapshot")

    if level <= skill.level:
        level = 0

    skills = [
        replace(entry, target_level=level) if entry.id == skill_id else entry
        for entry in snapshot.skills
    ]
    return replace(snapshot, skills=skills)
