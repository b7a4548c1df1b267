from datetime import datetime, timezone
from typing import List, Optional

from runemetrics.models.profile import ActivityEntry, PlayerSnapshot, SkillProgress

VALID_CONFIG = {
    "ENVIRONMENT": "dev",
    "PLAYER_NAME": "Zezima",
    "UPDATE_CRON": "*/5 * * * *",
    "MARKER_TIME": "30",
    "ACTIVITIES": "20",
    "PAGE_SIZE": "20",
    "CACHE_DIR": "/tmp/runemetrics-tests",
}

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def create_test_activity(
    details: str, date: str = "01-May-2024 12:00", text: Optional[str] = None
) -> ActivityEntry:
    return ActivityEntry(date=date, details=details, text=text or details)


def create_test_activities(*names: str) -> List[ActivityEntry]:
    return [create_test_activity(f"I did {name}.") for name in names]


def create_test_skill(
    skill_id: int = 0,
    level: int = 50,
    xp: int = 1_000_000,
    rank: int = 100_000,
    target_level: int = 0,
    updated: Optional[datetime] = None,
) -> SkillProgress:
    return SkillProgress(
        id=skill_id,
        level=level,
        rank=rank,
        xp=xp,
        target_level=target_level,
        updated=updated,
    )


def create_test_snapshot(
    skills: Optional[List[SkillProgress]] = None,
    activities: Optional[List[ActivityEntry]] = None,
    name: str = "Zezima",
    total_xp: int = 123_456_789,
) -> PlayerSnapshot:
    return PlayerSnapshot(
        name=name,
        combat_level=138,
        total_xp=total_xp,
        total_skill=2_500,
        rank="12,345",
        quests_complete=300,
        quests_started=5,
        quests_not_started=10,
        skills=skills if skills is not None else [create_test_skill()],
        activities=activities if activities is not None else [],
    )


def create_profile_response(
    name: str = "Zezima", activities: Optional[list] = None
) -> dict:
    return {
        "magic": 1_234_567,
        "questsstarted": 5,
        "totalskill": 2_500,
        "questscomplete": 300,
        "questsnotstarted": 10,
        "totalxp": 123_456_789,
        "ranged": 2_345_678,
        "activities": (
            activities
            if activities is not None
            else [
                {
                    "date": "01-May-2024 12:00",
                    "details": "I levelled my  Invention skill, I am now level 120.",
                    "text": "Levelled up Invention.",
                },
                {
                    "date": "01-May-2024 11:30",
                    "details": "I killed  a boss.",
                    "text": "Killed a boss.",
                },
            ]
        ),
        "skillvalues": [
            {"level": 99, "xp": 130_344_310, "rank": 54_321, "id": 0},
            {"level": 120, "xp": 806_186_540, "rank": 1_234, "id": 26},
        ],
        "name": name,
        "rank": "12,345",
        "melee": 3_456_789,
        "combatlevel": 138,
        "loggedIn": "false",
    }
