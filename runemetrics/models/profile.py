from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import pytz

ACTIVITY_DATE_FORMAT = "%d-%b-%Y %H:%M"
ACTIVITY_TIMEZONE = pytz.timezone("Europe/London")


@dataclass
class SkillProgress:
    id: int
    level: int
    rank: int
    xp: int
    target_level: int = 0
    updated: Optional[datetime] = None

    @property
    def experience(self) -> int:
        """Experience in whole points; ``xp`` is reported in tenths."""
        return self.xp // 10


@dataclass
class ActivityEntry:
    date: str
    details: str
    text: str

    def parsed_date(self) -> Optional[datetime]:
        try:
            naive = datetime.strptime(self.date, ACTIVITY_DATE_FORMAT)
        except (TypeError, ValueError):
            return None
        return ACTIVITY_TIMEZONE.localize(naive)


@dataclass
class PlayerSnapshot:
    name: str
    combat_level: int = 0
    total_xp: int = 0
    total_skill: int = 0
    rank: str = ""
    quests_complete: int = 0
    quests_started: int = 0
    quests_not_started: int = 0
    logged_in: bool = False
    magic: int = 0
    melee: int = 0
    ranged: int = 0
    skills: list[SkillProgress] = field(default_factory=list)
    activities: list[ActivityEntry] = field(default_factory=list)

    def numeric_rank(self) -> int:
        try:
            return int(str(self.rank).replace(",", ""))
        except ValueError:
            return 0

    def get_skill(self, skill_id: int) -> Optional[SkillProgress]:
        return next((skill for skill in self.skills if skill.id == skill_id), None)
