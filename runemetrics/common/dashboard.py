import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from tabulate import tabulate

from runemetrics.common import progression
from runemetrics.common.change_detector import ChangeDetector, UpdateKey
from runemetrics.common.helpers import (
    format_clock,
    format_number,
    format_percentage,
    normalize_activity_text,
)
from runemetrics.models.profile import PlayerSnapshot, SkillProgress
from runemetrics.storage.data import get_curve, get_skill_name

SKILL_HEADERS = [
    "",
    "Skill",
    "Level",
    "Level %",
    "Current XP",
    "XP remaining",
    "To Level",
]
EVENT_HEADERS = ["", "Date", "Event"]

MARKER_TARGET = "*"
MARKER_RECENT = "+"


def build_status_line(detector: ChangeDetector, error: Optional[str] = None) -> str:
    if error:
        return f"Error: {error}"

    return (
        f"Last Refresh: {format_clock(detector.last_changed(UpdateKey.GENERAL))} | "
        f"XP Change: {format_clock(detector.last_changed(UpdateKey.TOTAL_XP))} | "
        f"Feed Change: {format_clock(detector.last_changed(UpdateKey.FEED))}"
    )


def build_header(snapshot: PlayerSnapshot) -> str:
    return tabulate(
        [
            [
                snapshot.name,
                snapshot.combat_level,
                format_number(snapshot.total_xp),
                format_number(snapshot.total_skill),
                format_number(snapshot.numeric_rank()),
            ]
        ],
        headers=["Player", "Combat Level", "Total XP", "Total Level", "Rank"],
        tablefmt="simple",
    )


def build_skill_row(skill: SkillProgress, recent: bool) -> list:
    curve = get_curve(skill.id)
    experience = skill.experience

    marker = MARKER_RECENT if recent else ""
    remaining = progression.xp_to_next_level(curve, experience)
    percentage = progression.level_percentage(curve, experience)
    target = skill.level + 1

    if skill.target_level > 0:
        marker = MARKER_TARGET + marker
        remaining = progression.xp_to_target_level(
            curve, skill.target_level, experience
        )
        percentage = progression.target_percentage(
            curve, skill.target_level, experience
        )
        target = skill.target_level

    return [
        marker,
        get_skill_name(skill.id) or f"Skill {skill.id}",
        skill.level,
        format_percentage(percentage),
        format_number(experience),
        format_number(max(remaining, 0)),
        target,
    ]


def build_skill_table(
    snapshot: PlayerSnapshot, marker_time: timedelta, now: datetime
) -> str:
    rows = [
        build_skill_row(
            skill,
            recent=skill.updated is not None and now - skill.updated < marker_time,
        )
        for skill in snapshot.skills
    ]
    return tabulate(
        rows,
        headers=SKILL_HEADERS,
        tablefmt="simple",
        colalign=("left", "left", "right", "right", "right", "right", "right"),
    )


def clamp_page(total: int, page: int, page_size: int) -> tuple[int, int]:
    """Returns the clamped zero-based page and the page count (at least 1)."""
    pages = max(math.ceil(total / page_size), 1)
    return min(max(page, 0), pages - 1), pages


def build_event_log(
    snapshot: PlayerSnapshot,
    marker_time: timedelta,
    now: datetime,
    page: int = 0,
    page_size: int = 20,
) -> str:
    page, pages = clamp_page(len(snapshot.activities), page, page_size)
    entries = snapshot.activities[page * page_size : (page + 1) * page_size]

    rows = []
    for entry in entries:
        date = entry.parsed_date()
        recent = date is not None and now - date < marker_time
        rows.append(
            [
                MARKER_RECENT if recent else "",
                date.astimezone().strftime("%m/%d %H:%M") if date else entry.date,
                normalize_activity_text(entry.details),
            ]
        )

    table = tabulate(rows, headers=EVENT_HEADERS, tablefmt="simple")
    return f"Event Log ({page + 1} / {pages})\n{table}"


def render_dashboard(
    snapshot: Optional[PlayerSnapshot],
    detector: ChangeDetector,
    marker_time: timedelta,
    page: int = 0,
    page_size: int = 20,
    error: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Renders the whole dashboard as plain text.

    Without a snapshot only the status line is returned.
    """
    now = now or datetime.now(timezone.utc)
    status = build_status_line(detector, error)

    if snapshot is None:
        return status

    sections = [
        build_header(snapshot),
        build_skill_table(snapshot, marker_time, now),
        build_event_log(snapshot, marker_time, now, page, page_size),
        status,
    ]
    return "\n\n".join(sections)
