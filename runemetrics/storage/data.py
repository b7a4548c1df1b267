import json
import logging
import math
import os
import sys
from typing import List, Type, TypedDict, TypeVar, cast

T = TypeVar("T", bound=TypedDict)
logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

STANDARD_MAX_LEVEL = 120


class Skill(TypedDict):
    id: int
    name: str
    color: str
    max_level: int
    curve: str


class CurvePoint(TypedDict):
    level: int
    xp: int


def load_json_data(file_name: str, type: Type[T]) -> List[T] | None:
    with open(f"{file_name}", "r") as file:
        logger.debug(f"Reading file: {file_name}")
        data = json.load(file)

        if not isinstance(data, list):
            raise TypeError(f"{file_name}: does not contain an array/list")

        for item in data:
            if not isinstance(item, dict):
                raise TypeError(f"{file_name}: does not contain object/dict")

            for key in type.__annotations__.keys():
                if key not in item and key in type.__optional_keys__:
                    item[key] = None
                elif key not in item:
                    raise KeyError(
                        f"{file_name}: object missing key ({key}) for type ({type.__name__})"
                    )

        output = cast(List[T], data)
        if output is None or len(output) < 1:
            raise ValueError(f"{file_name}: output result is invalid")

        return output


def build_standard_curve(max_level: int = STANDARD_MAX_LEVEL) -> dict[int, int]:
    """Cumulative xp per level for the regular skill curve."""
    curve = {1: 0}
    points = 0
    for level in range(1, max_level):
        points += math.floor(level + 300 * 2 ** (level / 7))
        curve[level + 1] = math.floor(points / 4)
    return curve


def build_curve(points: List[CurvePoint]) -> dict[int, int]:
    curve = {int(point["level"]): int(point["xp"]) for point in points}
    validate_curve(curve)
    return curve


def validate_curve(curve: dict[int, int]) -> None:
    levels = sorted(curve.keys())

    if not levels or levels[0] != 1 or curve[1] != 0:
        raise ValueError("Curve must start at level 1 with 0 xp")

    if levels != list(range(1, len(levels) + 1)):
        raise ValueError("Curve levels must be contiguous")

    for level in levels[1:]:
        if curve[level] < curve[level - 1]:
            raise ValueError(f"Curve xp decreases at level {level}")


def build_skill_table(skills: List[Skill]) -> dict[int, Skill]:
    table: dict[int, Skill] = {}
    for skill in skills:
        if skill["id"] in table:
            raise ValueError(f"Duplicate skill id: {skill['id']}")
        if skill["curve"] not in CURVES:
            raise ValueError(f"Unknown curve '{skill['curve']}' for {skill['name']}")
        table[skill["id"]] = skill
    return table


def get_skill(skill_id: int) -> Skill | None:
    return SKILLS.get(skill_id)


def get_skill_name(skill_id: int) -> str:
    skill = SKILLS.get(skill_id)
    return skill["name"] if skill else ""


def get_curve(skill_id: int) -> dict[int, int]:
    skill = SKILLS.get(skill_id)
    if skill is None:
        return STANDARD_CURVE
    return CURVES[skill["curve"]]


def find_skill_id(value: str) -> int | None:
    """Resolve a skill by id or case-insensitive name."""
    value = value.strip()
    if value.isdigit():
        return int(value) if int(value) in SKILLS else None

    for skill_id, skill in SKILLS.items():
        if skill["name"].lower() == value.lower():
            return skill_id

    return None


try:
    STANDARD_CURVE = build_standard_curve()
    MASTER_CURVE = build_curve(
        load_json_data(os.path.join(DATA_DIR, "master_curve.json"), CurvePoint) or []
    )
    CURVES = {"standard": STANDARD_CURVE, "master": MASTER_CURVE}
    SKILLS = build_skill_table(
        load_json_data(os.path.join(DATA_DIR, "skills.json"), Skill) or []
    )
    logger.info("Loaded local data successfully")
except Exception as e:
    logger.critical(e)
    sys.exit(1)
