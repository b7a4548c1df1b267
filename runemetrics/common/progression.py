"""Experience to level conversions for a single progression curve.

A curve maps level (1..N) to the minimum cumulative experience required for
that level. All functions are pure and clamp out of range input to the
curve's boundaries instead of raising.
"""

from typing import Optional


def max_level(curve: dict[int, int]) -> int:
    return max(curve.keys())


def level_xp(curve: dict[int, int], level: int) -> int:
    """Minimum experience for ``level``, clamped to the curve's range."""
    level = min(max(level, 1), max_level(curve))
    return curve[level]


def level_from_xp(curve: dict[int, int], xp: int) -> int:
    """Highest level whose requirement is covered by ``xp``."""
    level = 1
    for candidate in range(1, max_level(curve) + 1):
        if curve[candidate] > xp:
            break
        level = candidate
    return level


def level_percentage(curve: dict[int, int], xp: int) -> Optional[float]:
    """Progress through the current level band, or None at the top level."""
    level = level_from_xp(curve, xp)
    if level >= max_level(curve):
        return None

    current = curve[level]
    return (xp - current) / (curve[level + 1] - current) * 100


def target_percentage(curve: dict[int, int], target_level: int, xp: int) -> float:
    target = level_xp(curve, target_level)
    if target <= 0:
        return 100.0
    return xp / target * 100


def xp_to_next_level(curve: dict[int, int], xp: int) -> int:
    level = level_from_xp(curve, xp)
    if level >= max_level(curve):
        return 0
    return curve[level + 1] - xp


def xp_to_target_level(curve: dict[int, int], target_level: int, xp: int) -> int:
    # negative once the target has been passed
    return level_xp(curve, target_level) - xp
