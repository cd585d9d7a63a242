"""Level computation.

One formula for every reader: stored ``users.level``, stats, and the leaderboard
all derive the level as ``floor(sqrt(xp / 100)) + 1``.
"""

from __future__ import annotations

import math

XP_PER_LEVEL_UNIT = 100


def compute_level(total_xp: int) -> int:
    """Level for a given XP total. Negative XP is treated as zero."""
    xp = max(0, int(total_xp))
    # floor(sqrt(xp / 100)) == isqrt(xp // 100) for non-negative integers
    return math.isqrt(xp // XP_PER_LEVEL_UNIT) + 1


def xp_for_level(level: int) -> int:
    """Cumulative XP at which ``level`` starts."""
    return XP_PER_LEVEL_UNIT * (max(1, level) - 1) ** 2


def level_progress(total_xp: int) -> dict:
    """Level plus progress towards the next one."""
    xp = max(0, int(total_xp))
    level = compute_level(xp)
    start = xp_for_level(level)
    end = xp_for_level(level + 1)
    return {
        "level": level,
        "xp_into_level": xp - start,
        "xp_for_level": end - start,
        "next_level_xp": end,
    }
