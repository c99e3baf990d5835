"""
Level progression for user records.

XP is stored relative to the current level: reaching `level * XP_PER_LEVEL`
consumes that amount and advances one level, so after every write the
stored xp is below the threshold of the stored level.
"""

from codementor.config import XP_PER_LEVEL


def xp_for_next_level(level: int) -> int:
    """XP needed to leave `level`"""
    return level * XP_PER_LEVEL


def check_and_level_up(user: dict) -> int:
    """
    Convert surplus xp into levels on the in-memory user record.

    The threshold is inclusive: xp equal to `level * 1000` levels up.
    Returns the number of levels gained. Persistence is up to the caller.
    """
    levels_gained = 0
    user.setdefault("level", 1)
    user.setdefault("xp", 0)

    while user["xp"] >= xp_for_next_level(user["level"]):
        user["xp"] -= xp_for_next_level(user["level"])
        user["level"] += 1
        levels_gained += 1

    return levels_gained


def award_xp(user: dict, amount: int) -> int:
    """Add xp and normalize it through level-up. Returns levels gained."""
    user["xp"] = user.get("xp", 0) + amount
    return check_and_level_up(user)
