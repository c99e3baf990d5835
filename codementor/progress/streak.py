"""
Daily login streak policy.

A login between 20 and 28 hours after the previous one continues the streak,
which tolerates timezone drift and slightly early or late daily visits. A
longer gap restarts the streak at 1 and a shorter one leaves it unchanged.
Both the login route and the check-streak route use this policy.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from codementor.config import STREAK_WINDOW_MIN_HOURS, STREAK_WINDOW_MAX_HOURS

STREAK_WINDOW_MIN = timedelta(hours=STREAK_WINDOW_MIN_HOURS)
STREAK_WINDOW_MAX = timedelta(hours=STREAK_WINDOW_MAX_HOURS)


class StreakOutcome(str, Enum):
    STARTED = "started"
    INCREMENTED = "incremented"
    RESET = "reset"
    UNCHANGED = "unchanged"


def next_streak(current: int, last_login: Optional[datetime], now: datetime) -> Tuple[int, StreakOutcome]:
    """Return the streak value after a login at `now` and what happened to it"""
    if last_login is None:
        return 1, StreakOutcome.STARTED

    gap = now - last_login
    if STREAK_WINDOW_MIN <= gap <= STREAK_WINDOW_MAX:
        return (current or 0) + 1, StreakOutcome.INCREMENTED
    if gap > STREAK_WINDOW_MAX:
        return 1, StreakOutcome.RESET
    return current, StreakOutcome.UNCHANGED


def apply_login_streak(user: dict, now: datetime = None) -> StreakOutcome:
    """Update `streak` and `last_login` on the in-memory user record"""
    now = now or datetime.utcnow()
    streak, outcome = next_streak(user.get("streak", 0), user.get("last_login"), now)
    user["streak"] = streak
    user["last_login"] = now
    return outcome
