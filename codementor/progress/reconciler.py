"""
Achievement reconciliation.

`update_achievements` recomputes every catalog achievement for one user from
the stored progress record and the quiz attempt log, awards xp for
achievements that became earned, and writes the result back. Running it
again without new activity changes nothing except recomputing the same
progress values.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import logging

from codementor.courses.database import count_completed_courses
from codementor.progress.achievements import MetricSources, compute_progress
from codementor.progress.leveling import award_xp
from codementor.progress.database import (
    get_user,
    get_or_create_progress,
    get_completed_attempts,
    get_all_achievements,
    save_user_progression,
    save_progress
)

logger = logging.getLogger(__name__)


def rebuild_quiz_scores(attempts: List[dict]) -> List[dict]:
    """Quiz score cache derived from the attempt log, oldest first"""
    return [
        {
            "quiz_id": attempt["quiz_id"],
            "score": attempt["score"],
            "max_score": attempt.get("max_score", 100),
            "completed_at": attempt.get("completed_at")
        }
        for attempt in attempts
    ]


def find_or_create_entry(progress: dict, achievement_id: str) -> dict:
    for entry in progress["achievements"]:
        if entry.get("achievement_id") == achievement_id:
            return entry

    entry = {
        "achievement_id": achievement_id,
        "progress": 0,
        "earned": False,
        "earned_at": None
    }
    progress["achievements"].append(entry)
    return entry


async def update_achievements(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    """
    Recompute achievement progress for a user and award newly earned ones.

    The user record is saved right after each award, the progress record
    once at the end. Errors propagate to the caller. Returns None when the
    user does not exist, otherwise a summary of what was awarded.
    """
    user = await get_user(db, user_id)
    if not user:
        logger.warning(f"Skipping achievement update, user {user_id} not found")
        return None

    progress = await get_or_create_progress(db, user_id)
    progress.setdefault("achievements", [])
    attempts = await get_completed_attempts(db, user_id)

    progress["quiz_scores"] = rebuild_quiz_scores(attempts)

    catalog = await get_all_achievements(db)
    completed_lesson_ids = [l["lesson_id"] for l in progress.get("completed_lessons") or []]
    sources = MetricSources(
        user=user,
        progress=progress,
        attempts=attempts,
        completed_courses=await count_completed_courses(db, completed_lesson_ids)
    )

    newly_earned = []
    xp_awarded = 0
    levels_gained = 0

    for achievement in catalog:
        value = compute_progress(achievement, sources)
        entry = find_or_create_entry(progress, achievement["achievement_id"])
        entry["progress"] = value

        if value >= achievement.get("target_value", 0) and not entry.get("earned"):
            entry["earned"] = True
            entry["earned_at"] = datetime.utcnow()

            reward = achievement.get("xp_reward", 0)
            levels_gained += award_xp(user, reward)
            xp_awarded += reward
            await save_user_progression(db, user)

            newly_earned.append({
                "achievement_id": achievement["achievement_id"],
                "title": achievement.get("title"),
                "xp_reward": reward
            })
            logger.info(f"User {user_id} earned '{achievement.get('title')}' (+{reward} XP)")

    await save_progress(db, progress, fields=("achievements", "quiz_scores"))

    return {
        "newly_earned": newly_earned,
        "xp_awarded": xp_awarded,
        "levels_gained": levels_gained
    }


async def reconcile_quietly(db: AsyncIOMotorDatabase, user_id: str, trigger: str) -> Optional[dict]:
    """
    Run `update_achievements` after a primary action has already succeeded.
    A failure here is logged and never fails the action that triggered it.
    """
    try:
        return await update_achievements(db, user_id)
    except Exception as e:
        logger.error(f"Achievement update after {trigger} failed for user {user_id}: {e}", exc_info=True)
        return None
