from fastapi import APIRouter, HTTPException, Depends, BackgroundTasks
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List
import logging

from codementor.courses.database import count_completed_courses
from codementor.progress.achievements import MetricSources, compute_progress, round_half_up
from codementor.progress.database import (
    get_or_create_progress, get_completed_attempts, get_all_achievements
)
from codementor.progress.leveling import xp_for_next_level
from codementor.progress.reconciler import reconcile_quietly
from codementor.auth.dependencies import get_db, get_current_user

router = APIRouter(tags=["Progress"])
logger = logging.getLogger(__name__)

# ==================== HELPERS ====================

def average_quiz_score(quiz_scores: List[dict]) -> int:
    """Mean percentage over cached quiz scores, 0 when there are none"""
    if not quiz_scores:
        return 0
    total = sum(
        q["score"] / (q.get("max_score") or 100) * 100
        for q in quiz_scores
    )
    return round_half_up(total / len(quiz_scores))


def format_achievement(achievement: dict, entry: dict, live_progress: int) -> dict:
    return {
        "achievement_id": achievement["achievement_id"],
        "title": achievement.get("title"),
        "description": achievement.get("description"),
        "category": achievement.get("category"),
        "icon": achievement.get("icon"),
        "color": achievement.get("color"),
        "target_value": achievement.get("target_value"),
        "xp_reward": achievement.get("xp_reward"),
        "progress": entry["progress"] if entry else live_progress,
        "earned": bool(entry and entry.get("earned")),
        "earned_at": entry.get("earned_at") if entry else None
    }

# ==================== ROUTES ====================

@router.get("/users/{user_id}/progress")
async def get_user_progress(
    user_id: str,
    background_tasks: BackgroundTasks,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Progress overview with every catalog achievement.
    Stored achievement state is returned as-is. If a live metric already
    meets a target the stored state has not caught up with, a reconciliation
    is queued to run after the response is sent.
    """
    if user["user_id"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to access this user's data")

    progress = await get_or_create_progress(db, user_id)
    attempts = await get_completed_attempts(db, user_id)
    catalog = await get_all_achievements(db)

    completed_lesson_ids = [l["lesson_id"] for l in progress.get("completed_lessons") or []]
    sources = MetricSources(
        user=user,
        progress=progress,
        attempts=attempts,
        completed_courses=await count_completed_courses(db, completed_lesson_ids)
    )
    entries = {e["achievement_id"]: e for e in progress.get("achievements") or []}

    achievements = []
    stale = False
    for achievement in catalog:
        live = compute_progress(achievement, sources)
        entry = entries.get(achievement["achievement_id"])
        if live >= achievement.get("target_value", 0) and not (entry and entry.get("earned")):
            stale = True
        achievements.append(format_achievement(achievement, entry, live))

    if stale:
        logger.info(f"Stored achievements of user {user_id} are behind, scheduling reconciliation")
        background_tasks.add_task(reconcile_quietly, db, user_id, "progress view")

    quiz_scores = progress.get("quiz_scores") or []
    return {
        "user_id": user_id,
        "level": user.get("level", 1),
        "xp": user.get("xp", 0),
        "next_level_xp": xp_for_next_level(user.get("level", 1)),
        "streak": user.get("streak", 0),
        "completed_lessons": progress.get("completed_lessons") or [],
        "completed_challenges": progress.get("completed_challenges") or [],
        "total_coding_time": progress.get("total_coding_time", 0),
        "quiz_scores": quiz_scores,
        "avg_quiz_score": average_quiz_score(quiz_scores),
        "achievements": achievements
    }
