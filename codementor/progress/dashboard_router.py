from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codementor.courses.database import get_lesson, get_recommended_lesson, get_recommended_challenges
from codementor.progress.database import get_progress
from codementor.auth.dependencies import get_db, get_current_user

router = APIRouter(tags=["Dashboard"])


def lesson_card(lesson: dict, progress: float) -> dict:
    return {
        "lesson_id": lesson["lesson_id"],
        "title": lesson.get("title"),
        "topic": lesson.get("topic"),
        "duration": f"{lesson.get('duration')} mins",
        "progress": progress
    }


@router.get("/")
async def get_dashboard(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Home screen summary: streak, level, next lesson and two open challenges"""
    progress = await get_progress(db, user["user_id"]) or {}

    next_lesson = None
    current = progress.get("current_lesson") or {}
    if current.get("lesson_id"):
        lesson = await get_lesson(db, current["lesson_id"])
        if lesson:
            next_lesson = lesson_card(lesson, current.get("progress", 0))

    if next_lesson is None:
        lesson = await get_recommended_lesson(db)
        if lesson:
            next_lesson = lesson_card(lesson, 0)

    completed_challenges = progress.get("completed_challenges") or []
    challenges = await get_recommended_challenges(
        db, [c["challenge_id"] for c in completed_challenges]
    )

    return {
        "user_progress": {
            "streak": user.get("streak", 0),
            "level": user.get("level", 1),
            "xp": user.get("xp", 0),
            "completed_challenges": len(completed_challenges)
        },
        "next_lesson": next_lesson,
        "recommended_challenges": [
            {
                "challenge_id": c["challenge_id"],
                "title": c.get("title"),
                "difficulty": c.get("difficulty"),
                "xp": c.get("xp"),
                "tags": c.get("tags", [])
            }
            for c in challenges
        ]
    }
