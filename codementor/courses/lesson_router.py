from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import math
import logging

from codementor.config import XP_PER_LESSON_MINUTE, DEFAULT_LESSON_DURATION
from codementor.courses.models import LessonCreate, LessonProgressUpdate
from codementor.courses.database import create_lesson, get_course, get_lesson, get_course_lessons
from codementor.courses.lesson_status import lesson_progress, is_accessible
from codementor.progress.database import (
    get_or_create_progress, get_progress, save_progress, add_completed_lesson,
    get_user, save_user_progression
)
from codementor.progress.leveling import award_xp
from codementor.progress.reconciler import reconcile_quietly
from codementor.auth.dependencies import get_db, get_current_user_id

router = APIRouter(tags=["Lessons"])
logger = logging.getLogger(__name__)


async def get_lesson_or_404(db: AsyncIOMotorDatabase, lesson_id: str) -> dict:
    lesson = await get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


def lesson_xp(lesson: dict) -> int:
    return math.floor((lesson.get("duration") or DEFAULT_LESSON_DURATION) * XP_PER_LESSON_MINUTE)


# ==================== LESSON CRUD ====================

@router.get("/course/{course_id}")
async def list_course_lessons(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return await get_course_lessons(db, course_id)


@router.post("/", status_code=201)
async def create_new_lesson(
    data: LessonCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    if not await get_course(db, data.course_id):
        raise HTTPException(status_code=404, detail="Course not found")

    return await create_lesson(db, data.dict())


@router.get("/{lesson_id}")
async def get_lesson_details(
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    lesson = await get_lesson_or_404(db, lesson_id)
    course_lessons = await get_course_lessons(db, lesson["course_id"])
    progress = await get_progress(db, user_id)

    return {
        **lesson,
        **lesson_progress(progress, lesson_id),
        "accessible": is_accessible(course_lessons, lesson_id, progress)
    }


@router.get("/{lesson_id}/access")
async def check_lesson_access(
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    lesson = await get_lesson_or_404(db, lesson_id)
    course_lessons = await get_course_lessons(db, lesson["course_id"])
    progress = await get_progress(db, user_id)
    return {"accessible": is_accessible(course_lessons, lesson_id, progress)}


# ==================== PROGRESS ====================

@router.post("/{lesson_id}/progress")
async def update_lesson_progress(
    lesson_id: str,
    data: LessonProgressUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """
    Record fractional progress on a lesson.
    A value of 1 marks the lesson completed without awarding lesson xp.
    """
    value = data.progress
    if value is None or value < 0 or value > 1:
        raise HTTPException(status_code=400, detail="Invalid progress value")

    await get_lesson_or_404(db, lesson_id)
    progress = await get_or_create_progress(db, user_id)
    current = progress.get("current_lesson") or {}

    if value >= 1:
        newly_completed = await add_completed_lesson(db, user_id, lesson_id)
        if current.get("lesson_id") == lesson_id:
            progress["current_lesson"] = {"lesson_id": lesson_id, "progress": 1}
            await save_progress(db, progress, fields=("current_lesson",))
        if newly_completed:
            await reconcile_quietly(db, user_id, "lesson progress")
    else:
        progress["current_lesson"] = {"lesson_id": lesson_id, "progress": value}
        await save_progress(db, progress, fields=("current_lesson",))

    return {"success": True, "progress": value}


@router.post("/{lesson_id}/complete")
async def complete_lesson(
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    lesson = await get_lesson_or_404(db, lesson_id)

    xp_earned = 0
    levels_gained = 0
    newly_completed = await add_completed_lesson(db, user_id, lesson_id)

    if newly_completed:
        user = await get_user(db, user_id)
        xp_earned = lesson_xp(lesson)
        levels_gained = award_xp(user, xp_earned)
        await save_user_progression(db, user)
        logger.info(f"User {user_id} completed lesson {lesson_id} (+{xp_earned} XP)")

        await reconcile_quietly(db, user_id, "lesson completion")

    user = await get_user(db, user_id)
    return {
        "success": True,
        "already_completed": not newly_completed,
        "xp_earned": xp_earned,
        "levels_gained": levels_gained,
        "new_level": user["level"],
        "new_xp": user["xp"]
    }
