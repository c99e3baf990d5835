from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from codementor.courses.models import CourseCreate, Difficulty
from codementor.courses.database import create_course, get_course, list_courses, get_course_lessons
from codementor.courses.lesson_status import lesson_progress
from codementor.progress.database import get_progress
from codementor.auth.dependencies import get_db, get_current_user_id

router = APIRouter(tags=["Course Management"])
logger = logging.getLogger(__name__)

# ==================== COURSE CRUD ====================

@router.get("/")
async def get_courses(
    difficulty: Optional[Difficulty] = None,
    tag: Optional[str] = None,
    limit: int = 100,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    filters = {"difficulty": difficulty.value if difficulty else None, "tag": tag}
    return await list_courses(db, filters, limit)


@router.post("/", status_code=201)
async def create_new_course(
    data: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    course = await create_course(db, data.dict())
    logger.info(f"Course {course['course_id']} created by {user_id}")
    return course


@router.get("/difficulty/{difficulty}")
async def get_courses_by_difficulty(
    difficulty: Difficulty,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return await list_courses(db, {"difficulty": difficulty.value})


@router.get("/tag/{tag}")
async def get_courses_by_tag(
    tag: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return await list_courses(db, {"tag": tag})


@router.get("/{course_id}")
async def get_course_details(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    course["lessons"] = await get_course_lessons(db, course_id)
    return course


@router.get("/{course_id}/lessons")
async def get_course_with_lesson_status(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Course with each lesson annotated with the user's completion and progress"""
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    progress = await get_progress(db, user_id)
    lessons = await get_course_lessons(db, course_id)
    course["lessons"] = [
        {**lesson, **lesson_progress(progress, lesson["lesson_id"])}
        for lesson in lessons
    ]
    return course
