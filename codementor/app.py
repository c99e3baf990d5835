"""
CodeMentor - Application Setup
Indexes, router registration and startup tasks
"""

from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from codementor.auth.router import router as auth_router
from codementor.courses.course_router import router as course_router
from codementor.courses.lesson_router import router as lesson_router
from codementor.courses.quiz_router import router as quiz_router
from codementor.progress.router import router as progress_router
from codementor.progress.dashboard_router import router as dashboard_router
from codementor.progress.tracking_router import router as tracking_router
from codementor.mentor.router import router as mentor_router
from codementor.progress.achievements import ACHIEVEMENT_DEFINITIONS
from codementor.progress.database import upsert_achievement_definitions

logger = logging.getLogger(__name__)

# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes for lookups by business id"""

    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)

    # Progress
    await db.user_progress.create_index("user_id", unique=True)

    # Catalog
    await db.achievements.create_index("achievement_id", unique=True)
    await db.achievements.create_index("code", unique=True)

    # Content
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index([("difficulty", 1), ("created_at", -1)])
    await db.courses.create_index("tags")
    await db.lessons.create_index("lesson_id", unique=True)
    await db.lessons.create_index([("course_id", 1), ("order", 1)])
    await db.quizzes.create_index("quiz_id", unique=True)
    await db.quizzes.create_index("course_id")
    await db.challenges.create_index("challenge_id", unique=True)

    # Quiz attempt log
    await db.quiz_attempts.create_index("attempt_id", unique=True)
    await db.quiz_attempts.create_index([("user_id", 1), ("completed", 1), ("completed_at", 1)])
    await db.quiz_attempts.create_index([("user_id", 1), ("course_id", 1), ("created_at", -1)])

    logger.info("Indexes created")

# ==================== ROUTER SETUP ====================

def setup_routes(app: FastAPI):
    """Register all API routers"""

    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(course_router, prefix="/api/courses")
    app.include_router(lesson_router, prefix="/api/lessons")
    app.include_router(quiz_router, prefix="/api/quiz")
    app.include_router(progress_router, prefix="/api/progress")
    app.include_router(dashboard_router, prefix="/api/dashboard")
    app.include_router(tracking_router, prefix="/api/tracking")
    app.include_router(mentor_router, prefix="/api/mentor")

    logger.info("Routes registered")

# ==================== STARTUP ====================

async def ensure_achievement_catalog(db: AsyncIOMotorDatabase) -> int:
    """Insert missing default achievements and refresh the existing ones"""
    inserted = await upsert_achievement_definitions(db, ACHIEVEMENT_DEFINITIONS)
    if inserted:
        logger.info(f"Added {inserted} achievements to the catalog")
    return inserted

async def startup_system(db: AsyncIOMotorDatabase):
    """Initialize the database on app startup"""
    await create_indexes(db)
    await ensure_achievement_catalog(db)
    logger.info("CodeMentor backend initialized")
