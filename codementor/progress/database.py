from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import logging

from codementor.courses.database import generate_id, serialize_mongo, serialize_many

logger = logging.getLogger(__name__)

# ==================== USER CRUD ====================

async def create_user(db: AsyncIOMotorDatabase, name: str, email: str, password_hash: str) -> dict:
    """Create a user with a fresh streak and an empty progress record"""
    now = datetime.utcnow()
    user = {
        "user_id": generate_id("USR"),
        "name": name,
        "email": email,
        "password_hash": password_hash,
        "profile_picture": "",
        "level": 1,
        "xp": 0,
        "streak": 1,
        "last_login": now,
        "created_at": now,
        "updated_at": now
    }
    await db.users.insert_one(user)
    await get_or_create_progress(db, user["user_id"])
    return serialize_mongo(user)

async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return serialize_mongo(await db.users.find_one({"user_id": user_id}))

async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return serialize_mongo(await db.users.find_one({"email": email}))

async def update_user(db: AsyncIOMotorDatabase, user_id: str, updates: dict) -> bool:
    updates["updated_at"] = datetime.utcnow()
    result = await db.users.update_one({"user_id": user_id}, {"$set": updates})
    return result.matched_count > 0

async def save_user_progression(db: AsyncIOMotorDatabase, user: dict) -> bool:
    """Persist the xp/level pair of an in-memory user record"""
    return await update_user(db, user["user_id"], {"xp": user["xp"], "level": user["level"]})

def public_user(user: dict) -> dict:
    """Fields safe to return to the client"""
    return {
        "id": user["user_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "level": user.get("level", 1),
        "xp": user.get("xp", 0),
        "streak": user.get("streak", 0)
    }

# ==================== PROGRESS CRUD ====================

def new_progress(user_id: str) -> dict:
    now = datetime.utcnow()
    return {
        "user_id": user_id,
        "completed_lessons": [],
        "completed_challenges": [],
        "current_lesson": None,
        "achievements": [],
        "quiz_scores": [],
        "total_coding_time": 0,
        "created_at": now,
        "updated_at": now
    }

async def get_progress(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return serialize_mongo(await db.user_progress.find_one({"user_id": user_id}))

async def get_or_create_progress(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    """Progress records are created lazily on first access"""
    progress = await get_progress(db, user_id)
    if progress:
        return progress

    logger.info(f"Creating progress record for user {user_id}")
    defaults = new_progress(user_id)
    defaults.pop("user_id")
    await db.user_progress.update_one(
        {"user_id": user_id},
        {"$setOnInsert": defaults},
        upsert=True
    )
    return await get_progress(db, user_id)

async def save_progress(db: AsyncIOMotorDatabase, progress: dict, fields: tuple = None) -> bool:
    """
    Write back an in-memory progress record.
    `fields` limits the write to the listed keys.
    """
    keys = fields or (
        "completed_lessons", "completed_challenges", "current_lesson",
        "achievements", "quiz_scores", "total_coding_time"
    )
    updates = {key: progress.get(key) for key in keys}
    updates["updated_at"] = datetime.utcnow()

    result = await db.user_progress.update_one(
        {"user_id": progress["user_id"]},
        {"$set": updates}
    )
    return result.matched_count > 0

async def add_completed_lesson(db: AsyncIOMotorDatabase, user_id: str, lesson_id: str) -> bool:
    """
    Record a completed lesson once.
    Returns False when the lesson was already completed.
    """
    await get_or_create_progress(db, user_id)
    result = await db.user_progress.update_one(
        {"user_id": user_id, "completed_lessons.lesson_id": {"$ne": lesson_id}},
        {
            "$push": {"completed_lessons": {"lesson_id": lesson_id, "completed_at": datetime.utcnow()}},
            "$set": {"updated_at": datetime.utcnow()}
        }
    )
    return result.modified_count > 0

async def add_completed_challenge(db: AsyncIOMotorDatabase, user_id: str, challenge_id: str) -> bool:
    await get_or_create_progress(db, user_id)
    result = await db.user_progress.update_one(
        {"user_id": user_id, "completed_challenges.challenge_id": {"$ne": challenge_id}},
        {
            "$push": {"completed_challenges": {"challenge_id": challenge_id, "completed_at": datetime.utcnow()}},
            "$set": {"updated_at": datetime.utcnow()}
        }
    )
    return result.modified_count > 0

async def add_coding_time(db: AsyncIOMotorDatabase, user_id: str, minutes: int) -> int:
    """Add tracked minutes and return the new total"""
    await get_or_create_progress(db, user_id)
    await db.user_progress.update_one(
        {"user_id": user_id},
        {"$inc": {"total_coding_time": minutes}, "$set": {"updated_at": datetime.utcnow()}}
    )
    progress = await get_progress(db, user_id)
    return progress.get("total_coding_time", 0)

# ==================== QUIZ ATTEMPT LOG ====================

async def create_quiz_attempt(db: AsyncIOMotorDatabase, attempt_data: dict) -> dict:
    """Append an attempt to the log. Attempts are never updated afterwards."""
    now = datetime.utcnow()
    attempt = {
        "attempt_id": generate_id("ATT"),
        "user_id": attempt_data["user_id"],
        "quiz_id": attempt_data["quiz_id"],
        "course_id": attempt_data.get("course_id"),
        "answers": attempt_data.get("answers", []),
        "score": attempt_data["score"],
        "max_score": attempt_data.get("max_score", 100),
        "completed": attempt_data.get("completed", True),
        "xp_earned": attempt_data.get("xp_earned", 0),
        "completed_at": now,
        "created_at": now
    }
    await db.quiz_attempts.insert_one(attempt)
    return serialize_mongo(attempt)

async def get_completed_attempts(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    """Completed attempts of a user, oldest first"""
    cursor = db.quiz_attempts.find({"user_id": user_id, "completed": True}).sort("completed_at", 1)
    return serialize_many(await cursor.to_list(length=None))

async def get_latest_attempt(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Optional[dict]:
    return serialize_mongo(await db.quiz_attempts.find_one(
        {"user_id": user_id, "course_id": course_id},
        sort=[("created_at", -1)]
    ))

# ==================== ACHIEVEMENT CATALOG ====================

async def get_all_achievements(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db.achievements.find({}).sort([("category", 1), ("target_value", 1)])
    return serialize_many(await cursor.to_list(length=None))

async def upsert_achievement_definitions(db: AsyncIOMotorDatabase, definitions: dict) -> int:
    """
    Upsert catalog entries keyed by `code`.
    Missing entries are inserted; existing ones get their definition fields refreshed
    and keep their achievement_id so user progress stays attached.
    Returns the number of inserted definitions.
    """
    inserted = 0
    for code, data in definitions.items():
        result = await db.achievements.update_one(
            {"code": code},
            {
                "$set": {**data, "code": code},
                "$setOnInsert": {"achievement_id": generate_id("ACH")}
            },
            upsert=True
        )
        if result.upserted_id is not None:
            inserted += 1
    return inserted
