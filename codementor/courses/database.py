from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import uuid


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"

def serialize_mongo(doc: dict) -> dict:
    if doc is not None:
        doc.pop("_id", None)
    return doc

def serialize_many(docs: list[dict]) -> list[dict]:
    return [serialize_mongo(doc) for doc in docs]

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict) -> dict:
    """Create new course with an empty lesson list"""
    course = {
        "course_id": generate_id("COURSE"),
        "title": course_data["title"],
        "description": course_data["description"],
        "difficulty": course_data["difficulty"],
        "tags": course_data.get("tags", []),
        "lessons": [],
        "created_at": datetime.utcnow()
    }

    await db.courses.insert_one(course)
    return serialize_mongo(course)

async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Get course by ID"""
    return serialize_mongo(await db.courses.find_one({"course_id": course_id}))

async def list_courses(db: AsyncIOMotorDatabase, filters: dict = None, limit: int = 100) -> List[dict]:
    """List courses, newest first"""
    query = {}
    filters = filters or {}
    if filters.get("difficulty"):
        query["difficulty"] = filters["difficulty"]
    if filters.get("tag"):
        query["tags"] = filters["tag"]

    cursor = db.courses.find(query).sort("created_at", -1).limit(limit)
    return serialize_many(await cursor.to_list(length=limit))

# ==================== LESSON CRUD ====================

async def create_lesson(db: AsyncIOMotorDatabase, lesson_data: dict) -> dict:
    """
    Create a lesson and append it to its course.
    Lessons without an explicit order go to the end of the course.
    """
    course_id = lesson_data["course_id"]
    order = lesson_data.get("order")
    if order is None:
        order = await db.lessons.count_documents({"course_id": course_id})

    lesson = {
        "lesson_id": generate_id("LES"),
        "course_id": course_id,
        "title": lesson_data["title"],
        "topic": lesson_data["topic"],
        "duration": lesson_data["duration"],
        "content": lesson_data.get("content", []),
        "order": order,
        "created_at": datetime.utcnow()
    }

    await db.lessons.insert_one(lesson)
    await db.courses.update_one(
        {"course_id": course_id},
        {"$push": {"lessons": lesson["lesson_id"]}}
    )
    return serialize_mongo(lesson)

async def get_lesson(db: AsyncIOMotorDatabase, lesson_id: str) -> Optional[dict]:
    return serialize_mongo(await db.lessons.find_one({"lesson_id": lesson_id}))

async def get_course_lessons(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    """Get lessons of a course in display order"""
    cursor = db.lessons.find({"course_id": course_id}).sort("order", 1)
    return serialize_many(await cursor.to_list(length=None))

async def get_recommended_lesson(db: AsyncIOMotorDatabase) -> Optional[dict]:
    """First lesson of the newest beginner course, falling back to any lesson"""
    course = await db.courses.find_one(
        {"difficulty": "Beginner", "lessons": {"$ne": []}},
        sort=[("created_at", -1)]
    )
    if course:
        lesson = await db.lessons.find_one({"course_id": course["course_id"]}, sort=[("order", 1)])
        if lesson:
            return serialize_mongo(lesson)
    return serialize_mongo(await db.lessons.find_one({}, sort=[("order", 1)]))

# ==================== QUIZ CRUD ====================

async def create_quiz(db: AsyncIOMotorDatabase, quiz_data: dict) -> dict:
    quiz = {
        "quiz_id": generate_id("QUIZ"),
        "course_id": quiz_data["course_id"],
        "questions": quiz_data["questions"],
        "xp_reward": quiz_data.get("xp_reward", 100),
        "created_at": datetime.utcnow()
    }
    await db.quizzes.insert_one(quiz)
    return serialize_mongo(quiz)

async def get_quiz(db: AsyncIOMotorDatabase, quiz_id: str) -> Optional[dict]:
    return serialize_mongo(await db.quizzes.find_one({"quiz_id": quiz_id}))

async def get_course_quiz(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return serialize_mongo(await db.quizzes.find_one({"course_id": course_id}))

# ==================== CHALLENGE CRUD ====================

async def create_challenge(db: AsyncIOMotorDatabase, challenge_data: dict) -> dict:
    challenge = {
        "challenge_id": generate_id("CHL"),
        "title": challenge_data["title"],
        "description": challenge_data["description"],
        "difficulty": challenge_data["difficulty"],
        "xp": challenge_data["xp"],
        "tags": challenge_data.get("tags", []),
        "created_at": datetime.utcnow()
    }
    await db.challenges.insert_one(challenge)
    return serialize_mongo(challenge)

async def get_challenge(db: AsyncIOMotorDatabase, challenge_id: str) -> Optional[dict]:
    return serialize_mongo(await db.challenges.find_one({"challenge_id": challenge_id}))

async def get_recommended_challenges(db: AsyncIOMotorDatabase, exclude_ids: List[str], limit: int = 2) -> List[dict]:
    """Challenges the user has not completed yet"""
    cursor = db.challenges.find({"challenge_id": {"$nin": exclude_ids}}).limit(limit)
    return serialize_many(await cursor.to_list(length=limit))

# ==================== COMPLETION ====================

async def count_completed_courses(db: AsyncIOMotorDatabase, completed_lesson_ids: List[str]) -> int:
    """Courses that have lessons and whose lessons are all in `completed_lesson_ids`"""
    if not completed_lesson_ids:
        return 0
    completed = set(completed_lesson_ids)
    cursor = db.courses.find({"lessons": {"$ne": []}}, {"course_id": 1, "lessons": 1})
    count = 0
    for course in await cursor.to_list(length=None):
        lessons = course.get("lessons") or []
        if lessons and all(lesson_id in completed for lesson_id in lessons):
            count += 1
    return count
