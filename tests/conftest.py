import os
import tempfile
from uuid import uuid4

# Settings are read at import time
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="codementor-logs-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from codementor.main import app
from codementor.app import ensure_achievement_catalog
from codementor.auth.auth_utils import create_access_token, hash_password
from codementor.auth.dependencies import get_db
from codementor.courses.database import create_course, create_lesson, create_quiz
from codementor.progress.database import create_user, get_all_achievements


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"codementor_test_{uuid4().hex[:8]}"]


@pytest.fixture
async def client(db):
    app.dependency_overrides[get_db] = lambda: db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
async def user(db) -> dict:
    return await create_user(db, "Ada", "ada@example.com", hash_password("secret123"))


@pytest.fixture
def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user['user_id'])}"}


@pytest.fixture
async def catalog(db) -> dict:
    """Default catalog keyed by code"""
    await ensure_achievement_catalog(db)
    return {a["code"]: a for a in await get_all_achievements(db)}


@pytest.fixture
def make_course(db):
    """Create a course with `lessons` lessons of `duration` minutes each"""
    async def _make(lessons: int = 2, duration: int = 10, difficulty: str = "Beginner", tags=None) -> dict:
        course = await create_course(db, {
            "title": "Python Basics",
            "description": "Variables, loops and functions",
            "difficulty": difficulty,
            "tags": tags or ["python"]
        })
        course["lessons"] = [
            await create_lesson(db, {
                "course_id": course["course_id"],
                "title": f"Lesson {i + 1}",
                "topic": "python",
                "duration": duration
            })
            for i in range(lessons)
        ]
        return course
    return _make


@pytest.fixture
def make_quiz(db):
    """Create a quiz whose correct answer is always option 0"""
    async def _make(course_id: str, questions: int = 10, xp_reward: int = 100) -> dict:
        return await create_quiz(db, {
            "course_id": course_id,
            "questions": [
                {"question": f"Q{i + 1}", "options": ["right", "wrong"], "correct_answer": 0}
                for i in range(questions)
            ],
            "xp_reward": xp_reward
        })
    return _make
