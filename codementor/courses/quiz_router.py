from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List, Optional, Tuple
import logging

from codementor.config import QUIZ_PASS_THRESHOLD
from codementor.courses.models import QuizCreate, QuizSubmission
from codementor.courses.database import create_quiz, get_quiz, get_course_quiz, get_course
from codementor.progress.database import (
    create_quiz_attempt, get_latest_attempt, get_user, save_user_progression
)
from codementor.progress.leveling import award_xp
from codementor.progress.reconciler import reconcile_quietly
from codementor.auth.dependencies import get_db, get_current_user_id

router = APIRouter(tags=["Quiz"])
logger = logging.getLogger(__name__)

# ==================== SCORING ====================

def score_answers(questions: List[dict], answers: List[Optional[int]]) -> Tuple[float, int]:
    """
    Compare answers by position with each question's correct option.
    Missing answers count as wrong. Returns (score out of 100, correct count).
    """
    if not questions:
        return 0.0, 0

    correct = 0
    for index, question in enumerate(questions):
        if index < len(answers) and answers[index] == question.get("correct_answer"):
            correct += 1

    return correct / len(questions) * 100, correct


def is_passing(score: float) -> bool:
    return score >= QUIZ_PASS_THRESHOLD


def public_quiz(quiz: dict) -> dict:
    """Quiz as shown to a learner, without the correct answers"""
    return {
        **quiz,
        "questions": [
            {"question": q["question"], "options": q["options"]}
            for q in quiz.get("questions", [])
        ]
    }

# ==================== ROUTES ====================

@router.get("/course/{course_id}")
async def get_quiz_for_course(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    quiz = await get_course_quiz(db, course_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return public_quiz(quiz)


@router.post("/", status_code=201)
async def create_new_quiz(
    data: QuizCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    if not await get_course(db, data.course_id):
        raise HTTPException(status_code=404, detail="Course not found")

    for index, question in enumerate(data.questions):
        if question.correct_answer >= len(question.options):
            raise HTTPException(
                status_code=400,
                detail=f"Question {index + 1}: correct_answer is out of range"
            )

    return await create_quiz(db, data.dict())


@router.post("/submit")
async def submit_quiz(
    submission: QuizSubmission,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """
    Score a quiz attempt. Every submission is logged as a completed attempt,
    passing ones also credit the quiz xp. Achievements are reconciled either way.
    """
    quiz = await get_quiz(db, submission.quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")

    score, correct = score_answers(quiz["questions"], submission.answers)
    passed = is_passing(score)
    xp_earned = quiz.get("xp_reward", 0) if passed else 0

    await create_quiz_attempt(db, {
        "user_id": user_id,
        "quiz_id": quiz["quiz_id"],
        "course_id": submission.course_id or quiz.get("course_id"),
        "answers": submission.answers,
        "score": score,
        "completed": True,
        "xp_earned": xp_earned
    })

    levels_gained = 0
    if passed:
        user = await get_user(db, user_id)
        levels_gained = award_xp(user, xp_earned)
        await save_user_progression(db, user)

    logger.info(f"User {user_id} scored {score:.1f} on quiz {quiz['quiz_id']} (passed={passed})")
    await reconcile_quietly(db, user_id, "quiz submission")

    return {
        "success": passed,
        "passed": passed,
        "score": score,
        "correct_answers": correct,
        "total_questions": len(quiz["questions"]),
        "xp_earned": xp_earned,
        "levels_gained": levels_gained,
        "message": "Quiz completed successfully!" if passed
                   else "Quiz completed, but score was too low to pass. Try again!"
    }


@router.get("/status/{course_id}")
async def get_quiz_status(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    latest = await get_latest_attempt(db, user_id, course_id)
    if not latest:
        return {"completed": False, "passed": False}

    return {"completed": True, "passed": is_passing(latest["score"]), "score": latest["score"]}
