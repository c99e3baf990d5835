from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from typing import Optional
import logging

from codementor.courses.database import create_challenge, get_challenge
from codementor.courses.models import ChallengeCreate
from codementor.progress.database import (
    add_coding_time, add_completed_challenge, get_user, save_user_progression
)
from codementor.progress.leveling import award_xp
from codementor.progress.reconciler import reconcile_quietly
from codementor.auth.dependencies import get_db, get_current_user_id

router = APIRouter(tags=["Tracking"])
logger = logging.getLogger(__name__)


class TrackTimeRequest(BaseModel):
    minutes: Optional[float] = None


@router.post("/track-time")
async def track_time(
    data: TrackTimeRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    if data.minutes is None or data.minutes <= 0:
        raise HTTPException(status_code=400, detail="Invalid time value")

    total = await add_coding_time(db, user_id, data.minutes)
    await reconcile_quietly(db, user_id, "time tracking")

    return {"success": True, "total_coding_time": total}


@router.post("/challenges", status_code=201)
async def create_new_challenge(
    data: ChallengeCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    challenge = await create_challenge(db, data.dict())
    logger.info(f"Challenge {challenge['challenge_id']} created by {user_id}")
    return challenge


@router.post("/challenges/{challenge_id}/complete")
async def complete_challenge(
    challenge_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    challenge = await get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    xp_earned = 0
    levels_gained = 0
    newly_completed = await add_completed_challenge(db, user_id, challenge_id)

    if newly_completed:
        user = await get_user(db, user_id)
        xp_earned = challenge.get("xp", 0)
        levels_gained = award_xp(user, xp_earned)
        await save_user_progression(db, user)
        logger.info(f"User {user_id} completed challenge {challenge_id} (+{xp_earned} XP)")

        await reconcile_quietly(db, user_id, "challenge completion")

    return {
        "success": True,
        "already_completed": not newly_completed,
        "xp_earned": xp_earned,
        "levels_gained": levels_gained
    }
