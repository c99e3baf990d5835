# codementor/auth/router.py

from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import logging

from codementor.config import MIN_PASSWORD_LENGTH
from codementor.auth.auth_utils import hash_password, verify_password, create_access_token
from codementor.auth.dependencies import get_db, get_current_user
from codementor.progress.database import (
    create_user, get_user, get_user_by_email, update_user, public_user
)
from codementor.progress.streak import apply_login_streak, StreakOutcome
from codementor.progress.reconciler import reconcile_quietly

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


def normalize_email(email: str) -> str:
    email = email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    return email


def check_password_strength(password: str):
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


# ==================== REGISTER / LOGIN ====================

@router.post("/register", status_code=201)
async def register(data: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    email = normalize_email(data.email)
    check_password_strength(data.password)

    if await get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="Email already in use")

    user = await create_user(db, data.name.strip(), email, hash_password(data.password))
    logger.info(f"Registered user {user['user_id']}")

    return {
        "token": create_access_token(user["user_id"]),
        "user": public_user(user)
    }


@router.post("/login")
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await get_user_by_email(db, data.email.strip().lower())
    if not user or not verify_password(data.password, user.get("password_hash")):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    outcome = apply_login_streak(user)
    await update_user(db, user["user_id"], {
        "streak": user["streak"],
        "last_login": user["last_login"]
    })

    if outcome == StreakOutcome.INCREMENTED:
        # Streak achievements may have been reached
        await reconcile_quietly(db, user["user_id"], "login")
        user = await get_user(db, user["user_id"])

    return {
        "token": create_access_token(user["user_id"]),
        "user": public_user(user)
    }


# ==================== ACCOUNT ====================

@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return {"user": {**public_user(user), "last_login": user.get("last_login")}}


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    updates = {}
    if data.name is not None and data.name.strip():
        updates["name"] = data.name.strip()

    if data.email is not None:
        email = normalize_email(data.email)
        if email != user.get("email"):
            existing = await get_user_by_email(db, email)
            if existing and existing["user_id"] != user["user_id"]:
                raise HTTPException(status_code=400, detail="Email already in use")
            updates["email"] = email

    if updates:
        await update_user(db, user["user_id"], updates)
        user = await get_user(db, user["user_id"])

    return {"user": public_user(user)}


@router.put("/password")
async def change_password(
    data: PasswordChange,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    if not verify_password(data.current_password, user.get("password_hash")):
        raise HTTPException(status_code=401, detail="Current password is incorrect")

    check_password_strength(data.new_password)
    await update_user(db, user["user_id"], {"password_hash": hash_password(data.new_password)})

    return {"message": "Password updated successfully"}


# ==================== STREAK ====================

@router.post("/check-streak")
async def check_streak(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Apply the login streak policy without issuing a new token"""
    previous = user.get("streak", 0)
    outcome = apply_login_streak(user, datetime.utcnow())
    await update_user(db, user["user_id"], {
        "streak": user["streak"],
        "last_login": user["last_login"]
    })

    if outcome == StreakOutcome.INCREMENTED:
        await reconcile_quietly(db, user["user_id"], "streak check")

    return {
        "streakUpdated": user["streak"] != previous,
        "streak": user["streak"],
        "outcome": outcome.value
    }
