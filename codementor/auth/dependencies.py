from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codementor.auth.auth_utils import verify_bearer_token, auth_error
from codementor.progress.database import get_user

def get_db_instance():
    """Get database from main module"""
    from codementor.main import db
    return db

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()

async def get_current_user(
    payload: dict = Depends(verify_bearer_token),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> dict:
    """Resolve the bearer token to the stored user record"""
    user = await get_user(db, payload["user_id"])
    if not user:
        raise auth_error("USER_NOT_FOUND", "User not found")
    return user

async def get_current_user_id(user: dict = Depends(get_current_user)) -> str:
    return user["user_id"]
