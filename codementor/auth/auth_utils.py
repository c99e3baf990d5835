# codementor/auth/auth_utils.py
import jwt
import bcrypt
from datetime import datetime, timedelta
from fastapi import Header, HTTPException

from codementor.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_DAYS


def auth_error(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"error": message, "code": code})


# ==================== PASSWORDS ====================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ==================== TOKENS ====================

def create_access_token(user_id: str) -> str:
    now = datetime.utcnow()
    payload = {
        "user_id": user_id,
        "iat": now,
        "exp": now + timedelta(days=JWT_EXPIRES_DAYS)
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise auth_error("TOKEN_EXPIRED", "Token expired")
    except jwt.InvalidTokenError:
        raise auth_error("INVALID_TOKEN", "Invalid token")


def verify_bearer_token(authorization: str = Header(None)) -> dict:
    """Decode the bearer token of a request and return its payload"""
    if not authorization or not authorization.startswith("Bearer "):
        raise auth_error("AUTH_REQUIRED", "Authentication required")

    token = authorization.split(" ", 1)[1].strip()
    payload = decode_access_token(token)
    if not payload.get("user_id"):
        raise auth_error("INVALID_TOKEN", "Invalid token")
    return payload
