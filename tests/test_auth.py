from datetime import datetime, timedelta

import jwt

from codementor.auth.auth_utils import create_access_token, hash_password, verify_password
from codementor.config import JWT_ALGORITHM, JWT_SECRET
from codementor.progress.database import get_progress, get_user, update_user


def test_password_hashing() -> None:
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed) is True
    assert verify_password("wrong", hashed) is False
    assert verify_password("secret123", "not-a-hash") is False


async def test_register_creates_user_and_progress(client, db) -> None:
    response = await client.post("/api/auth/register", json={
        "name": "Grace", "email": "Grace@Example.com", "password": "hopper42"
    })

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "grace@example.com"
    assert (body["user"]["level"], body["user"]["xp"], body["user"]["streak"]) == (1, 0, 1)
    progress = await get_progress(db, body["user"]["id"])
    assert progress["completed_lessons"] == []


async def test_register_rejects_duplicate_email_and_short_password(client, user) -> None:
    duplicate = await client.post("/api/auth/register", json={
        "name": "Other", "email": "ada@example.com", "password": "secret123"
    })
    short = await client.post("/api/auth/register", json={
        "name": "Other", "email": "other@example.com", "password": "123"
    })

    assert duplicate.status_code == 400
    assert short.status_code == 400


async def test_login_wrong_password(client, user) -> None:
    response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope"})
    assert response.status_code == 401


async def test_login_next_day_increments_streak_and_reconciles(client, db, user, catalog) -> None:
    await update_user(db, user["user_id"], {
        "streak": 2,
        "last_login": datetime.utcnow() - timedelta(hours=24)
    })

    response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret123"})

    assert response.status_code == 200
    assert response.json()["user"]["streak"] == 3
    # "Getting Started" needs a 3-day streak
    assert response.json()["user"]["xp"] == catalog["getting_started"]["xp_reward"]


async def test_login_after_long_gap_resets_streak(client, db, user) -> None:
    await update_user(db, user["user_id"], {
        "streak": 9,
        "last_login": datetime.utcnow() - timedelta(days=3)
    })

    response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret123"})

    assert response.json()["user"]["streak"] == 1


async def test_check_streak_uses_login_window(client, db, user, auth_headers) -> None:
    response = await client.post("/api/auth/check-streak", headers=auth_headers)
    assert response.json() == {"streakUpdated": False, "streak": 1, "outcome": "unchanged"}

    await update_user(db, user["user_id"], {"last_login": datetime.utcnow() - timedelta(hours=21)})
    response = await client.post("/api/auth/check-streak", headers=auth_headers)
    assert response.json()["streak"] == 2
    assert response.json()["outcome"] == "incremented"


async def test_missing_and_bad_tokens(client, user) -> None:
    missing = await client.get("/api/auth/me")
    bad = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    expired_token = jwt.encode(
        {"user_id": user["user_id"], "exp": datetime.utcnow() - timedelta(minutes=1)},
        JWT_SECRET, algorithm=JWT_ALGORITHM
    )
    expired = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired_token}"})
    unknown = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {create_access_token('USR_GONE')}"}
    )

    assert missing.status_code == 401
    assert missing.json()["detail"]["code"] == "AUTH_REQUIRED"
    assert bad.json()["detail"]["code"] == "INVALID_TOKEN"
    assert expired.json()["detail"]["code"] == "TOKEN_EXPIRED"
    assert unknown.json()["detail"]["code"] == "USER_NOT_FOUND"


async def test_profile_and_password_updates(client, db, user, auth_headers) -> None:
    await client.post("/api/auth/register", json={
        "name": "Taken", "email": "taken@example.com", "password": "secret123"
    })

    clash = await client.put("/api/auth/profile", headers=auth_headers, json={"email": "taken@example.com"})
    renamed = await client.put("/api/auth/profile", headers=auth_headers, json={"name": "Ada L."})
    wrong = await client.put("/api/auth/password", headers=auth_headers, json={
        "current_password": "nope", "new_password": "another1"
    })
    changed = await client.put("/api/auth/password", headers=auth_headers, json={
        "current_password": "secret123", "new_password": "another1"
    })

    assert clash.status_code == 400
    assert renamed.json()["user"]["name"] == "Ada L."
    assert wrong.status_code == 401
    assert changed.status_code == 200
    stored = await get_user(db, user["user_id"])
    assert verify_password("another1", stored["password_hash"])
