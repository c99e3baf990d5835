import httpx

from codementor.main import app
from codementor.app import ensure_achievement_catalog
from codementor.auth.auth_utils import create_access_token
from codementor.auth.dependencies import get_db
from codementor.progress.achievements import ACHIEVEMENT_DEFINITIONS
from codementor.progress.database import get_all_achievements


async def test_catalog_upsert_is_idempotent(db) -> None:
    first = await ensure_achievement_catalog(db)
    ids = {a["code"]: a["achievement_id"] for a in await get_all_achievements(db)}

    second = await ensure_achievement_catalog(db)

    assert first == len(ACHIEVEMENT_DEFINITIONS)
    assert second == 0
    assert {a["code"]: a["achievement_id"] for a in await get_all_achievements(db)} == ids


async def test_catalog_upsert_refreshes_existing_definitions(db) -> None:
    await ensure_achievement_catalog(db)
    code = next(iter(ACHIEVEMENT_DEFINITIONS))
    before = await db.achievements.find_one({"code": code})
    await db.achievements.update_one({"code": code}, {"$set": {"xp_reward": 1}})

    assert await ensure_achievement_catalog(db) == 0

    after = await db.achievements.find_one({"code": code})
    assert after["xp_reward"] == ACHIEVEMENT_DEFINITIONS[code]["xp_reward"]
    assert after["achievement_id"] == before["achievement_id"]


async def test_unhandled_errors_become_server_error_responses() -> None:
    def broken_db():
        raise RuntimeError("database unreachable")

    app.dependency_overrides[get_db] = broken_db
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            response = await http.get(
                "/api/courses/", headers={"Authorization": f"Bearer {create_access_token('USR_ANY')}"}
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Server error", "message": "database unreachable"}
