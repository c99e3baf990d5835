import pytest

from codementor.progress import reconciler
from codementor.progress.database import (
    add_coding_time,
    add_completed_lesson,
    create_quiz_attempt,
    get_progress,
    get_user,
    save_progress,
    update_user,
)
from codementor.progress.reconciler import reconcile_quietly, update_achievements


def _entries(progress: dict, catalog: dict) -> dict:
    """Progress entries keyed by achievement code"""
    by_id = {a["achievement_id"]: code for code, a in catalog.items()}
    return {by_id[e["achievement_id"]]: e for e in progress["achievements"]}


async def _log_attempts(db, user_id: str, scores) -> None:
    for score in scores:
        await create_quiz_attempt(db, {"user_id": user_id, "quiz_id": "QUIZ_X", "course_id": "COURSE_X", "score": score})


async def test_missing_user_is_a_noop(db, catalog) -> None:
    assert await update_achievements(db, "USR_MISSING") is None
    assert await get_progress(db, "USR_MISSING") is None


async def test_first_lesson_awards_first_steps_once(db, user, catalog) -> None:
    await add_completed_lesson(db, user["user_id"], "LES_1")

    result = await update_achievements(db, user["user_id"])

    assert [a["title"] for a in result["newly_earned"]] == ["First Steps"]
    assert result["xp_awarded"] == 25
    stored = await get_user(db, user["user_id"])
    assert stored["xp"] == 25
    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["first_steps"]["earned"] is True
    assert entries["first_steps"]["earned_at"] is not None
    assert entries["knowledge_seeker"]["earned"] is False
    assert entries["knowledge_seeker"]["progress"] == 1


async def test_second_run_changes_nothing(db, user, catalog) -> None:
    await add_completed_lesson(db, user["user_id"], "LES_1")
    await _log_attempts(db, user["user_id"], [100, 80, 60])

    await update_achievements(db, user["user_id"])
    user_after_first = await get_user(db, user["user_id"])
    progress_after_first = await get_progress(db, user["user_id"])

    result = await update_achievements(db, user["user_id"])
    user_after_second = await get_user(db, user["user_id"])
    progress_after_second = await get_progress(db, user["user_id"])

    assert result == {"newly_earned": [], "xp_awarded": 0, "levels_gained": 0}
    assert user_after_second["xp"] == user_after_first["xp"]
    assert user_after_second["level"] == user_after_first["level"]
    first = _entries(progress_after_first, catalog)
    second = _entries(progress_after_second, catalog)
    for code in first:
        assert second[code]["earned"] == first[code]["earned"]
        assert second[code]["earned_at"] == first[code]["earned_at"]
        assert second[code]["progress"] == first[code]["progress"]


async def test_quiz_average_boundary_is_inclusive(db, user, catalog) -> None:
    await _log_attempts(db, user["user_id"], [100, 80, 60])

    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["sharp_mind"]["progress"] == 80
    assert entries["sharp_mind"]["earned"] is True
    assert entries["quiz_taker"]["progress"] == 3
    assert entries["perfect_score"]["progress"] == 1


async def test_near_perfect_score_counts_as_perfect(db, user, catalog) -> None:
    await _log_attempts(db, user["user_id"], [99.6])

    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["perfect_score"]["earned"] is True


async def test_failing_attempts_still_count_as_completed(db, user, catalog) -> None:
    await _log_attempts(db, user["user_id"], [10])

    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["quiz_taker"]["earned"] is True
    assert entries["perfect_score"]["earned"] is False


async def test_quiz_scores_are_rebuilt_from_the_log(db, user, catalog) -> None:
    progress = await get_progress(db, user["user_id"])
    progress["quiz_scores"] = [{"quiz_id": "QUIZ_STALE", "score": 5, "max_score": 100, "completed_at": None}]
    await save_progress(db, progress, fields=("quiz_scores",))
    await _log_attempts(db, user["user_id"], [90, 40])

    await update_achievements(db, user["user_id"])

    scores = (await get_progress(db, user["user_id"]))["quiz_scores"]
    assert [(s["quiz_id"], s["score"]) for s in scores] == [("QUIZ_X", 90), ("QUIZ_X", 40)]


async def test_reward_goes_through_level_up(db, user, catalog) -> None:
    await update_user(db, user["user_id"], {"xp": 990})
    await add_completed_lesson(db, user["user_id"], "LES_1")

    result = await update_achievements(db, user["user_id"])

    stored = await get_user(db, user["user_id"])
    assert result["levels_gained"] == 1
    assert (stored["level"], stored["xp"]) == (2, 15)


async def test_earned_flag_survives_lower_progress(db, user, catalog) -> None:
    await add_completed_lesson(db, user["user_id"], "LES_1")
    await update_achievements(db, user["user_id"])
    xp_after_award = (await get_user(db, user["user_id"]))["xp"]

    progress = await get_progress(db, user["user_id"])
    progress["completed_lessons"] = []
    await save_progress(db, progress, fields=("completed_lessons",))
    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["first_steps"]["earned"] is True
    assert entries["first_steps"]["progress"] == 0
    assert (await get_user(db, user["user_id"]))["xp"] == xp_after_award


async def test_completed_course_and_coding_hours(db, user, catalog, make_course) -> None:
    course = await make_course(lessons=2)
    for lesson in course["lessons"]:
        await add_completed_lesson(db, user["user_id"], lesson["lesson_id"])
    await add_coding_time(db, user["user_id"], 570)

    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["course_graduate"]["earned"] is True
    assert entries["coding_enthusiast"]["progress"] == 10
    assert entries["coding_enthusiast"]["earned"] is True


async def test_partially_completed_course_does_not_count(db, user, catalog, make_course) -> None:
    course = await make_course(lessons=2)
    await add_completed_lesson(db, user["user_id"], course["lessons"][0]["lesson_id"])

    await update_achievements(db, user["user_id"])

    entries = _entries(await get_progress(db, user["user_id"]), catalog)
    assert entries["course_graduate"]["progress"] == 0


async def test_unknown_requirement_does_not_break_the_run(db, user, catalog) -> None:
    await db.achievements.insert_one({
        "achievement_id": "ACH_CUSTOM",
        "code": "social_butterfly",
        "title": "Social Butterfly",
        "target_value": 1,
        "xp_reward": 10,
        "requirement": "friendsInvited"
    })
    await add_completed_lesson(db, user["user_id"], "LES_1")

    result = await update_achievements(db, user["user_id"])

    assert "Social Butterfly" not in [a["title"] for a in result["newly_earned"]]
    progress = await get_progress(db, user["user_id"])
    custom = [e for e in progress["achievements"] if e["achievement_id"] == "ACH_CUSTOM"]
    assert custom == [{"achievement_id": "ACH_CUSTOM", "progress": 0, "earned": False, "earned_at": None}]


async def test_errors_propagate_but_quiet_wrapper_logs(db, user, catalog, monkeypatch, caplog) -> None:
    async def broken_catalog(_db):
        raise RuntimeError("catalog unavailable")

    monkeypatch.setattr(reconciler, "get_all_achievements", broken_catalog)

    with pytest.raises(RuntimeError):
        await update_achievements(db, user["user_id"])

    assert await reconcile_quietly(db, user["user_id"], "test") is None
    assert "catalog unavailable" in caplog.text
