from codementor.courses.quiz_router import is_passing, score_answers
from codementor.progress.database import get_completed_attempts, get_user

QUESTIONS = [{"question": f"Q{i}", "options": ["a", "b"], "correct_answer": 0} for i in range(10)]


def test_seven_of_ten_passes() -> None:
    score, correct = score_answers(QUESTIONS, [0] * 7 + [1] * 3)
    assert (score, correct) == (70, 7)
    assert is_passing(score) is True


def test_six_of_ten_fails() -> None:
    score, _ = score_answers(QUESTIONS, [0] * 6 + [1] * 4)
    assert score == 60
    assert is_passing(score) is False


def test_missing_answers_count_as_wrong() -> None:
    score, correct = score_answers(QUESTIONS, [0, 0, None])
    assert correct == 2
    assert score == 20


async def test_quiz_is_served_without_answers(client, auth_headers, make_course, make_quiz) -> None:
    course = await make_course()
    await make_quiz(course["course_id"], questions=3)

    response = await client.get(f"/api/quiz/course/{course['course_id']}", headers=auth_headers)
    missing = await client.get("/api/quiz/course/COURSE_NONE", headers=auth_headers)

    assert response.status_code == 200
    assert all("correct_answer" not in q for q in response.json()["questions"])
    assert missing.status_code == 404


async def test_passing_submission_credits_xp(client, db, user, auth_headers, catalog, make_course, make_quiz) -> None:
    course = await make_course()
    quiz = await make_quiz(course["course_id"], xp_reward=100)

    response = await client.post("/api/quiz/submit", headers=auth_headers, json={
        "quiz_id": quiz["quiz_id"], "course_id": course["course_id"], "answers": [0] * 7 + [1] * 3
    })

    body = response.json()
    assert body["passed"] is True
    assert body["score"] == 70
    assert body["xp_earned"] == 100
    stored = await get_user(db, user["user_id"])
    assert stored["xp"] == 100 + catalog["quiz_taker"]["xp_reward"]


async def test_failing_submission_is_logged_and_reconciled(client, db, user, auth_headers, catalog, make_course, make_quiz) -> None:
    course = await make_course()
    quiz = await make_quiz(course["course_id"])

    response = await client.post("/api/quiz/submit", headers=auth_headers, json={
        "quiz_id": quiz["quiz_id"], "answers": [1] * 10
    })

    assert response.json()["passed"] is False
    assert response.json()["xp_earned"] == 0
    attempts = await get_completed_attempts(db, user["user_id"])
    assert [a["score"] for a in attempts] == [0]
    assert attempts[0]["course_id"] == course["course_id"]
    # "Quiz Taker" counts failed attempts too
    stored = await get_user(db, user["user_id"])
    assert stored["xp"] == catalog["quiz_taker"]["xp_reward"]

    status = await client.get(f"/api/quiz/status/{course['course_id']}", headers=auth_headers)
    assert status.json()["completed"] is True
    assert status.json()["passed"] is False


async def test_submission_survives_reconciler_failure(client, db, user, auth_headers, make_course, make_quiz, monkeypatch) -> None:
    from codementor.progress import reconciler

    async def broken(_db, _user_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(reconciler, "update_achievements", broken)
    course = await make_course()
    quiz = await make_quiz(course["course_id"])

    response = await client.post("/api/quiz/submit", headers=auth_headers, json={
        "quiz_id": quiz["quiz_id"], "answers": [0] * 10
    })

    assert response.status_code == 200
    assert response.json()["passed"] is True


async def test_create_quiz_validates_answer_index(client, auth_headers, make_course) -> None:
    course = await make_course()
    response = await client.post("/api/quiz/", headers=auth_headers, json={
        "course_id": course["course_id"],
        "questions": [{"question": "Q", "options": ["a", "b"], "correct_answer": 5}]
    })
    assert response.status_code == 400
