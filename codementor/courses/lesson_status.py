from typing import List, Optional


def completed_lesson_ids(progress: Optional[dict]) -> set:
    if not progress:
        return set()
    return {entry["lesson_id"] for entry in progress.get("completed_lessons") or []}


def lesson_progress(progress: Optional[dict], lesson_id: str) -> dict:
    """Completion flag and fractional progress of one lesson for a user"""
    completed = lesson_id in completed_lesson_ids(progress)
    current = (progress or {}).get("current_lesson") or {}

    if current.get("lesson_id") == lesson_id:
        value = current.get("progress", 0)
    else:
        value = 1 if completed else 0

    return {"completed": completed, "progress": value}


def is_accessible(course_lessons: List[dict], lesson_id: str, progress: Optional[dict]) -> bool:
    """The first lesson is always open, later ones need the previous lesson completed"""
    ids = [lesson["lesson_id"] for lesson in course_lessons]
    if lesson_id not in ids:
        return False

    index = ids.index(lesson_id)
    if index == 0:
        return True
    return ids[index - 1] in completed_lesson_ids(progress)
