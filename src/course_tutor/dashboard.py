"""Course progress overview."""
from course_tutor.storage import LessonStore


def get_progress_label(ratio: float) -> str:
    if ratio >= 1:
        return "COMPLETED"
    elif ratio >= 0.5:
        return "HALFWAY"
    elif ratio > 0:
        return "STARTED"
    return "NOT STARTED"


def get_progress_color(ratio: float) -> str:
    if ratio >= 1:
        return "green"
    elif ratio >= 0.5:
        return "yellow"
    elif ratio > 0:
        return "dark_orange"
    return "red"


async def get_course_overview(store: LessonStore, course_id: str) -> dict | None:
    """Lessons of a course with their progress and content counts."""
    course = await store.get_course(course_id)
    if course is None:
        return None
    progress = {p.lesson_id: p for p in await store.list_progress_for_course(course_id)}
    rows = []
    for lesson in await store.list_lessons(course_id):
        rows.append({
            "lesson": lesson,
            "progress": progress.get(lesson.id),
            "question_count": len(await store.list_questions(lesson.id)),
            "game_count": len(await store.list_games(lesson.id)),
        })
    completed = sum(1 for r in rows if r["progress"] is not None and r["progress"].completed)
    return {
        "course": course,
        "lessons": rows,
        "completed": completed,
        "ratio": completed / len(rows) if rows else 0.0,
    }
