"""Lesson viewing and completion tracking."""
from course_tutor.models import Progress
from course_tutor.storage import LessonStore, now_ms


async def get_lesson_view(store: LessonStore, lesson_id: str) -> dict | None:
    lesson = await store.get_lesson(lesson_id)
    if lesson is None:
        return None
    questions = await store.list_questions(lesson_id)
    games = await store.list_games(lesson_id)
    return {
        "lesson": lesson,
        "has_quiz": len(questions) > 0,
        "has_game": len(games) > 0,
        "progress": await store.get_progress(lesson_id),
    }


async def mark_lesson_complete(store: LessonStore, lesson_id: str) -> Progress:
    progress = Progress(lesson_id=lesson_id, completed=True, completed_at=now_ms())
    await store.set_progress(progress)
    return progress
