"""Quiz scoring for lesson questions."""
from course_tutor.models import Progress, Question
from course_tutor.storage import LessonStore, now_ms

PASS_PERCENTAGE = 70


async def get_quiz_questions(store: LessonStore, lesson_id: str) -> list[Question]:
    return await store.list_questions(lesson_id)


def is_correct(question: Question, choice: int) -> bool:
    return choice == question.correct_index


def score_answers(questions: list[Question], answers: list[int]) -> int:
    """Count correct answers; unanswered trailing questions score nothing."""
    return sum(1 for q, a in zip(questions, answers) if is_correct(q, a))


def score_percentage(score: int, total: int) -> int:
    if total == 0:
        return 0
    return round(score / total * 100)


def is_passing(score: int, total: int) -> bool:
    return score_percentage(score, total) >= PASS_PERCENTAGE


async def record_quiz_result(store: LessonStore, lesson_id: str, score: int) -> Progress:
    """Mark the lesson complete with its quiz score, replacing earlier progress."""
    progress = Progress(lesson_id=lesson_id, completed=True, quiz_score=score, completed_at=now_ms())
    await store.set_progress(progress)
    return progress
