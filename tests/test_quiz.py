from course_tutor.models import Question
from course_tutor.quiz import (
    PASS_PERCENTAGE, get_quiz_questions, is_correct, is_passing, record_quiz_result, score_answers,
    score_percentage,
)


def _q(correct_index, order=1):
    return Question(id=f"q{order}", lesson_id="l1", text="?", options=["a", "b", "c", "d"],
                    correct_index=correct_index, order=order)


def test_is_correct():
    assert is_correct(_q(1), 1)
    assert not is_correct(_q(1), 0)


def test_score_answers():
    questions = [_q(0, 1), _q(1, 2), _q(2, 3)]
    assert score_answers(questions, [0, 1, 3]) == 2
    assert score_answers(questions, [0]) == 1
    assert score_answers([], []) == 0


def test_score_percentage():
    assert score_percentage(3, 4) == 75
    assert score_percentage(2, 3) == 67
    assert score_percentage(0, 0) == 0


def test_is_passing():
    assert PASS_PERCENTAGE == 70
    assert is_passing(7, 10)
    assert not is_passing(2, 3)
    assert not is_passing(0, 0)


async def test_get_quiz_questions_ordered(store):
    for order in (2, 1):
        await store.add_question(lesson_id="l1", text=f"Q{order}", options=["a", "b", "c", "d"],
                                 correct_index=0, order=order)
    assert [q.text for q in await get_quiz_questions(store, "l1")] == ["Q1", "Q2"]


async def test_get_quiz_questions_empty(store):
    assert await get_quiz_questions(store, "none") == []


async def test_record_quiz_result(store):
    progress = await record_quiz_result(store, "l1", 1)
    assert progress.completed is True
    assert progress.quiz_score == 1
    assert progress.completed_at > 0
    assert await store.get_progress("l1") == progress


async def test_record_quiz_result_replaces_previous_score(store):
    await record_quiz_result(store, "l1", 1)
    await record_quiz_result(store, "l1", 3)
    assert (await store.get_progress("l1")).quiz_score == 3
