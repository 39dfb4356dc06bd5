"""Tests for the local document store."""
import json

import pytest

from course_tutor.db import get_item, set_item
from course_tutor.models import DialogueMessage, MemoryData, MemoryPair, Progress, WordOrderData
from course_tutor.storage import LESSONS, LessonStore, SerializationError


async def _course(store, title="C"):
    return await store.add_course(title=title, description="", color="#0A8F8F", icon="code-slash")


async def _lesson(store, course_id, title="L", order=None):
    if order is None:
        order = await store.next_lesson_order(course_id)
    return await store.add_lesson(course_id=course_id, title=title, type="dialogue", order=order,
                                  content=[DialogueMessage("1", "robot", "Hello")])


async def _question(store, lesson_id, text="Q", correct_index=1):
    order = await store.next_question_order(lesson_id)
    return await store.add_question(lesson_id=lesson_id, text=text, options=["a", "b", "c", "d"],
                                    correct_index=correct_index, order=order)


async def _game(store, lesson_id):
    return await store.add_game(lesson_id=lesson_id, type="word-order", title="Order",
                                data=WordOrderData(sentence="a b c", words=["c", "b", "a"]))


# --- Courses ---


async def test_empty_store_lists_nothing(store):
    assert await store.list_courses() == []
    assert await store.list_lessons("missing") == []
    assert await store.get_course("missing") is None


async def test_add_course_assigns_id_and_defaults(store):
    course = await _course(store, "Math")
    assert course.id
    assert course.lessons_count == 0
    assert course.created_at > 0
    assert await store.get_course(course.id) == course


async def test_course_ids_are_unique(store):
    a = await _course(store, "A")
    b = await _course(store, "B")
    assert a.id != b.id
    assert [c.title for c in await store.list_courses()] == ["A", "B"]


async def test_update_course_merges_fields(store):
    course = await _course(store, "Old")
    await store.update_course(course.id, title="New", color="#000000")
    updated = await store.get_course(course.id)
    assert updated.title == "New"
    assert updated.color == "#000000"
    assert updated.icon == "code-slash"


async def test_update_missing_course_is_silent(store):
    await _course(store)
    await store.update_course("missing", title="Nope")
    assert [c.title for c in await store.list_courses()] == ["C"]


async def test_update_rejects_unknown_fields(store):
    course = await _course(store)
    with pytest.raises(TypeError):
        await store.update_course(course.id, colour="#fff")
    with pytest.raises(TypeError):
        await store.update_course(course.id, id="other")


async def test_delete_course_cascades(store):
    course = await _course(store, "C")
    other = await _course(store, "Other")
    l1 = await _lesson(store, course.id, "L1")
    l2 = await _lesson(store, course.id, "L2")
    kept = await _lesson(store, other.id, "Kept")
    for lesson in (l1, l2, kept):
        await _question(store, lesson.id)
        await _game(store, lesson.id)

    await store.delete_course(course.id)

    assert [c.id for c in await store.list_courses()] == [other.id]
    assert await store.list_lessons(course.id) == []
    assert await store.get_lesson(l1.id) is None
    assert await store.list_questions(l1.id) == []
    assert await store.list_questions(l2.id) == []
    assert await store.list_games(l1.id) == []
    assert await store.list_games(l2.id) == []
    assert len(await store.list_questions(kept.id)) == 1
    assert len(await store.list_games(kept.id)) == 1
    assert (await store.get_course(other.id)).lessons_count == 1


async def test_delete_missing_course_is_silent(store):
    course = await _course(store)
    await store.delete_course("missing")
    assert await store.list_courses() == [course]


# --- Lessons ---


@pytest.mark.parametrize("n", [1, 3, 5])
async def test_lessons_count_tracks_adds(store, n):
    course = await _course(store)
    for i in range(n):
        await _lesson(store, course.id, f"L{i}")
    assert (await store.get_course(course.id)).lessons_count == n


async def test_lesson_count_scenario(store):
    course = await _course(store, "C")
    l1 = await _lesson(store, course.id, "L1")
    assert (await store.get_course(course.id)).lessons_count == 1
    await _lesson(store, course.id, "L2")
    assert (await store.get_course(course.id)).lessons_count == 2
    await store.delete_lesson(l1.id)
    assert (await store.get_course(course.id)).lessons_count == 1
    assert [l.title for l in await store.list_lessons(course.id)] == ["L2"]


async def test_list_lessons_sorted_by_order(store):
    course = await _course(store)
    await _lesson(store, course.id, "third", order=3)
    await _lesson(store, course.id, "first", order=1)
    await _lesson(store, course.id, "second", order=2)
    lessons = await store.list_lessons(course.id)
    assert [l.title for l in lessons] == ["first", "second", "third"]
    orders = [l.order for l in lessons]
    assert orders == sorted(orders)


async def test_list_lessons_filters_by_course(store):
    a = await _course(store, "A")
    b = await _course(store, "B")
    await _lesson(store, a.id, "a1")
    await _lesson(store, b.id, "b1")
    assert [l.title for l in await store.list_lessons(a.id)] == ["a1"]


async def test_lesson_order_gap_after_delete(store):
    course = await _course(store)
    first = await _lesson(store, course.id, "L1")
    await _lesson(store, course.id, "L2")
    await store.delete_lesson(first.id)
    assert [l.order for l in await store.list_lessons(course.id)] == [2]
    # next order is count + 1, so it collides with the surviving lesson
    assert await store.next_lesson_order(course.id) == 2


async def test_add_lesson_to_missing_course_creates_orphan(store):
    lesson = await _lesson(store, "missing", "Orphan", order=1)
    assert await store.get_lesson(lesson.id) == lesson
    assert await store.list_courses() == []


async def test_add_lesson_rejects_unknown_type(store):
    course = await _course(store)
    with pytest.raises(ValueError):
        await store.add_lesson(course_id=course.id, title="X", type="podcast", order=1)


async def test_video_lesson_round_trip(store):
    course = await _course(store)
    lesson = await store.add_lesson(course_id=course.id, title="Video", type="video", order=1,
                                    video_url="https://www.youtube.com/watch?v=rfscVS0vtbw")
    loaded = await store.get_lesson(lesson.id)
    assert loaded.video_url == "https://www.youtube.com/watch?v=rfscVS0vtbw"
    assert loaded.content is None


async def test_update_lesson(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id, "Before")
    await store.update_lesson(lesson.id, title="After")
    assert (await store.get_lesson(lesson.id)).title == "After"


async def test_update_lesson_cannot_move_course(store):
    first = await _course(store, "A")
    second = await _course(store, "B")
    lesson = await _lesson(store, first.id)
    with pytest.raises(TypeError):
        await store.update_lesson(lesson.id, course_id=second.id)
    assert (await store.get_lesson(lesson.id)).course_id == first.id
    assert (await store.get_course(first.id)).lessons_count == 1
    assert (await store.get_course(second.id)).lessons_count == 0


async def test_add_lesson_rejects_unknown_sender(store):
    course = await _course(store)
    with pytest.raises(ValueError):
        await store.add_lesson(course_id=course.id, title="L", type="dialogue", order=1,
                               content=[DialogueMessage("1", "narrator", "Once upon a time")])
    assert await store.list_lessons(course.id) == []


async def test_delete_lesson_removes_questions_and_games(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id, "L1")
    other = await _lesson(store, course.id, "L2")
    await _question(store, lesson.id)
    await _question(store, lesson.id)
    await _game(store, lesson.id)
    await _question(store, other.id)
    await _game(store, other.id)

    await store.delete_lesson(lesson.id)

    assert await store.get_lesson(lesson.id) is None
    assert await store.list_questions(lesson.id) == []
    assert await store.list_games(lesson.id) == []
    assert len(await store.list_questions(other.id)) == 1
    assert len(await store.list_games(other.id)) == 1


async def test_delete_lesson_keeps_progress(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    await store.set_progress(Progress(lesson_id=lesson.id, completed=True, quiz_score=2))
    await store.delete_lesson(lesson.id)
    stale = await store.get_progress(lesson.id)
    assert stale is not None
    assert stale.quiz_score == 2


async def test_delete_lesson_writes_lessons_and_course_together(store, tmp_db):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    await store.delete_lesson(lesson.id)
    stored_lessons = json.loads(await get_item(tmp_db, "lessons"))
    stored_courses = json.loads(await get_item(tmp_db, "courses"))
    assert stored_lessons == []
    assert stored_courses[0]["lessonsCount"] == 0


# --- Questions ---


async def test_add_question_id_appears_in_listing(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    question = await _question(store, lesson.id)
    assert [q.id for q in await store.list_questions(lesson.id)] == [question.id]


async def test_list_questions_sorted_by_order(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    for order in (2, 3, 1):
        await store.add_question(lesson_id=lesson.id, text=f"Q{order}", options=["a", "b", "c", "d"],
                                 correct_index=0, order=order)
    orders = [q.order for q in await store.list_questions(lesson.id)]
    assert orders == [1, 2, 3]


async def test_next_question_order(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    assert await store.next_question_order(lesson.id) == 1
    await _question(store, lesson.id)
    assert await store.next_question_order(lesson.id) == 2


async def test_update_and_delete_question(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    q1 = await _question(store, lesson.id, "first")
    q2 = await _question(store, lesson.id, "second")
    await store.update_question(q1.id, correct_index=3)
    assert (await store.list_questions(lesson.id))[0].correct_index == 3
    await store.delete_question(q1.id)
    assert [q.id for q in await store.list_questions(lesson.id)] == [q2.id]
    await store.delete_question("missing")
    assert len(await store.list_questions(lesson.id)) == 1


# --- Games ---


async def test_games_per_lesson(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    word = await _game(store, lesson.id)
    memory = await store.add_game(lesson_id=lesson.id, type="memory", title="Pairs",
                                  data=MemoryData(pairs=[MemoryPair("a", "1"), MemoryPair("b", "2")]))
    games = await store.list_games(lesson.id)
    assert [g.id for g in games] == [word.id, memory.id]
    assert games[1].data.pairs[0] == MemoryPair("a", "1")
    await store.delete_game(word.id)
    assert [g.id for g in await store.list_games(lesson.id)] == [memory.id]


async def test_add_game_rejects_unknown_type(store):
    with pytest.raises(ValueError):
        await store.add_game(lesson_id="l1", type="crossword", title="X",
                             data=WordOrderData(sentence="a", words=["a"]))


# --- Progress ---


async def test_set_progress_upserts(store):
    await store.set_progress(Progress(lesson_id="l1", completed=False))
    await store.set_progress(Progress(lesson_id="l1", completed=True, quiz_score=3, completed_at=42))
    progress = await store.get_progress("l1")
    assert progress == Progress(lesson_id="l1", completed=True, quiz_score=3, completed_at=42)
    assert len(json.loads(await get_item(store.db_path, "progress"))) == 1


async def test_get_progress_missing(store):
    assert await store.get_progress("nothing") is None


async def test_list_progress_for_course(store):
    a = await _course(store, "A")
    b = await _course(store, "B")
    la = await _lesson(store, a.id)
    lb = await _lesson(store, b.id)
    await store.set_progress(Progress(lesson_id=la.id, completed=True))
    await store.set_progress(Progress(lesson_id=lb.id, completed=True))
    await store.set_progress(Progress(lesson_id="orphan", completed=True))
    assert [p.lesson_id for p in await store.list_progress_for_course(a.id)] == [la.id]


async def test_quiz_progress_scenario(store):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    await _question(store, lesson.id, correct_index=1)
    await store.set_progress(Progress(lesson_id=lesson.id, completed=True, quiz_score=1))
    progress = await store.get_progress(lesson.id)
    assert progress.completed is True
    assert progress.quiz_score == 1


# --- Maintenance and failures ---


async def test_clear_all(store, tmp_db):
    course = await _course(store)
    lesson = await _lesson(store, course.id)
    await _question(store, lesson.id)
    await _game(store, lesson.id)
    await store.set_progress(Progress(lesson_id=lesson.id, completed=True))
    await store.clear_all()
    for key in ("courses", "lessons", "questions", "games", "progress"):
        assert await get_item(tmp_db, key) is None
    assert await store.list_courses() == []


async def test_corrupt_collection_raises(store, tmp_db):
    await set_item(tmp_db, LESSONS, "{not json")
    with pytest.raises(SerializationError) as exc_info:
        await store.list_lessons("c1")
    assert exc_info.value.key == "lessons"


async def test_non_array_collection_raises(store, tmp_db):
    await set_item(tmp_db, "courses", '{"id": "c1"}')
    with pytest.raises(SerializationError):
        await store.list_courses()


async def test_malformed_record_raises(store, tmp_db):
    await set_item(tmp_db, "questions", '[{"id": "q1"}]')
    with pytest.raises(SerializationError):
        await store.list_questions("l1")


async def test_store_uses_injected_path(tmp_path):
    from course_tutor.db import init_db
    first = str(tmp_path / "one.db")
    second = str(tmp_path / "two.db")
    await init_db(first)
    await init_db(second)
    await LessonStore(first).add_course(title="Only here", description="", color="", icon="")
    assert len(await LessonStore(first).list_courses()) == 1
    assert await LessonStore(second).list_courses() == []


async def test_store_creates_tables_on_first_use(tmp_db):
    fresh = LessonStore(tmp_db)
    assert await fresh.list_courses() == []
    course = await fresh.add_course(title="C", description="", color="", icon="")
    assert await LessonStore(tmp_db).get_course(course.id) == course


async def test_clear_all_on_fresh_path(tmp_path):
    fresh = LessonStore(str(tmp_path / "nested" / "tutor.db"))
    await fresh.clear_all()
    assert await fresh.list_progress_for_course("c1") == []
