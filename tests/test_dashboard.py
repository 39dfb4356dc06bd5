from course_tutor.dashboard import get_course_overview, get_progress_color, get_progress_label
from course_tutor.models import Progress


def test_progress_label():
    assert get_progress_label(1.0) == "COMPLETED"
    assert get_progress_label(0.5) == "HALFWAY"
    assert get_progress_label(0.2) == "STARTED"
    assert get_progress_label(0.0) == "NOT STARTED"


def test_progress_color():
    assert get_progress_color(1.0) == "green"
    assert get_progress_color(0.6) == "yellow"
    assert get_progress_color(0.1) == "dark_orange"
    assert get_progress_color(0.0) == "red"


async def test_course_overview_missing(store):
    assert await get_course_overview(store, "missing") is None


async def test_course_overview_empty_course(store):
    course = await store.add_course(title="C", description="", color="", icon="")
    overview = await get_course_overview(store, course.id)
    assert overview["lessons"] == []
    assert overview["ratio"] == 0.0


async def test_course_overview(store):
    course = await store.add_course(title="C", description="", color="", icon="")
    l1 = await store.add_lesson(course_id=course.id, title="L1", type="dialogue", order=1, content=[])
    l2 = await store.add_lesson(course_id=course.id, title="L2", type="dialogue", order=2, content=[])
    await store.add_question(lesson_id=l1.id, text="?", options=["a", "b", "c", "d"], correct_index=0, order=1)
    await store.set_progress(Progress(lesson_id=l1.id, completed=True, quiz_score=1))
    await store.set_progress(Progress(lesson_id=l2.id, completed=False))

    overview = await get_course_overview(store, course.id)
    assert [row["lesson"].id for row in overview["lessons"]] == [l1.id, l2.id]
    assert overview["lessons"][0]["question_count"] == 1
    assert overview["lessons"][1]["game_count"] == 0
    assert overview["completed"] == 1
    assert overview["ratio"] == 0.5
