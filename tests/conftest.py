import pytest

from course_tutor.db import init_db
from course_tutor.storage import LessonStore


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
async def store(tmp_db):
    """An initialized LessonStore on the temporary database."""
    await init_db(tmp_db)
    return LessonStore(tmp_db)
