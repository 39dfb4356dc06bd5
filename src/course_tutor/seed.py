"""Seed the store with the sample courses on first run."""
import json
import logging
from pathlib import Path

from course_tutor import db
from course_tutor.importer import import_bundle
from course_tutor.storage import LessonStore

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"

# Bump when sample_courses.json changes; stores seeded with an older version are wiped and reseeded.
SEED_VERSION = "1"


async def is_seeded(store: LessonStore) -> bool:
    """Check whether any course exists."""
    return len(await store.list_courses()) > 0


async def seed_sample_data(store: LessonStore) -> dict | None:
    """Load the sample courses unless the store already has courses."""
    if await is_seeded(store):
        return None
    data = json.loads((CONTENT_DIR / "sample_courses.json").read_text(encoding="utf-8"))
    return await import_bundle(store, data)


async def ensure_seed(store: LessonStore) -> bool:
    """Reseed when the stored seed version is stale. Returns True if it reseeded."""
    await store.ensure_schema()
    current = await db.get_setting(store.db_path, "seed_version")
    if current == SEED_VERSION:
        return False
    logger.info("Seed version %s -> %s, reseeding", current, SEED_VERSION)
    await store.clear_all()
    await seed_sample_data(store)
    await db.set_setting(store.db_path, "seed_version", SEED_VERSION)
    return True
