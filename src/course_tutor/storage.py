"""Local document store for courses, lessons, questions, games and progress.

Each collection is one JSON array stored under one key of the key-value
primitive in ``db``. Every operation reads whole collections, filters them in
memory and writes them back. Writes spanning several collections (the lesson
counter on a course, cascading deletes) go through a single ``set_items``
call and commit together.
"""
import json
import logging
import time
import uuid
from dataclasses import fields, replace
from typing import Optional

from course_tutor import db
from course_tutor.models import (
    GAME_TYPES, LESSON_TYPES, SENDERS, Course, DialogueMessage, Game, GameData, Lesson, Progress, Question,
)

logger = logging.getLogger(__name__)

COURSES = "courses"
LESSONS = "lessons"
QUESTIONS = "questions"
GAMES = "games"
PROGRESS = "progress"
ALL_KEYS = [COURSES, LESSONS, QUESTIONS, GAMES, PROGRESS]

_MODELS = {
    COURSES: Course,
    LESSONS: Lesson,
    QUESTIONS: Question,
    GAMES: Game,
    PROGRESS: Progress,
}


class SerializationError(ValueError):
    """Stored collection could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Collection '{key}' is corrupt: {reason}")
        self.key = key


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _merge(record, updates: dict, fixed: tuple[str, ...] = ("id",)):
    allowed = {f.name for f in fields(record)} - set(fixed)
    unknown = set(updates) - allowed
    if unknown:
        raise TypeError(f"Cannot update {type(record).__name__} fields: {', '.join(sorted(unknown))}")
    return replace(record, **updates)


def _find(records: list, record_id: str):
    return next((r for r in records if r.id == record_id), None)


class LessonStore:
    """Repository over the five collections.

    Create one per process and hand it to whatever needs storage.
    """

    def __init__(self, db_path: str = db.DEFAULT_DB_PATH) -> None:
        self.db_path = db_path
        self._ready = False

    async def ensure_schema(self) -> None:
        """Create the tables on first use so a fresh database path works."""
        if not self._ready:
            await db.init_db(self.db_path)
            self._ready = True

    async def _read(self, key: str) -> list[dict]:
        await self.ensure_schema()
        raw = await db.get_item(self.db_path, key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Collection %s holds invalid JSON", key)
            raise SerializationError(key, str(exc)) from exc
        if not isinstance(records, list):
            logger.error("Collection %s is not a JSON array", key)
            raise SerializationError(key, "expected a JSON array")
        return records

    async def _load(self, key: str) -> list:
        model = _MODELS[key]
        records = await self._read(key)
        try:
            return [model.from_dict(r) for r in records]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Collection %s has a malformed record: %s", key, exc)
            raise SerializationError(key, f"malformed record ({exc})") from exc

    async def _write(self, collections: dict[str, list]) -> None:
        await self.ensure_schema()
        payload = {
            key: json.dumps([r.to_dict() for r in records], ensure_ascii=False)
            for key, records in collections.items()
        }
        logger.debug("Writing collections: %s", ", ".join(payload))
        await db.set_items(self.db_path, payload)

    async def _update(self, key: str, record_id: str, updates: dict, fixed: tuple[str, ...] = ("id",)) -> None:
        records = await self._load(key)
        for i, record in enumerate(records):
            if record.id == record_id:
                records[i] = _merge(record, updates, fixed)
                await self._write({key: records})
                return
        logger.debug("No %s record %s to update", key, record_id)

    async def _delete(self, key: str, record_id: str) -> None:
        records = await self._load(key)
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) != len(records):
            await self._write({key: remaining})

    async def _cascade_lessons(self, lesson_ids: set[str], writes: dict) -> None:
        """Queue removal of questions and games owned by the given lessons."""
        questions = await self._load(QUESTIONS)
        games = await self._load(GAMES)
        writes[QUESTIONS] = [q for q in questions if q.lesson_id not in lesson_ids]
        writes[GAMES] = [g for g in games if g.lesson_id not in lesson_ids]
        logger.info(
            "Cascading delete of %d lessons: %d questions, %d games",
            len(lesson_ids),
            len(questions) - len(writes[QUESTIONS]),
            len(games) - len(writes[GAMES]),
        )

    @staticmethod
    def _recount(courses: list[Course], lessons: list[Lesson], course_id: str) -> bool:
        course = _find(courses, course_id)
        if course is None:
            return False
        course.lessons_count = sum(1 for l in lessons if l.course_id == course_id)
        return True

    # Courses

    async def list_courses(self) -> list[Course]:
        return await self._load(COURSES)

    async def get_course(self, course_id: str) -> Optional[Course]:
        return _find(await self._load(COURSES), course_id)

    async def add_course(self, title: str, description: str, color: str, icon: str) -> Course:
        courses = await self._load(COURSES)
        course = Course(
            id=new_id(),
            title=title,
            description=description,
            color=color,
            icon=icon,
            lessons_count=0,
            created_at=now_ms(),
        )
        courses.append(course)
        await self._write({COURSES: courses})
        logger.info("Added course %s (%s)", course.id, title)
        return course

    async def update_course(self, course_id: str, **updates) -> None:
        await self._update(COURSES, course_id, updates)

    async def delete_course(self, course_id: str) -> None:
        courses = await self._load(COURSES)
        lessons = await self._load(LESSONS)
        doomed = {l.id for l in lessons if l.course_id == course_id}
        writes: dict[str, list] = {COURSES: [c for c in courses if c.id != course_id]}
        if doomed:
            writes[LESSONS] = [l for l in lessons if l.id not in doomed]
            await self._cascade_lessons(doomed, writes)
        await self._write(writes)
        logger.info("Deleted course %s", course_id)

    # Lessons

    async def list_lessons(self, course_id: str) -> list[Lesson]:
        lessons = [l for l in await self._load(LESSONS) if l.course_id == course_id]
        return sorted(lessons, key=lambda l: l.order)

    async def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return _find(await self._load(LESSONS), lesson_id)

    async def next_lesson_order(self, course_id: str) -> int:
        return len(await self.list_lessons(course_id)) + 1

    async def add_lesson(
        self,
        course_id: str,
        title: str,
        type: str,
        order: int,
        content: Optional[list[DialogueMessage]] = None,
        video_url: Optional[str] = None,
    ) -> Lesson:
        if type not in LESSON_TYPES:
            raise ValueError(f"Unknown lesson type: {type}")
        for message in content or []:
            if message.sender not in SENDERS:
                raise ValueError(f"Unknown dialogue sender: {message.sender}")
        lessons = await self._load(LESSONS)
        lesson = Lesson(
            id=new_id(),
            course_id=course_id,
            title=title,
            type=type,
            order=order,
            content=content,
            video_url=video_url,
            created_at=now_ms(),
        )
        lessons.append(lesson)
        writes: dict[str, list] = {LESSONS: lessons}
        courses = await self._load(COURSES)
        if self._recount(courses, lessons, course_id):
            writes[COURSES] = courses
        await self._write(writes)
        logger.info("Added lesson %s to course %s", lesson.id, course_id)
        return lesson

    async def update_lesson(self, lesson_id: str, **updates) -> None:
        # course_id is fixed: lessons_count is only recomputed on add and delete.
        await self._update(LESSONS, lesson_id, updates, fixed=("id", "course_id"))

    async def delete_lesson(self, lesson_id: str) -> None:
        # Progress for the lesson is kept so past completions survive content removal.
        lessons = await self._load(LESSONS)
        lesson = _find(lessons, lesson_id)
        remaining = [l for l in lessons if l.id != lesson_id]
        writes: dict[str, list] = {LESSONS: remaining}
        if lesson is not None:
            courses = await self._load(COURSES)
            if self._recount(courses, remaining, lesson.course_id):
                writes[COURSES] = courses
        await self._cascade_lessons({lesson_id}, writes)
        await self._write(writes)

    # Questions

    async def list_questions(self, lesson_id: str) -> list[Question]:
        questions = [q for q in await self._load(QUESTIONS) if q.lesson_id == lesson_id]
        return sorted(questions, key=lambda q: q.order)

    async def next_question_order(self, lesson_id: str) -> int:
        return len(await self.list_questions(lesson_id)) + 1

    async def add_question(
        self, lesson_id: str, text: str, options: list[str], correct_index: int, order: int
    ) -> Question:
        questions = await self._load(QUESTIONS)
        question = Question(
            id=new_id(),
            lesson_id=lesson_id,
            text=text,
            options=list(options),
            correct_index=correct_index,
            order=order,
        )
        questions.append(question)
        await self._write({QUESTIONS: questions})
        return question

    async def update_question(self, question_id: str, **updates) -> None:
        await self._update(QUESTIONS, question_id, updates)

    async def delete_question(self, question_id: str) -> None:
        await self._delete(QUESTIONS, question_id)

    # Games

    async def list_games(self, lesson_id: str) -> list[Game]:
        return [g for g in await self._load(GAMES) if g.lesson_id == lesson_id]

    async def add_game(self, lesson_id: str, type: str, title: str, data: GameData) -> Game:
        if type not in GAME_TYPES:
            raise ValueError(f"Unknown game type: {type}")
        games = await self._load(GAMES)
        game = Game(id=new_id(), lesson_id=lesson_id, type=type, title=title, data=data)
        games.append(game)
        await self._write({GAMES: games})
        return game

    async def delete_game(self, game_id: str) -> None:
        await self._delete(GAMES, game_id)

    # Progress

    async def get_progress(self, lesson_id: str) -> Optional[Progress]:
        return next((p for p in await self._load(PROGRESS) if p.lesson_id == lesson_id), None)

    async def list_progress_for_course(self, course_id: str) -> list[Progress]:
        lesson_ids = {l.id for l in await self.list_lessons(course_id)}
        return [p for p in await self._load(PROGRESS) if p.lesson_id in lesson_ids]

    async def set_progress(self, progress: Progress) -> None:
        records = await self._load(PROGRESS)
        for i, existing in enumerate(records):
            if existing.lesson_id == progress.lesson_id:
                records[i] = progress
                break
        else:
            records.append(progress)
        await self._write({PROGRESS: records})

    # Maintenance

    async def clear_all(self) -> None:
        await self.ensure_schema()
        await db.multi_remove(self.db_path, ALL_KEYS)
        logger.info("Cleared all collections")
