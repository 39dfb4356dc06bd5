"""Bulk import of course bundles from JSON or YAML files."""
import json
import logging
from pathlib import Path

import yaml

from course_tutor.games import words_from_sentence
from course_tutor.models import (
    GAME_TYPES, LESSON_TYPES, SENDERS, DialogueMessage, MemoryData, MemoryPair, WordOrderData,
)
from course_tutor.storage import LessonStore

logger = logging.getLogger(__name__)


def read_bundle(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported bundle format: {suffix or path.name}")
    if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
        raise ValueError(f"{path.name} has no 'courses' list")
    return data


def _require(entry, keys: tuple[str, ...], where: str) -> None:
    if not isinstance(entry, dict):
        raise ValueError(f"{where} must be a mapping")
    missing = [k for k in keys if k not in entry]
    if missing:
        raise ValueError(f"{where} is missing {', '.join(missing)}")


def _validate_game(game, where: str) -> None:
    _require(game, ("type", "title", "data"), where)
    if game["type"] not in GAME_TYPES:
        raise ValueError(f"{where} has unknown game type {game['type']!r}")
    if game["type"] == "word-order":
        _require(game["data"], ("sentence",), f"{where} data")
    else:
        _require(game["data"], ("pairs",), f"{where} data")
        for k, pair in enumerate(game["data"]["pairs"], 1):
            _require(pair, ("term", "definition"), f"{where} pair {k}")


def validate_bundle(bundle: dict) -> None:
    """Check every entry before anything is written. Raises ValueError."""
    for i, c in enumerate(bundle["courses"], 1):
        where = f"course {i}"
        _require(c, ("title",), where)
        for j, l in enumerate(c.get("lessons", []), 1):
            lw = f"{where} lesson {j}"
            _require(l, ("title", "type"), lw)
            if l["type"] not in LESSON_TYPES:
                raise ValueError(f"{lw} has unknown lesson type {l['type']!r}")
            if l["type"] == "video":
                _require(l, ("videoUrl",), lw)
            for k, m in enumerate(l.get("content", []) if l["type"] == "dialogue" else [], 1):
                _require(m, ("sender", "text"), f"{lw} message {k}")
                if m["sender"] not in SENDERS:
                    raise ValueError(f"{lw} message {k} has unknown sender {m['sender']!r}")
            for k, q in enumerate(l.get("questions", []), 1):
                _require(q, ("text", "options", "correctIndex"), f"{lw} question {k}")
                if not 0 <= q["correctIndex"] < len(q["options"]):
                    raise ValueError(f"{lw} question {k} has correctIndex out of range")
            for k, g in enumerate(l.get("games", []), 1):
                _validate_game(g, f"{lw} game {k}")



def _game_data(game: dict):
    data = game.get("data", {})
    if game["type"] not in GAME_TYPES:
        raise ValueError(f"Unknown game type: {game['type']}")
    if game["type"] == "word-order":
        sentence = data["sentence"].strip()
        words = data.get("words") or words_from_sentence(sentence)
        return WordOrderData(sentence=sentence, words=list(words))
    return MemoryData(pairs=[MemoryPair(p["term"].strip(), p["definition"].strip()) for p in data["pairs"]])


async def import_bundle(store: LessonStore, bundle: dict) -> dict:
    """Add every course in the bundle with its lessons, questions and games.

    The bundle is validated first so a bad entry adds nothing. Lessons and
    questions without an explicit ``order`` get the next position (existing
    count + 1). Returns counts of what was added.
    """
    validate_bundle(bundle)
    summary = {"courses": 0, "lessons": 0, "questions": 0, "games": 0}
    for c in bundle["courses"]:
        course = await store.add_course(
            title=c["title"],
            description=c.get("description", ""),
            color=c.get("color", ""),
            icon=c.get("icon", ""),
        )
        summary["courses"] += 1
        for l in c.get("lessons", []):
            content = None
            if l["type"] == "dialogue":
                content = [
                    DialogueMessage(id=str(m.get("id", i)), sender=m["sender"], text=m["text"])
                    for i, m in enumerate(l.get("content", []), 1)
                ]
            order = l.get("order")
            if order is None:
                order = await store.next_lesson_order(course.id)
            lesson = await store.add_lesson(
                course_id=course.id,
                title=l["title"],
                type=l["type"],
                order=order,
                content=content,
                video_url=l.get("videoUrl") if l["type"] == "video" else None,
            )
            summary["lessons"] += 1
            for q in l.get("questions", []):
                q_order = q.get("order")
                if q_order is None:
                    q_order = await store.next_question_order(lesson.id)
                await store.add_question(
                    lesson_id=lesson.id,
                    text=q["text"],
                    options=q["options"],
                    correct_index=q["correctIndex"],
                    order=q_order,
                )
                summary["questions"] += 1
            for g in l.get("games", []):
                await store.add_game(lesson_id=lesson.id, type=g["type"], title=g["title"], data=_game_data(g))
                summary["games"] += 1
    logger.info(
        "Imported %d courses, %d lessons, %d questions, %d games",
        summary["courses"], summary["lessons"], summary["questions"], summary["games"],
    )
    return summary


async def import_file(store: LessonStore, file_path: str) -> dict:
    """Import a bundle file. Returns the summary plus the file name."""
    summary = await import_bundle(store, read_bundle(file_path))
    return {"filename": Path(file_path).name, **summary}
