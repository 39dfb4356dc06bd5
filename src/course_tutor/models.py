"""Data classes for the course domain model.

Records are persisted as JSON objects with camelCase keys; ``to_dict`` and
``from_dict`` convert between that form and the snake_case attributes.
Optional fields left as ``None`` are omitted from the stored object.
"""
from dataclasses import dataclass, field
from typing import Optional, Union

LESSON_TYPES = ("dialogue", "video")
SENDERS = ("robot", "user")
GAME_TYPES = ("word-order", "memory")


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Course:
    id: str
    title: str
    description: str
    color: str
    icon: str
    lessons_count: int = 0
    created_at: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
            "lessonsCount": self.lessons_count,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            color=data.get("color", ""),
            icon=data.get("icon", ""),
            lessons_count=data.get("lessonsCount", 0),
            created_at=data.get("createdAt", 0),
        )


@dataclass
class DialogueMessage:
    id: str
    sender: str
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "sender": self.sender, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> "DialogueMessage":
        if data["sender"] not in SENDERS:
            raise ValueError(f"Unknown dialogue sender: {data['sender']}")
        return cls(id=str(data["id"]), sender=data["sender"], text=data["text"])


@dataclass
class Lesson:
    id: str
    course_id: str
    title: str
    type: str
    order: int
    content: Optional[list[DialogueMessage]] = None
    video_url: Optional[str] = None
    created_at: int = 0

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "courseId": self.course_id,
            "title": self.title,
            "type": self.type,
            "order": self.order,
            "content": [m.to_dict() for m in self.content] if self.content is not None else None,
            "videoUrl": self.video_url,
            "createdAt": self.created_at,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Lesson":
        if data["type"] not in LESSON_TYPES:
            raise ValueError(f"Unknown lesson type: {data['type']}")
        content = data.get("content")
        return cls(
            id=data["id"],
            course_id=data["courseId"],
            title=data["title"],
            type=data["type"],
            order=data["order"],
            content=[DialogueMessage.from_dict(m) for m in content] if content is not None else None,
            video_url=data.get("videoUrl"),
            created_at=data.get("createdAt", 0),
        )


@dataclass
class Question:
    id: str
    lesson_id: str
    text: str
    options: list[str]
    correct_index: int
    order: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lessonId": self.lesson_id,
            "text": self.text,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=data["id"],
            lesson_id=data["lessonId"],
            text=data["text"],
            options=list(data["options"]),
            correct_index=data["correctIndex"],
            order=data["order"],
        )


@dataclass
class WordOrderData:
    sentence: str
    words: list[str]

    def to_dict(self) -> dict:
        return {"sentence": self.sentence, "words": list(self.words)}


@dataclass
class MemoryPair:
    term: str
    definition: str


@dataclass
class MemoryData:
    pairs: list[MemoryPair] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"pairs": [{"term": p.term, "definition": p.definition} for p in self.pairs]}


GameData = Union[WordOrderData, MemoryData]


def game_data_from_dict(game_type: str, data: dict) -> GameData:
    if game_type == "word-order":
        return WordOrderData(sentence=data["sentence"], words=list(data["words"]))
    if game_type == "memory":
        return MemoryData(pairs=[MemoryPair(p["term"], p["definition"]) for p in data["pairs"]])
    raise ValueError(f"Unknown game type: {game_type}")


@dataclass
class Game:
    id: str
    lesson_id: str
    type: str
    title: str
    data: GameData

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lessonId": self.lesson_id,
            "type": self.type,
            "title": self.title,
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Game":
        return cls(
            id=data["id"],
            lesson_id=data["lessonId"],
            type=data["type"],
            title=data["title"],
            data=game_data_from_dict(data["type"], data["data"]),
        )


@dataclass
class Progress:
    lesson_id: str
    completed: bool = False
    quiz_score: Optional[int] = None
    completed_at: Optional[int] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "lessonId": self.lesson_id,
            "completed": self.completed,
            "quizScore": self.quiz_score,
            "completedAt": self.completed_at,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Progress":
        return cls(
            lesson_id=data["lessonId"],
            completed=bool(data.get("completed", False)),
            quiz_score=data.get("quizScore"),
            completed_at=data.get("completedAt"),
        )
