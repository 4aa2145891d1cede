"""Data classes for the learning domain model."""
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

LEVELS = ("beginner", "intermediate", "advanced")
CARD_KINDS = ("concept", "example", "question")
MISSION_TYPES = ("answer_correct", "complete_lessons", "earn_credits", "maintain_streak")


@dataclass(frozen=True)
class Concept:
    text: str
    takeaway: str = ""


@dataclass(frozen=True)
class Example:
    narrative: str


@dataclass(frozen=True)
class Question:
    prompt: str
    options: tuple
    correct_index: int
    explanation: str = ""
    credits_reward: int = 10
    scenario: str = ""

    def is_correct(self, choice: int) -> bool:
        return choice == self.correct_index


CardContent = Union[Concept, Example, Question]

_CONTENT_KINDS = {Concept: "concept", Example: "example", Question: "question"}
_KIND_STEPS = {"concept": 1, "example": 2, "question": 3}


def content_kind(content: CardContent) -> str:
    return _CONTENT_KINDS[type(content)]


def step_for_kind(kind: str) -> int:
    return _KIND_STEPS[kind]


def content_from_dict(kind: str, data: dict) -> CardContent:
    """Build the typed payload for a card of the given kind."""
    if kind == "concept":
        return Concept(text=data["text"], takeaway=data.get("takeaway", ""))
    if kind == "example":
        return Example(narrative=data["narrative"])
    if kind == "question":
        return Question(
            prompt=data["prompt"],
            options=tuple(data["options"]),
            correct_index=data["correct_index"],
            explanation=data.get("explanation", ""),
            credits_reward=data.get("credits_reward", 10),
            scenario=data.get("scenario", ""),
        )
    raise ValueError(f"Unknown card kind: {kind}")


def content_to_dict(content: CardContent) -> dict:
    if isinstance(content, Concept):
        return {"text": content.text, "takeaway": content.takeaway}
    if isinstance(content, Example):
        return {"narrative": content.narrative}
    return {
        "prompt": content.prompt,
        "options": list(content.options),
        "correct_index": content.correct_index,
        "explanation": content.explanation,
        "credits_reward": content.credits_reward,
        "scenario": content.scenario,
    }


@dataclass(frozen=True)
class LearningCard:
    id: str
    topic_id: str
    lesson_index: int
    content: CardContent
    topic_title: str = ""
    difficulty: str = "beginner"

    @property
    def kind(self) -> str:
        return content_kind(self.content)

    @property
    def step(self) -> int:
        return step_for_kind(self.kind)

    @property
    def is_question(self) -> bool:
        return isinstance(self.content, Question)

    @classmethod
    def from_row(cls, row) -> "LearningCard":
        return cls(
            id=row["id"],
            topic_id=row["topic_id"],
            topic_title=row["topic_title"],
            difficulty=row["difficulty"],
            lesson_index=row["lesson_index"],
            content=content_from_dict(row["kind"], json.loads(row["content"])),
        )


@dataclass
class Topic:
    id: str
    title: str
    order: int
    unlock_day: int = 1


@dataclass
class TopicStatus:
    id: str
    title: str
    order: int
    lesson_count: int
    completed_lessons: int
    is_locked: bool
    unlocks_at: Optional[datetime] = None


@dataclass
class Learner:
    id: str
    username: str
    credits: int = 0
    streak: int = 0
    total_answered: int = 0
    total_correct: int = 0
    current_level: str = "beginner"
    start_date: Optional[datetime] = None
    cursor: int = 0
    last_active_date: Optional[date] = None

    @property
    def accuracy(self) -> float:
        """Percentage of answered questions that were correct."""
        if self.total_answered == 0:
            return 0.0
        return self.total_correct / self.total_answered * 100

    @classmethod
    def from_row(cls, row) -> "Learner":
        return cls(
            id=row["id"],
            username=row["username"],
            credits=row["credits"],
            streak=row["streak"],
            total_answered=row["total_answered"],
            total_correct=row["total_correct"],
            current_level=row["current_level"],
            start_date=datetime.fromisoformat(row["start_date"]) if row["start_date"] else None,
            cursor=row["cursor"],
            last_active_date=(
                date.fromisoformat(row["last_active_date"]) if row["last_active_date"] else None
            ),
        )


@dataclass
class AnswerRecord:
    question_id: str
    lesson_index: int
    is_correct: bool
    answered_at: datetime
    review_count: int = 0

    @classmethod
    def from_row(cls, row) -> "AnswerRecord":
        return cls(
            question_id=row["question_id"],
            lesson_index=row["lesson_index"],
            is_correct=bool(row["is_correct"]),
            answered_at=datetime.fromisoformat(row["answered_at"]),
            review_count=row["review_count"],
        )


@dataclass
class ReviewEntry:
    question_id: str
    lesson_index: int


@dataclass
class ReviewSession:
    entries: list = field(default_factory=list)
    cursor: int = 0
    started_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.started_at is not None and self.cursor < len(self.entries)


@dataclass
class DailyMission:
    mission_type: str
    title: str
    target: int
    reward: int
    progress: int = 0
    completed: bool = False

    @classmethod
    def from_row(cls, row) -> "DailyMission":
        return cls(
            mission_type=row["mission_type"],
            title=row["title"],
            target=row["target"],
            reward=row["reward"],
            progress=row["progress"],
            completed=bool(row["completed"]),
        )
