"""Records exchanged with the caller and the JSON schema sent to Gemini."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

DIFFICULTIES = ("Easy", "Medium", "Hard")
MIXED_DIFFICULTY = "Mixed"
QUESTION_TYPE = "MCQ"
QUESTION_SOURCE = "AI Generated - PYQ Pattern"
OPTIONS_PER_QUESTION = 4

QUESTION_FIELDS = (
    "subject",
    "chapter",
    "topic",
    "difficulty",
    "questionText",
    "options",
    "correctOptionIndex",
    "explanation",
    "type",
    "source",
)


@dataclass(frozen=True)
class Question:
    subject: str
    chapter: str
    topic: str
    difficulty: str
    question_text: str
    options: Tuple[str, ...]
    correct_option_index: int
    explanation: str
    type: str = QUESTION_TYPE
    source: str = QUESTION_SOURCE

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Question":
        return cls(
            subject=record["subject"],
            chapter=record["chapter"],
            topic=record["topic"],
            difficulty=record["difficulty"],
            question_text=record["questionText"],
            options=tuple(record["options"]),
            correct_option_index=record["correctOptionIndex"],
            explanation=record["explanation"],
            type=record["type"],
            source=record["source"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """camelCase form used by the UI; the caller assigns ``id``."""
        return {
            "subject": self.subject,
            "chapter": self.chapter,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "questionText": self.question_text,
            "options": list(self.options),
            "correctOptionIndex": self.correct_option_index,
            "explanation": self.explanation,
            "type": self.type,
            "source": self.source,
        }


@dataclass(frozen=True)
class ChatMessage:
    sender: str  # 'user' | 'bot'
    text: str
    image: Optional[str] = None


@dataclass(frozen=True)
class WebSource:
    uri: str
    title: str


@dataclass(frozen=True)
class TutorResponse:
    text: str
    sources: List[WebSource] = field(default_factory=list)


@dataclass(frozen=True)
class GenerationParameters:
    subject: str
    chapters: Sequence[str]
    topics: Sequence[str]
    difficulty: str
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise ValueError(f"count must be a positive integer, got {self.count!r}")


def question_response_schema() -> Dict[str, Any]:
    """Structured-output schema: an array of question objects."""
    question_schema = {
        "type": "OBJECT",
        "properties": {
            "subject": {"type": "STRING"},
            "chapter": {"type": "STRING"},
            "topic": {"type": "STRING"},
            "difficulty": {"type": "STRING", "enum": list(DIFFICULTIES)},
            "questionText": {"type": "STRING"},
            "options": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
            },
            "correctOptionIndex": {"type": "INTEGER"},
            "explanation": {"type": "STRING"},
            "type": {"type": "STRING", "enum": [QUESTION_TYPE]},
            "source": {"type": "STRING"},
        },
        "required": list(QUESTION_FIELDS),
    }
    return {"type": "ARRAY", "items": question_schema}
