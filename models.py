"""
Domain types for study notes and quizzes.

Field names follow Python conventions; ``to_dict``/``from_dict`` speak the
camelCase JSON shape that is stored in the key-value store and returned by
the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class QuestionType(str, Enum):
    SHORT_ANSWER = "SHORT_ANSWER"
    TRUE_FALSE = "TRUE_FALSE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"


DIFFICULTIES = ("easy", "medium", "hard")
DIFFICULTY_RANK = {d: i for i, d in enumerate(DIFFICULTIES)}


@dataclass
class GoogleUser:
    name: str
    email: str
    picture: str = ""

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else ""


@dataclass
class StudyNote:
    id: str
    content: str
    created_at: int  # epoch ms
    review_dates: list[int] = field(default_factory=list)  # epoch ms, strictly increasing
    last_reviewed: Optional[int] = None  # epoch ms

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "createdAt": self.created_at,
            "reviewDates": list(self.review_dates),
            "lastReviewed": self.last_reviewed,
        }

    @staticmethod
    def from_dict(data: dict) -> StudyNote:
        return StudyNote(
            id=data["id"],
            content=data["content"],
            created_at=int(data["createdAt"]),
            review_dates=[int(d) for d in data.get("reviewDates", [])],
            last_reviewed=(
                int(data["lastReviewed"]) if data.get("lastReviewed") is not None else None
            ),
        )


@dataclass
class QuizQuestion:
    question: str
    type: QuestionType
    difficulty: str  # "easy" | "medium" | "hard"
    correct_answer: str
    options: Optional[list[str]] = None

    def to_dict(self, include_answer: bool = True) -> dict:
        data = {
            "question": self.question,
            "type": self.type.value,
            "difficulty": self.difficulty,
        }
        if self.options is not None:
            data["options"] = list(self.options)
        if include_answer:
            data["correctAnswer"] = self.correct_answer
        return data

    @staticmethod
    def from_dict(data: dict) -> QuizQuestion:
        """Build a question from model output, rejecting anything off-schema."""
        for key in ("question", "type", "difficulty", "correctAnswer"):
            if key not in data or data[key] is None:
                raise ValueError(f"Quiz question is missing '{key}'")
        try:
            qtype = QuestionType(data["type"])
        except ValueError:
            raise ValueError(f"Unknown question type: {data['type']!r}") from None
        difficulty = str(data["difficulty"]).lower()
        if difficulty not in DIFFICULTY_RANK:
            raise ValueError(f"Unknown difficulty: {data['difficulty']!r}")
        options = data.get("options")
        return QuizQuestion(
            question=str(data["question"]),
            type=qtype,
            difficulty=difficulty,
            correct_answer=str(data["correctAnswer"]),
            options=[str(o) for o in options] if options else None,
        )


@dataclass
class QuizFeedbackItem:
    question: str
    user_answer: str
    correct_answer: str
    feedback: str
    is_correct: bool

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "feedback": self.feedback,
            "isCorrect": self.is_correct,
        }

    @staticmethod
    def from_dict(data: dict) -> QuizFeedbackItem:
        for key in ("question", "userAnswer", "correctAnswer", "feedback", "isCorrect"):
            if key not in data or data[key] is None:
                raise ValueError(f"Feedback item is missing '{key}'")
        is_correct = data["isCorrect"]
        if isinstance(is_correct, str):
            is_correct = is_correct.strip().lower() == "true"
        return QuizFeedbackItem(
            question=str(data["question"]),
            user_answer=str(data["userAnswer"]),
            correct_answer=str(data["correctAnswer"]),
            feedback=str(data["feedback"]),
            is_correct=bool(is_correct),
        )
