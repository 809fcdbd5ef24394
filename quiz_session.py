"""
Quiz lifecycle: generation, answer collection, feedback, review update.

A QuizSession is a small state machine that lives in the user's Flask
session between requests:

    generating -> answering -> submitting -> complete
         |                         |
         v                         v
       failed                  answering (error kept, answers kept)

Only a non-practice quiz moves the note's ``last_reviewed`` forward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

from agents.base import AgentError
from models import DIFFICULTY_RANK, QuizFeedbackItem, QuizQuestion, StudyNote

logger = logging.getLogger(__name__)


class QuizState(str, Enum):
    GENERATING = "generating"
    ANSWERING = "answering"
    SUBMITTING = "submitting"
    COMPLETE = "complete"
    FAILED = "failed"


class InvalidQuizTransition(RuntimeError):
    """Raised when an operation is not allowed in the session's state."""


class _Agent(Protocol):
    def generate_quiz(self, note_content: str) -> list[QuizQuestion]: ...

    def get_feedback(
        self, note: StudyNote, questions: list[QuizQuestion], answers: list[str]
    ) -> list[QuizFeedbackItem]: ...


class _NoteStore(Protocol):
    def mark_reviewed(self, note_id: str, now: int) -> StudyNote: ...


def sort_by_difficulty(questions: list[QuizQuestion]) -> list[QuizQuestion]:
    """easy < medium < hard; ties keep their original order."""
    return sorted(questions, key=lambda q: DIFFICULTY_RANK[q.difficulty])


@dataclass
class QuizSession:
    note: StudyNote
    is_practice: bool = False
    state: QuizState = QuizState.GENERATING
    questions: list[QuizQuestion] = field(default_factory=list)
    answers: list[str] = field(default_factory=list)
    feedback: list[QuizFeedbackItem] = field(default_factory=list)
    error: Optional[str] = None

    def _require(self, *states: QuizState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidQuizTransition(
                f"Quiz is {self.state.value}; expected {allowed}"
            )

    def start(self, agent: _Agent) -> None:
        self._require(QuizState.GENERATING)
        self.error = None
        try:
            generated = agent.generate_quiz(self.note.content)
        except AgentError as e:
            self.state = QuizState.FAILED
            self.error = str(e)
            return
        self.questions = sort_by_difficulty(generated)
        self.answers = [""] * len(self.questions)
        self.state = QuizState.ANSWERING
        logger.info(
            "Quiz ready for note %s (%d questions, practice=%s)",
            self.note.id, len(self.questions), self.is_practice,
        )

    def set_answer(self, index: int, value: str) -> None:
        self._require(QuizState.ANSWERING)
        if not 0 <= index < len(self.answers):
            raise IndexError(f"No question at index {index}")
        self.answers[index] = value

    def set_answers(self, values: list[str]) -> None:
        for i, value in enumerate(values[: len(self.answers)]):
            self.set_answer(i, value)

    def submit(self, agent: _Agent, store: _NoteStore, now: int) -> None:
        self._require(QuizState.ANSWERING)
        self.state = QuizState.SUBMITTING
        self.error = None
        try:
            self.feedback = agent.get_feedback(self.note, self.questions, self.answers)
        except AgentError as e:
            self.state = QuizState.ANSWERING
            self.error = str(e)
            return
        if not self.is_practice:
            try:
                self.note = store.mark_reviewed(self.note.id, now)
            except Exception:
                self.state = QuizState.ANSWERING
                self.feedback = []
                raise
        self.state = QuizState.COMPLETE
        logger.info(
            "Quiz submitted for note %s (%d/%d correct, practice=%s)",
            self.note.id, self.correct_count, len(self.feedback), self.is_practice,
        )

    @property
    def correct_count(self) -> int:
        return sum(1 for f in self.feedback if f.is_correct)

    def to_dict(self) -> dict:
        return {
            "note": self.note.to_dict(),
            "isPractice": self.is_practice,
            "state": self.state.value,
            "questions": [q.to_dict() for q in self.questions],
            "answers": list(self.answers),
            "feedback": [f.to_dict() for f in self.feedback],
            "error": self.error,
        }

    @staticmethod
    def from_dict(data: dict) -> QuizSession:
        return QuizSession(
            note=StudyNote.from_dict(data["note"]),
            is_practice=bool(data.get("isPractice", False)),
            state=QuizState(data.get("state", QuizState.GENERATING.value)),
            questions=[QuizQuestion.from_dict(q) for q in data.get("questions", [])],
            answers=list(data.get("answers", [])),
            feedback=[QuizFeedbackItem.from_dict(f) for f in data.get("feedback", [])],
            error=data.get("error"),
        )
