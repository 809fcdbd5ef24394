"""Tests for the domain types and their JSON shapes."""

from __future__ import annotations

import pytest

from models import (
    DIFFICULTY_RANK,
    GoogleUser,
    QuestionType,
    QuizFeedbackItem,
    QuizQuestion,
    StudyNote,
)


class TestGoogleUser:
    def test_first_name(self):
        assert GoogleUser("Kim Minji", "minji@example.com").first_name == "Kim"

    def test_first_name_single_word(self):
        assert GoogleUser("Minji", "minji@example.com").first_name == "Minji"

    def test_first_name_empty(self):
        assert GoogleUser("", "minji@example.com").first_name == ""


class TestStudyNote:
    def test_to_dict_uses_camel_case(self):
        note = StudyNote("note-1", "Mitosis has four phases.", 1000, [2000, 3000, 4000], None)
        assert note.to_dict() == {
            "id": "note-1",
            "content": "Mitosis has four phases.",
            "createdAt": 1000,
            "reviewDates": [2000, 3000, 4000],
            "lastReviewed": None,
        }

    def test_from_dict(self):
        note = StudyNote.from_dict({
            "id": "note-9",
            "content": "Ohm's law",
            "createdAt": 5,
            "reviewDates": [6, 7, 8],
            "lastReviewed": 7,
        })
        assert note.id == "note-9"
        assert note.created_at == 5
        assert note.review_dates == [6, 7, 8]
        assert note.last_reviewed == 7

    def test_from_dict_missing_last_reviewed(self):
        note = StudyNote.from_dict({"id": "n", "content": "c", "createdAt": 1, "reviewDates": []})
        assert note.last_reviewed is None

    def test_from_dict_requires_id(self):
        with pytest.raises(KeyError):
            StudyNote.from_dict({"content": "c", "createdAt": 1})


class TestQuizQuestion:
    def _raw(self, **overrides):
        data = {
            "question": "Water boils at 100°C at sea level.",
            "type": "TRUE_FALSE",
            "difficulty": "easy",
            "correctAnswer": "True",
        }
        data.update(overrides)
        return data

    def test_from_dict(self):
        q = QuizQuestion.from_dict(self._raw())
        assert q.type is QuestionType.TRUE_FALSE
        assert q.difficulty == "easy"
        assert q.correct_answer == "True"
        assert q.options is None

    def test_difficulty_is_normalised(self):
        assert QuizQuestion.from_dict(self._raw(difficulty="HARD")).difficulty == "hard"

    def test_multiple_choice_options(self):
        q = QuizQuestion.from_dict(self._raw(
            type="MULTIPLE_CHOICE", options=["A", "B", "C"], correctAnswer="B",
        ))
        assert q.options == ["A", "B", "C"]

    @pytest.mark.parametrize("missing", ["question", "type", "difficulty", "correctAnswer"])
    def test_missing_field_rejected(self, missing):
        data = self._raw()
        del data[missing]
        with pytest.raises(ValueError, match=missing):
            QuizQuestion.from_dict(data)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError, match="question type"):
            QuizQuestion.from_dict(self._raw(type="ESSAY"))

    def test_unknown_difficulty_rejected(self):
        with pytest.raises(ValueError, match="difficulty"):
            QuizQuestion.from_dict(self._raw(difficulty="extreme"))

    def test_to_dict_can_hide_answer(self):
        q = QuizQuestion.from_dict(self._raw())
        assert "correctAnswer" in q.to_dict()
        hidden = q.to_dict(include_answer=False)
        assert "correctAnswer" not in hidden
        assert hidden["type"] == "TRUE_FALSE"

    def test_difficulty_rank_order(self):
        assert DIFFICULTY_RANK["easy"] < DIFFICULTY_RANK["medium"] < DIFFICULTY_RANK["hard"]


class TestQuizFeedbackItem:
    def _raw(self, **overrides):
        data = {
            "question": "What is the powerhouse of the cell?",
            "userAnswer": "Mitochondria",
            "correctAnswer": "Mitochondria",
            "feedback": "Correct, it produces ATP.",
            "isCorrect": True,
        }
        data.update(overrides)
        return data

    def test_round_trip_shape(self):
        item = QuizFeedbackItem.from_dict(self._raw())
        assert item.to_dict() == self._raw()

    def test_string_boolean_coerced(self):
        assert QuizFeedbackItem.from_dict(self._raw(isCorrect="true")).is_correct is True
        assert QuizFeedbackItem.from_dict(self._raw(isCorrect="False")).is_correct is False

    def test_missing_field_rejected(self):
        data = self._raw()
        del data["feedback"]
        with pytest.raises(ValueError, match="feedback"):
            QuizFeedbackItem.from_dict(data)
