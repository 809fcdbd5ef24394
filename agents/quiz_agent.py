"""Quiz Agent — review quizzes and answer feedback from a study note.

Both calls ask Gemini for JSON constrained by a response schema, then
validate the result into domain objects. Any failure (network, circuit
breaker, malformed output) surfaces as one user-facing message.
"""

from __future__ import annotations

import json
import logging

from flask_babel import gettext

from agents.base import FeedbackError, QuizGenerationError, parse_json_object
from models import DIFFICULTIES, QuestionType, QuizFeedbackItem, QuizQuestion, StudyNote

logger = logging.getLogger(__name__)

NO_ANSWER = "No answer provided"

QUIZ_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "quiz": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {
                        "type": "STRING",
                        "description": "The question text.",
                    },
                    "type": {
                        "type": "STRING",
                        "format": "enum",
                        "enum": [t.value for t in QuestionType],
                        "description": "The type of question.",
                    },
                    "options": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "Choices for MULTIPLE_CHOICE questions; omit for other types.",
                    },
                    "difficulty": {
                        "type": "STRING",
                        "format": "enum",
                        "enum": list(DIFFICULTIES),
                        "description": "The difficulty of the question.",
                    },
                    "correctAnswer": {
                        "type": "STRING",
                        "description": "The correct answer. For TRUE_FALSE it is 'True' or 'False'.",
                    },
                },
                "required": ["question", "type", "difficulty", "correctAnswer"],
            },
        },
    },
    "required": ["quiz"],
}

FEEDBACK_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "feedback": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "userAnswer": {"type": "STRING"},
                    "correctAnswer": {"type": "STRING"},
                    "feedback": {
                        "type": "STRING",
                        "description": "A short explanation of the correct answer and the concept behind it.",
                    },
                    "isCorrect": {
                        "type": "BOOLEAN",
                        "description": "Whether the student's answer was correct.",
                    },
                },
                "required": ["question", "userAnswer", "correctAnswer", "feedback", "isCorrect"],
            },
        },
    },
    "required": ["feedback"],
}

QUIZ_PROMPT = """You are an expert tutor. Build a high-quality review quiz from the study note below, even if the note is short or incomplete. The goal is real understanding, not recall of the note's wording.

1. Identify the core concepts and keywords in the note.
2. Use your own background knowledge to fill gaps around those concepts.
3. Write {count} varied questions: one 'easy', one 'medium' and one 'hard'. Prefer questions that need reasoning over rote memorisation.
4. Give a clear, concise correct answer for every question.

Mix SHORT_ANSWER and TRUE_FALSE questions. The student answers TRUE_FALSE questions with 'True' or 'False', and correctAnswer must be one of those two words.

Everything you write (questions, options, answers) must be in {language}.

Study note:
---
{note}
---

Return the quiz in the requested JSON format."""

FEEDBACK_PROMPT = """You are a supportive teacher giving feedback on a student's quiz. Write all feedback in {language}.

For each question:
1. Compare the student's answer with the correct answer given below.
2. Give credit for partial understanding of the core concept, and say what was right.
3. If correct, praise briefly and reinforce the key idea. If partly correct, confirm the good parts and explain what is missing. If wrong, explain the correct answer and why, tied back to the concept. Stay encouraging.
4. Use the study note as context, but draw on your own knowledge to make the explanation useful. Copy each question's correctAnswer from the input into your output unchanged.

Study note:
---
{note}
---

Questions, correct answers and the student's answers:
---
{submissions}
---

Return the feedback in the requested JSON format."""


class QuizAgent:
    """Generates review quizzes and grades answers with Gemini."""

    AGENT_NAME = "quiz_agent"
    QUESTION_COUNT = 3

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.5-flash",
        language: str = "Korean",
        max_attempts: int = 1,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.language = language
        self.max_attempts = max_attempts

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def generate_quiz(self, note_content: str) -> list[QuizQuestion]:
        """Ask the model for a quiz on ``note_content``, in model order."""
        prompt = QUIZ_PROMPT.format(
            count=self.QUESTION_COUNT,
            language=self.language,
            note=note_content,
        )
        try:
            raw = self._call_llm(prompt, QUIZ_SCHEMA)
            items = parse_json_object(raw, "quiz")
            questions = [QuizQuestion.from_dict(item) for item in items]
        except Exception:
            logger.exception("Quiz generation failed (model=%s)", self.model)
            raise QuizGenerationError(gettext("Could not generate a quiz. Please try again.")) from None
        if not questions:
            logger.error("Quiz generation returned no questions (model=%s)", self.model)
            raise QuizGenerationError(gettext("Could not generate a quiz. Please try again."))
        return questions

    def get_feedback(
        self,
        note: StudyNote,
        questions: list[QuizQuestion],
        answers: list[str],
    ) -> list[QuizFeedbackItem]:
        """Grade ``answers`` against ``questions`` with the note as context."""
        submissions = [
            {
                "question": q.question,
                "userAnswer": (answers[i] if i < len(answers) else "") or NO_ANSWER,
                "correctAnswer": q.correct_answer,
            }
            for i, q in enumerate(questions)
        ]
        prompt = FEEDBACK_PROMPT.format(
            language=self.language,
            note=note.content,
            submissions=json.dumps(submissions, ensure_ascii=False, indent=2),
        )
        try:
            raw = self._call_llm(prompt, FEEDBACK_SCHEMA)
            items = parse_json_object(raw, "feedback")
            return [QuizFeedbackItem.from_dict(item) for item in items]
        except Exception:
            logger.exception("Feedback generation failed (model=%s, note=%s)", self.model, note.id)
            raise FeedbackError(gettext("Could not get feedback on your answers. Please try again.")) from None

    def _call_llm(self, prompt: str, schema: dict) -> str:
        """Call Gemini through the resilience layer."""
        from ai_resilience import resilient_llm_call

        if not self.available:
            raise RuntimeError("GOOGLE_API_KEY is not configured")
        text, _ = resilient_llm_call(
            self.model,
            prompt,
            response_schema=schema,
            max_attempts=self.max_attempts,
            api_key=self.api_key,
        )
        return text
