"""
Test fixtures for AI Study Buddy.

Provides app, client, auth_client, db and fake_agent fixtures with
file-based SQLite. The Gemini SDK is replaced globally so no test can
reach the network.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from agents.base import FeedbackError, QuizGenerationError  # noqa: E402
from models import QuestionType, QuizFeedbackItem, QuizQuestion  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def mock_gemini():
    """Mock Google Generative AI globally to prevent API calls."""
    with patch.dict("sys.modules", {"google.generativeai": MagicMock()}):
        yield


@pytest.fixture(autouse=True)
def reset_circuit_breaker():
    from ai_resilience import get_circuit_breaker
    get_circuit_breaker().reset()
    yield
    get_circuit_breaker().reset()


class FakeQuizAgent:
    """Scripted stand-in for QuizAgent; records what it was asked."""

    def __init__(self):
        self.questions = [
            QuizQuestion("Hash tables map keys with a hash function.", QuestionType.TRUE_FALSE, "medium", "True"),
            QuizQuestion("Why does open addressing degrade at high load?", QuestionType.SHORT_ANSWER, "hard", "Primary clustering"),
            QuizQuestion("What resolves collisions with linked lists?", QuestionType.SHORT_ANSWER, "easy", "Chaining"),
        ]
        self.fail_generate = False
        self.fail_feedback = False
        self.generate_calls = []
        self.feedback_calls = []

    def generate_quiz(self, note_content):
        self.generate_calls.append(note_content)
        if self.fail_generate:
            raise QuizGenerationError("Could not generate a quiz. Please try again.")
        return list(self.questions)

    def get_feedback(self, note, questions, answers):
        self.feedback_calls.append((note, list(questions), list(answers)))
        if self.fail_feedback:
            raise FeedbackError("Could not get feedback on your answers. Please try again.")
        return [
            QuizFeedbackItem(
                question=q.question,
                user_answer=answers[i] or "No answer provided",
                correct_answer=q.correct_answer,
                feedback="Well reasoned." if answers[i] == q.correct_answer else "Review this concept.",
                is_correct=answers[i] == q.correct_answer,
            )
            for i, q in enumerate(questions)
        ]


@pytest.fixture
def fake_agent():
    return FakeQuizAgent()


@pytest.fixture
def app(tmp_path, fake_agent):
    """Create app with file-based SQLite for testing."""
    from app import create_app
    from extensions import AgentManager

    app = create_app({
        "TESTING": True,
        "DATABASE": str(tmp_path / "test.db"),
        "SECRET_KEY": "test-secret-key",
        "WTF_CSRF_ENABLED": False,
        "TIMEZONE": "UTC",
    })
    AgentManager.set_quiz_agent(fake_agent)

    with app.app_context():
        from database import get_db, init_db, run_migrations

        init_db()
        run_migrations()
        app._db_initialized = True

        db = get_db()
        db.execute(
            "INSERT INTO users (id, name, email, picture, oauth_provider, oauth_id, created_at) "
            "VALUES (1, 'Test Student', 'test@example.com', 'https://example.com/me.png', "
            "'google', 'google-1', ?)",
            (datetime.now().isoformat(),),
        )
        db.commit()

        yield app

    AgentManager.reset()


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def auth_client(app):
    """Authenticated test client (logged in as test user)."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["_user_id"] = "1"
        sess["_fresh"] = True
    return client


@pytest.fixture
def db(app):
    """Direct database access for store tests."""
    from database import get_db
    yield get_db()
