"""
Shared helpers used across blueprints.
"""

from __future__ import annotations

from datetime import tzinfo
from typing import Optional

from flask import current_app, session as flask_session
from flask_login import current_user

from db_stores import StudyNoteStoreDB
from quiz_session import QuizSession
from scheduling import format_date, resolve_timezone

QUIZ_SESSION_KEY = "quiz"


def current_user_id() -> int:
    return current_user.id


def app_timezone() -> Optional[tzinfo]:
    return resolve_timezone(current_app.config.get("TIMEZONE", ""))


def note_store() -> StudyNoteStoreDB:
    return StudyNoteStoreDB(current_user_id())


def load_quiz() -> Optional[QuizSession]:
    data = flask_session.get(QUIZ_SESSION_KEY)
    if not data:
        return None
    return QuizSession.from_dict(data)


def save_quiz(quiz: QuizSession) -> None:
    flask_session[QUIZ_SESSION_KEY] = quiz.to_dict()


def clear_quiz() -> None:
    flask_session.pop(QUIZ_SESSION_KEY, None)


def register_template_filters(app) -> None:
    @app.template_filter("date")
    def _date_filter(ms):
        return format_date(ms, app_timezone())
