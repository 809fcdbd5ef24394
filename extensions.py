"""
Shared extension objects: rate limiter, i18n and the lazily built quiz agent.
"""

from __future__ import annotations

from flask import current_app
from flask_babel import Babel
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=["200 per hour"])

babel = Babel()

# QUIZ_LANGUAGE values that have a UI catalog
UI_LOCALES = {"Korean": "ko", "English": "en"}


def get_locale() -> str:
    """UI strings follow the quiz language unless UI_LOCALE pins one."""
    cfg = current_app.config
    return cfg.get("UI_LOCALE") or UI_LOCALES.get(cfg.get("QUIZ_LANGUAGE", ""), "en")


class AgentManager:
    """Lazy-loaded QuizAgent singleton configured from the current app."""

    _quiz_agent = None

    @classmethod
    def get_quiz_agent(cls):
        if cls._quiz_agent is None:
            from agents.quiz_agent import QuizAgent
            cfg = current_app.config
            cls._quiz_agent = QuizAgent(
                api_key=cfg.get("GOOGLE_API_KEY", ""),
                model=cfg.get("GEMINI_MODEL", "gemini-2.5-flash"),
                language=cfg.get("QUIZ_LANGUAGE", "Korean"),
                max_attempts=int(cfg.get("AI_MAX_ATTEMPTS", 1)),
            )
        return cls._quiz_agent

    @classmethod
    def set_quiz_agent(cls, agent) -> None:
        cls._quiz_agent = agent

    @classmethod
    def reset(cls):
        cls._quiz_agent = None
