"""Base types shared across AI agents."""

from __future__ import annotations

import json


class AgentError(Exception):
    """An AI call failed; ``str(exc)`` is safe to show the user."""


class QuizGenerationError(AgentError):
    pass


class FeedbackError(AgentError):
    pass


def parse_json_object(raw: str, key: str) -> list:
    """Decode a ``{key: [...]}`` response and return the list under ``key``."""
    text = (raw or "").strip()
    # Some models still wrap JSON in a markdown fence
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    parsed = json.loads(text)
    if not isinstance(parsed, dict) or not isinstance(parsed.get(key), list):
        raise ValueError(f"Response has no '{key}' list")
    return parsed[key]
