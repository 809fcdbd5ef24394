"""
DB-backed store classes for AI Study Buddy.

KeyValueStoreDB keeps one JSON blob per (user, key), the server-side
counterpart of a browser's key-value storage. StudyNoteStoreDB keeps the
user's whole note list under a single key.
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import datetime, tzinfo
from typing import Any, Optional

from flask_babel import gettext

from database import get_db, transaction
from models import StudyNote
from scheduling import compute_review_dates, split_due

logger = logging.getLogger(__name__)

NOTES_KEY = "study-notes"


class NoteValidationError(ValueError):
    """Raised when note content is rejected."""


class NoteNotFoundError(LookupError):
    """Raised when a note id does not exist for the user."""


# ── Key-Value Store ──────────────────────────────────────────────────


class KeyValueStoreDB:
    """JSON values under string keys, scoped to one user. Last write wins."""

    def __init__(self, user_id: int):
        self.user_id = user_id

    def get(self, key: str, default: Any = None) -> Any:
        db = get_db()
        row = db.execute(
            "SELECT value FROM kv_store WHERE user_id=? AND key=?", (self.user_id, key)
        ).fetchone()
        if not row:
            return default
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Unreadable value for key %r (user_id=%s); using default", key, self.user_id)
            return default

    def set(self, key: str, value: Any) -> None:
        """Upsert ``value``. Inside an open transaction() the caller commits."""
        with transaction() as db:
            db.execute(
                "INSERT INTO kv_store (user_id, key, value, updated_at) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                (self.user_id, key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat()),
            )


# ── Study Notes ──────────────────────────────────────────────────────


class StudyNoteStoreDB:
    """The user's study notes, stored as one JSON list."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        self._kv = KeyValueStoreDB(user_id)

    @property
    def notes(self) -> list[StudyNote]:
        raw = self._kv.get(NOTES_KEY, [])
        if not isinstance(raw, list):
            return []
        notes = []
        for item in raw:
            try:
                notes.append(StudyNote.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed note for user_id=%s: %r", self.user_id, item)
        return notes

    def _save(self, notes: list[StudyNote]) -> None:
        self._kv.set(NOTES_KEY, [n.to_dict() for n in notes])

    def get(self, note_id: str) -> StudyNote:
        for note in self.notes:
            if note.id == note_id:
                return note
        raise NoteNotFoundError(note_id)

    def add(self, content: str, now: int, tz: Optional[tzinfo] = None) -> StudyNote:
        content = (content or "").strip()
        if not content:
            raise NoteValidationError(gettext("Note content cannot be empty."))

        note = StudyNote(
            id=f"note-{now}",
            content=content,
            created_at=now,
            review_dates=compute_review_dates(now, tz),
            last_reviewed=None,
        )
        # The list is read and rewritten whole; hold the write lock across both
        with transaction():
            notes = self.notes
            if any(n.id == note.id for n in notes):
                note.id = f"{note.id}-{secrets.token_hex(2)}"
            notes.append(note)
            self._save(notes)
        return note

    def mark_reviewed(self, note_id: str, now: int) -> StudyNote:
        with transaction():
            notes = self.notes
            for note in notes:
                if note.id == note_id:
                    note.last_reviewed = now
                    self._save(notes)
                    return note
        raise NoteNotFoundError(note_id)

    def split_due(self, now: int) -> tuple[list[StudyNote], list[StudyNote]]:
        return split_due(self.notes, now)
