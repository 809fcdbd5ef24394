"""Study note routes — add-note form and JSON API."""

from __future__ import annotations

from flask import Blueprint, jsonify, redirect, render_template, request, url_for
from flask_login import login_required

from audit import log_event
from db_stores import NoteValidationError
from helpers import app_timezone, current_user_id, note_store
from scheduling import is_due, next_review_date, now_ms

bp = Blueprint("notes", __name__)


def _note_json(note, now: int) -> dict:
    data = note.to_dict()
    data["isDue"] = is_due(note, now)
    data["nextReview"] = next_review_date(note)
    return data


@bp.route("/notes/new", methods=["GET", "POST"])
@login_required
def add_note():
    if request.method == "POST":
        content = request.form.get("content", "")
        try:
            note = note_store().add(content, now_ms(), app_timezone())
        except NoteValidationError as e:
            return render_template("add_note.html", error=str(e), content=content), 400
        log_event("note_created", current_user_id(), f"note={note.id}")
        return redirect(url_for("core.dashboard"))

    return render_template("add_note.html")


@bp.route("/api/notes")
@login_required
def api_notes():
    now = now_ms()
    due, others = note_store().split_due(now)
    return jsonify({
        "due": [_note_json(n, now) for n in due],
        "other": [_note_json(n, now) for n in others],
        "total": len(due) + len(others),
    })


@bp.route("/api/notes", methods=["POST"])
@login_required
def api_create_note():
    data = request.get_json(silent=True) or {}
    now = now_ms()
    try:
        note = note_store().add(data.get("content", ""), now, app_timezone())
    except NoteValidationError as e:
        return jsonify({"error": str(e)}), 400
    log_event("note_created", current_user_id(), f"note={note.id}")
    return jsonify({"success": True, "note": _note_json(note, now)}), 201
