"""Quiz routes — start, answer, feedback, finish (HTML and JSON)."""

from __future__ import annotations

from flask import Blueprint, abort, flash, jsonify, redirect, render_template, request, url_for
from flask_babel import gettext
from flask_login import login_required

from audit import log_event
from db_stores import NoteNotFoundError
from extensions import AgentManager, limiter
from helpers import clear_quiz, current_user_id, load_quiz, note_store, save_quiz
from quiz_session import InvalidQuizTransition, QuizSession, QuizState
from scheduling import now_ms

bp = Blueprint("quiz", __name__)


def _start_quiz(note_id: str, practice: bool) -> QuizSession:
    note = note_store().get(note_id)
    quiz = QuizSession(note=note, is_practice=practice)
    quiz.start(AgentManager.get_quiz_agent())
    save_quiz(quiz)
    log_event(
        "quiz_started", current_user_id(),
        f"note={note.id} practice={practice} state={quiz.state.value}",
    )
    return quiz


def _rejected_submit_message(quiz: QuizSession) -> str:
    if quiz.state == QuizState.FAILED:
        return gettext("This quiz could not be generated. Start a new one from the dashboard.")
    return gettext("This quiz has already been submitted.")


def _submit_quiz(quiz: QuizSession) -> None:
    quiz.submit(AgentManager.get_quiz_agent(), note_store(), now_ms())
    save_quiz(quiz)
    if quiz.state == QuizState.COMPLETE:
        log_event(
            "quiz_submitted", current_user_id(),
            f"note={quiz.note.id} practice={quiz.is_practice} "
            f"correct={quiz.correct_count}/{len(quiz.feedback)}",
        )


# ── HTML views ───────────────────────────────────────────────────────


@bp.route("/quiz/start/<note_id>", methods=["POST"])
@login_required
@limiter.limit("30 per hour")
def start(note_id):
    practice = request.form.get("practice") == "1"
    try:
        _start_quiz(note_id, practice)
    except NoteNotFoundError:
        abort(404)
    return redirect(url_for("quiz.view"))


@bp.route("/quiz")
@login_required
def view():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("core.dashboard"))
    return render_template("quiz.html", quiz=quiz, states=QuizState)


@bp.route("/quiz/submit", methods=["POST"])
@login_required
@limiter.limit("30 per hour")
def submit():
    quiz = load_quiz()
    if quiz is None:
        return redirect(url_for("core.dashboard"))
    try:
        quiz.set_answers([request.form.get(f"answer_{i}", "") for i in range(len(quiz.answers))])
        _submit_quiz(quiz)
    except InvalidQuizTransition:
        flash(_rejected_submit_message(quiz), "error")
    except NoteNotFoundError:
        clear_quiz()
        abort(404)
    return redirect(url_for("quiz.view"))


@bp.route("/quiz/finish", methods=["POST"])
@login_required
def finish():
    clear_quiz()
    return redirect(url_for("core.dashboard"))


# ── JSON API ─────────────────────────────────────────────────────────


@bp.route("/api/quiz/start", methods=["POST"])
@login_required
@limiter.limit("30 per hour")
def api_start():
    data = request.get_json(silent=True) or {}
    note_id = data.get("note_id", "")
    if not note_id:
        return jsonify({"error": gettext("note_id is required")}), 400

    try:
        quiz = _start_quiz(note_id, bool(data.get("practice", False)))
    except NoteNotFoundError:
        return jsonify({"error": gettext("Note not found")}), 404

    if quiz.state == QuizState.FAILED:
        return jsonify({"error": quiz.error}), 502
    return jsonify({
        "state": quiz.state.value,
        "practice": quiz.is_practice,
        "quiz": [q.to_dict(include_answer=False) for q in quiz.questions],
    })


@bp.route("/api/quiz/submit", methods=["POST"])
@login_required
@limiter.limit("30 per hour")
def api_submit():
    data = request.get_json(silent=True) or {}
    answers = data.get("answers")
    if not isinstance(answers, list):
        return jsonify({"error": gettext("answers must be a list")}), 400

    quiz = load_quiz()
    if quiz is None:
        return jsonify({"error": gettext("No quiz in progress")}), 409

    try:
        quiz.set_answers([str(a) if a is not None else "" for a in answers])
        _submit_quiz(quiz)
    except InvalidQuizTransition:
        return jsonify({"error": _rejected_submit_message(quiz), "state": quiz.state.value}), 409
    except NoteNotFoundError:
        clear_quiz()
        return jsonify({"error": gettext("Note not found")}), 404

    if quiz.state != QuizState.COMPLETE:
        return jsonify({"error": quiz.error}), 502
    return jsonify({
        "state": quiz.state.value,
        "reviewed": not quiz.is_practice,
        "correct": quiz.correct_count,
        "feedback": [f.to_dict() for f in quiz.feedback],
    })
