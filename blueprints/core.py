"""Core routes — landing redirect, dashboard, health check."""

from __future__ import annotations

from flask import Blueprint, jsonify, redirect, render_template, url_for
from flask_login import current_user, login_required

from helpers import note_store
from scheduling import next_review_date, now_ms

bp = Blueprint("core", __name__)


@bp.route("/")
def index():
    if current_user.is_authenticated:
        return redirect(url_for("core.dashboard"))
    return redirect(url_for("auth.login"))


@bp.route("/dashboard")
@login_required
def dashboard():
    store = note_store()
    due, others = store.split_due(now_ms())
    return render_template(
        "dashboard.html",
        due_notes=due,
        other_notes=others,
        total=len(due) + len(others),
        next_review=next_review_date,
    )


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})
