"""
User session handling — Flask-Login.

Identity always comes from Google (see oauth.py); this module owns the
User model, the login page and logout.
"""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, redirect, render_template, url_for
from flask_babel import gettext
from flask_login import LoginManager, UserMixin, current_user, logout_user

from audit import log_event
from database import get_db
from models import GoogleUser

auth_bp = Blueprint("auth", __name__)
login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please log in to continue."
login_manager.localize_callback = gettext


class User(UserMixin):
    """Wraps a DB user row for Flask-Login."""

    def __init__(self, id: int, name: str, email: str, picture: str = ""):
        self.id = id
        self.name = name
        self.email = email
        self.picture = picture

    @property
    def profile(self) -> GoogleUser:
        return GoogleUser(name=self.name, email=self.email, picture=self.picture)

    @staticmethod
    def _from_row(row) -> User:
        return User(row["id"], row["name"], row["email"], row["picture"])

    @staticmethod
    def get(user_id: int):
        db = get_db()
        row = db.execute(
            "SELECT id, name, email, picture FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return User._from_row(row) if row else None

    @staticmethod
    def upsert_google(google_id: str, profile: GoogleUser) -> tuple[User, bool]:
        """Find or create the user for a Google identity.

        Matches on the Google subject first, then links an existing account
        with the same email. The stored name and picture are refreshed on
        every login. Returns (user, created).
        """
        db = get_db()
        row = db.execute(
            "SELECT id FROM users WHERE oauth_provider = 'google' AND oauth_id = ?",
            (google_id,),
        ).fetchone()
        if row is None:
            row = db.execute("SELECT id FROM users WHERE email = ?", (profile.email,)).fetchone()

        if row:
            db.execute(
                "UPDATE users SET name = ?, email = ?, picture = ?, "
                "oauth_provider = 'google', oauth_id = ? WHERE id = ?",
                (profile.name, profile.email, profile.picture, google_id, row["id"]),
            )
            db.commit()
            return User(row["id"], profile.name, profile.email, profile.picture), False

        cur = db.execute(
            "INSERT INTO users (name, email, picture, oauth_provider, oauth_id, created_at) "
            "VALUES (?, ?, ?, 'google', ?, ?)",
            (profile.name, profile.email, profile.picture, google_id, datetime.now().isoformat()),
        )
        db.commit()
        return User(cur.lastrowid, profile.name, profile.email, profile.picture), True


@login_manager.user_loader
def load_user(user_id):
    return User.get(int(user_id))


@auth_bp.route("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("core.dashboard"))
    return render_template("login.html")


@auth_bp.route("/logout")
def logout():
    uid = current_user.id if current_user.is_authenticated else None
    log_event("logout", uid)
    logout_user()
    return redirect(url_for("auth.login"))
