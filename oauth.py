"""Google OAuth integration — the only way to log in."""

from __future__ import annotations

import logging

from authlib.integrations.flask_client import OAuth
from flask import Blueprint, current_app, flash, redirect, url_for
from flask_babel import gettext
from flask_login import login_user

from audit import log_event
from auth import User
from models import GoogleUser

logger = logging.getLogger(__name__)

oauth_bp = Blueprint("oauth", __name__)

_oauth_registry: OAuth | None = None


def _get_oauth() -> OAuth | None:
    return _oauth_registry


def init_oauth(app) -> None:
    """Initialize OAuth with the Flask app. Call from create_app()."""
    global _oauth_registry
    client_id = app.config.get("GOOGLE_OAUTH_CLIENT_ID", "")
    if not client_id:
        logger.info("GOOGLE_OAUTH_CLIENT_ID not set — Google OAuth disabled")
        return

    oauth = OAuth()
    oauth.init_app(app)
    oauth.register(
        name="google",
        client_id=client_id,
        client_secret=app.config.get("GOOGLE_OAUTH_CLIENT_SECRET", ""),
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )
    _oauth_registry = oauth


def is_oauth_available() -> bool:
    """Check if Google OAuth is configured."""
    client_id = current_app.config.get("GOOGLE_OAUTH_CLIENT_ID", "")
    return bool(client_id) and _get_oauth() is not None


def google_user_from_claims(claims: dict) -> GoogleUser:
    """Decode OpenID userinfo claims into the profile we keep."""
    email = (claims.get("email") or "").strip().lower()
    if not email:
        raise ValueError("Google did not return an email address")
    name = claims.get("name") or email.split("@")[0]
    return GoogleUser(name=name, email=email, picture=claims.get("picture") or "")


@oauth_bp.route("/login/google")
def google_login():
    """Redirect to Google OAuth consent screen."""
    if not is_oauth_available():
        flash(gettext("Google login is not configured."), "error")
        return redirect(url_for("auth.login"))

    redirect_uri = url_for("oauth.google_callback", _external=True)
    return _get_oauth().google.authorize_redirect(redirect_uri)


@oauth_bp.route("/callback/google")
def google_callback():
    """Handle Google OAuth callback."""
    if not is_oauth_available():
        flash(gettext("Google login is not configured."), "error")
        return redirect(url_for("auth.login"))

    oauth = _get_oauth()
    try:
        token = oauth.google.authorize_access_token()
        claims = token.get("userinfo") or oauth.google.userinfo()
    except Exception as e:
        logger.error("Google OAuth error: %s", e)
        flash(gettext("Google login failed. Please try again."), "error")
        return redirect(url_for("auth.login"))

    google_id = claims.get("sub", "")
    try:
        profile = google_user_from_claims(claims)
    except ValueError:
        flash(gettext("Could not get email from Google. Please try again."), "error")
        return redirect(url_for("auth.login"))
    if not google_id:
        flash(gettext("Google login failed. Please try again."), "error")
        return redirect(url_for("auth.login"))

    user, created = User.upsert_google(google_id, profile)
    login_user(user, remember=True)
    log_event("register_google" if created else "login_google", user.id, f"email={profile.email}")
    return redirect(url_for("core.dashboard"))
