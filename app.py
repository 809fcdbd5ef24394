"""
AI Study Buddy — Flask Web Application

Record study notes, get AI-generated review quizzes on a 1/3/7-day
forgetting-curve schedule, and review answers with AI feedback.
"""

from __future__ import annotations

import os
from typing import Any

from flask import Flask, Response
from flask_session import Session
from flask_wtf.csrf import CSRFProtect

import database
from auth import auth_bp, login_manager
from blueprints import register_blueprints
from extensions import AgentManager, babel, get_locale, limiter
from helpers import register_template_filters
from logging_config import init_logging
from oauth import init_oauth, is_oauth_available, oauth_bp

csrf = CSRFProtect()


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    # Structured logging
    init_logging(app)

    # CSRF protection
    csrf.init_app(app)

    # Server-side sessions hold quiz state; tests use signed cookies
    if not app.config.get("TESTING"):
        Session(app)

    # Register database teardown
    database.init_app(app)

    # i18n: UI strings in the configured locale
    babel.init_app(app, locale_selector=get_locale)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    # Quiz agent is rebuilt from this app's config on first use
    AgentManager.reset()

    # Auth, Google OAuth, and application blueprints
    app.register_blueprint(auth_bp)
    login_manager.init_app(app)
    init_oauth(app)
    app.register_blueprint(oauth_bp)
    register_blueprints(app)

    register_template_filters(app)

    @app.context_processor
    def template_helpers() -> dict[str, Any]:
        return {
            "google_oauth_available": is_oauth_available(),
            "ui_locale": get_locale(),
        }

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https://lh3.googleusercontent.com; "
            "connect-src 'self'"
        )
        if not app.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
