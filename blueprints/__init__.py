"""
Blueprint registration for AI Study Buddy.

All blueprints are registered without URL prefixes.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.notes import bp as notes_bp
    from blueprints.quiz import bp as quiz_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(notes_bp)
    app.register_blueprint(quiz_bp)
