"""Google OAuth tests."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from models import GoogleUser


class TestOAuthDisabled:
    """Behavior when OAuth is not configured."""

    def test_google_login_redirect_when_not_configured(self, client):
        resp = client.get("/login/google", follow_redirects=True)
        assert resp.status_code == 200
        assert b"Google login is not configured" in resp.data

    def test_google_callback_redirect_when_not_configured(self, client):
        resp = client.get("/callback/google")
        assert resp.status_code == 302
        assert "/login" in resp.headers["Location"]

    def test_is_oauth_available_without_config(self, app):
        from oauth import is_oauth_available
        assert is_oauth_available() is False

    def test_oauth_blueprint_registered(self, app):
        rules = [rule.rule for rule in app.url_map.iter_rules()]
        assert "/login/google" in rules
        assert "/callback/google" in rules


class TestClaims:
    def test_decodes_profile(self):
        from oauth import google_user_from_claims
        user = google_user_from_claims({
            "sub": "123",
            "email": "Minji.Kim@Example.com",
            "name": "Minji Kim",
            "picture": "https://lh3.googleusercontent.com/a/pic",
        })
        assert user == GoogleUser("Minji Kim", "minji.kim@example.com", "https://lh3.googleusercontent.com/a/pic")

    def test_name_falls_back_to_email(self):
        from oauth import google_user_from_claims
        user = google_user_from_claims({"email": "student@example.com"})
        assert user.name == "student"
        assert user.picture == ""

    def test_missing_email(self):
        from oauth import google_user_from_claims
        with pytest.raises(ValueError):
            google_user_from_claims({"sub": "123", "name": "No Email"})


class TestUpsertGoogle:
    def test_creates_new_user(self, app, db):
        from auth import User
        user, created = User.upsert_google("google-999", GoogleUser("New Person", "new@example.com", "pic"))
        assert created is True
        row = db.execute("SELECT * FROM users WHERE id = ?", (user.id,)).fetchone()
        assert row["oauth_provider"] == "google"
        assert row["oauth_id"] == "google-999"
        assert row["picture"] == "pic"

    def test_matches_by_google_id_and_refreshes_profile(self, app, db):
        from auth import User
        user, created = User.upsert_google(
            "google-1", GoogleUser("Renamed Student", "test@example.com", "new-pic"),
        )
        assert created is False
        assert user.id == 1
        row = db.execute("SELECT name, picture FROM users WHERE id = 1").fetchone()
        assert row["name"] == "Renamed Student"
        assert row["picture"] == "new-pic"

    def test_links_existing_account_by_email(self, app, db):
        from auth import User
        db.execute(
            "INSERT INTO users (id, name, email, created_at) VALUES (5, 'Legacy', 'legacy@example.com', '')"
        )
        db.commit()
        user, created = User.upsert_google("google-5", GoogleUser("Legacy User", "legacy@example.com"))
        assert created is False
        assert user.id == 5
        row = db.execute("SELECT oauth_id FROM users WHERE id = 5").fetchone()
        assert row["oauth_id"] == "google-5"


class TestCallback:
    def _oauth(self, token=None, error=None):
        registry = MagicMock()
        if error is not None:
            registry.google.authorize_access_token.side_effect = error
        else:
            registry.google.authorize_access_token.return_value = token
        return registry

    def test_login_redirects_to_google(self, client):
        registry = MagicMock()
        registry.google.authorize_redirect.return_value = ("", 302, {"Location": "https://accounts.google.com/o"})
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=registry):
            resp = client.get("/login/google")
        assert resp.status_code == 302
        redirect_uri = registry.google.authorize_redirect.call_args[0][0]
        assert redirect_uri.endswith("/callback/google")

    def test_callback_creates_user_and_logs_in(self, app, client, db):
        token = {"userinfo": {
            "sub": "google-new", "email": "fresh@example.com",
            "name": "Fresh Student", "picture": "https://lh3.googleusercontent.com/x",
        }}
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=self._oauth(token=token)):
            resp = client.get("/callback/google")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/dashboard")

        row = db.execute("SELECT id, name FROM users WHERE email = 'fresh@example.com'").fetchone()
        assert row["name"] == "Fresh Student"
        audit = db.execute("SELECT action FROM audit_log WHERE user_id = ?", (row["id"],)).fetchone()
        assert audit["action"] == "register_google"

        with client.session_transaction() as sess:
            assert sess["_user_id"] == str(row["id"])

    def test_callback_existing_user(self, app, client, db):
        token = {"userinfo": {"sub": "google-1", "email": "test@example.com", "name": "Test Student"}}
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=self._oauth(token=token)):
            client.get("/callback/google")
        actions = [r["action"] for r in db.execute("SELECT action FROM audit_log WHERE user_id = 1")]
        assert actions == ["login_google"]
        assert db.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1

    def test_callback_token_error(self, client, db):
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=self._oauth(error=RuntimeError("mismatching_state"))):
            resp = client.get("/callback/google", follow_redirects=True)
        assert b"Google login failed" in resp.data
        assert db.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1

    def test_callback_without_email(self, client):
        token = {"userinfo": {"sub": "google-x", "name": "Nobody"}}
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=self._oauth(token=token)):
            resp = client.get("/callback/google", follow_redirects=True)
        assert b"Could not get email from Google" in resp.data

    def test_callback_without_subject(self, client, db):
        token = {"userinfo": {"email": "nosub@example.com", "name": "No Sub"}}
        with patch("oauth.is_oauth_available", return_value=True), \
                patch("oauth._get_oauth", return_value=self._oauth(token=token)):
            resp = client.get("/callback/google", follow_redirects=True)
        assert b"Google login failed" in resp.data
        assert db.execute("SELECT id FROM users WHERE email = 'nosub@example.com'").fetchone() is None
