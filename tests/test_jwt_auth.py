"""
JWT service & identity middleware tests, plus the CLI helpers that mint
tokens and promote SuperAdmins.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from civifix.models.profile import UserProfile
from civifix.services.jwt_service import decode_access_token, generate_access_token


class TestJWTService:

    def test_round_trip_subject(self, app):
        payload = decode_access_token(generate_access_token("user-42"))
        assert payload["sub"] == "user-42"
        assert payload["type"] == "access"
        assert "jti" in payload

    def test_expired_token(self, app):
        token = generate_access_token("user-42", expires_in=-10)
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_wrong_token_type(self, app):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {"sub": "user-42", "type": "refresh", "iat": now, "exp": now + timedelta(minutes=5)},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.InvalidTokenError):
            decode_access_token(token)

    def test_wrong_secret(self, app):
        token = pyjwt.encode({"sub": "x", "type": "access"}, "other-secret", algorithm="HS256")
        with pytest.raises(pyjwt.InvalidSignatureError):
            decode_access_token(token)


class TestIdentityMiddleware:

    def test_expired_token_means_anonymous(self, client):
        token = generate_access_token("user-42", expires_in=-10)
        res = client.get("/api/v1/profile/me", headers={"Authorization": f"Bearer {token}"})
        assert res.get_json() == {"profile": None}
        res = client.get("/api/v1/issues/mine", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_non_bearer_scheme_ignored(self, client):
        res = client.get("/api/v1/issues/mine", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert res.status_code == 401

    def test_valid_token_sets_identity(self, client, auth_headers):
        res = client.get("/api/v1/issues/mine", headers=auth_headers("user-42"))
        assert res.status_code == 200
        assert res.get_json() == []


class TestCLI:

    def test_promote_superadmin_creates_profile(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["promote-superadmin", "root", "--name", "Root", "--phone", "1"])
        assert result.exit_code == 0, result.output
        assert "is now SuperAdmin" in result.output
        assert UserProfile.query.filter_by(owner_user_id="root").one().role == "SuperAdmin"

    def test_promote_superadmin_requires_name_for_new_user(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["promote-superadmin", "root"])
        assert result.exit_code != 0
        assert UserProfile.query.count() == 0

    def test_issue_token(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["issue-token", "user-7"])
        assert result.exit_code == 0
        assert decode_access_token(result.output.strip())["sub"] == "user-7"
