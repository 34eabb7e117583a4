"""API tests for login, password rules and the reset flow."""

from unittest.mock import patch

import requests

from salestrack.core.config import settings
from salestrack.core.hashing import verify_password
from salestrack.services import users as user_service

from conftest import PASSWORD, auth_headers, make_user


class TestLogin:
    def test_login_returns_token_and_role(self, client, julie):
        response = client.post("/auth/login", data={"username": "Julie ", "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["role"] == "employee"

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.json()["username"] == "julie"

    def test_wrong_password(self, client, julie):
        response = client.post("/auth/login", data={"username": "julie", "password": "nope"})
        assert response.status_code == 401

    def test_inactive_user_is_refused(self, client, db):
        make_user(db, "ghost", is_active=False)
        response = client.post("/auth/login", data={"username": "ghost", "password": PASSWORD})
        assert response.status_code == 403

    def test_token_of_deactivated_user_stops_working(self, client, db, julie):
        headers = auth_headers(julie)
        julie.is_active = False
        db.commit()

        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestPasswordRules:
    def test_rules_listed(self, client):
        body = client.get("/auth/password-rules").json()
        assert [rule["key"] for rule in body] == [
            "has_min_length", "has_uppercase", "has_lowercase", "has_number", "has_special_char",
            "within_max_length",
        ]

    def test_password_check(self, client):
        body = client.post("/auth/password-check", json={"password": "Secret123!"}).json()
        assert body["is_valid"] is True

        body = client.post("/auth/password-check", json={"password": "secret"}).json()
        assert body["is_valid"] is False
        assert body["has_lowercase"] is True

    def test_change_password(self, client, db, julie):
        response = client.post(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "Another1!"},
            headers=auth_headers(julie),
        )
        assert response.status_code == 200

        db.refresh(julie)
        assert verify_password("Another1!", julie.password_hash)

    def test_change_password_rejects_weak(self, client, julie):
        response = client.post(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "weak"},
            headers=auth_headers(julie),
        )
        assert response.status_code == 422
        assert "new_password" in response.json()["errors"]


class TestForgotPassword:
    def test_response_is_generic(self, client, julie):
        with patch("salestrack.routers.auth.send_password_reset_link") as send:
            known = client.post("/auth/forgot-password", json={"username": "julie"})
            unknown = client.post("/auth/forgot-password", json={"username": "nobody"})

        assert known.json() == unknown.json()
        assert send.call_count == 1
        assert send.call_args.args[0] == "julie@example.com"

    def test_user_without_email_goes_to_admin(self, client, sherman):
        with patch("salestrack.routers.auth.send_reset_request_to_admin") as send:
            client.post("/auth/forgot-password", json={"username": "sherman"})

        assert send.call_args.args[0] == "sherman"

    def test_email_failure_is_not_surfaced(self, client, julie):
        with patch("salestrack.core.email.requests.post", side_effect=requests.ConnectionError("boom")) as post, \
                patch.object(settings, "RESEND_API_KEY", "re_test"):
            response = client.post("/auth/forgot-password", json={"username": "julie"})

        assert response.status_code == 200
        assert post.call_count == 1

    def test_reset_with_token(self, client, db, julie):
        _, raw_token = user_service.issue_reset_token(db, "julie")

        check = client.post("/auth/validate-reset-token", json={"username": "julie", "token": raw_token})
        assert check.json() == {"valid": True}

        response = client.post(
            "/auth/reset-password",
            json={"username": "julie", "token": raw_token, "new_password": "Reset-Pass9"},
        )
        assert response.status_code == 200

        login = client.post("/auth/login", data={"username": "julie", "password": "Reset-Pass9"})
        assert login.status_code == 200

    def test_invalid_token_is_not_found(self, client, julie):
        response = client.post(
            "/auth/reset-password",
            json={"username": "julie", "token": "wrong", "new_password": "Reset-Pass9"},
        )
        assert response.status_code == 404
