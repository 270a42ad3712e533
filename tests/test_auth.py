"""
Unit tests for authentication and staff account administration
"""

import pytest

from dentallab.auth.auth_handler import auth_handler
from dentallab.models.activity_log import ActivityLog
from dentallab.models.user import User


@pytest.fixture
def staff_user(db_session):
    user = User(
        username="recepcion",
        email="recepcion@example.com",
        hashed_password=auth_handler.get_password_hash("Clave1234"),
        first_name="Rosa",
        last_name="Mora",
        role="operador",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


class TestUserLogin:
    """Test cases for user login"""

    def test_login_with_username(self, client, staff_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "recepcion", "password": "Clave1234"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "operador"

        payload = auth_handler.verify_token(data["access_token"])
        assert payload["sub"] == str(staff_user.id)
        assert payload["role"] == "operador"

    def test_login_with_email(self, client, staff_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "RECEPCION@example.com", "password": "Clave1234"},
        )
        assert response.status_code == 200

    def test_login_wrong_password_is_audited(self, client, staff_user, db_session):
        response = client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "recepcion", "password": "incorrecta"},
        )

        assert response.status_code == 401
        entry = db_session.query(ActivityLog).one()
        assert entry.status_code == 401
        assert entry.username == "recepcion"

    def test_login_blocked_user(self, client, staff_user, db_session):
        staff_user.is_active = False
        db_session.commit()

        response = client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "recepcion", "password": "Clave1234"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Account is blocked"

    def test_get_current_user(self, client, staff_user):
        token = client.post(
            "/api/v1/auth/login",
            json={"username_or_email": "recepcion", "password": "Clave1234"},
        ).json()["access_token"]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["username"] == "recepcion"

    def test_invalid_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestUserAdministration:
    """Test cases for admin-only account management"""

    def test_admin_creates_user(self, client, admin_headers):
        response = client.post(
            "/api/v1/auth/users",
            json={
                "username": "Tecnico1",
                "email": "tecnico1@example.com",
                "first_name": "Juan",
                "last_name": "Ruiz",
                "password": "Clave1234",
                "confirm_password": "Clave1234",
                "role": "operador",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["username"] == "tecnico1"
        assert response.json()["role"] == "operador"

    def test_duplicate_username_rejected(self, client, admin_headers, staff_user):
        response = client.post(
            "/api/v1/auth/users",
            json={
                "username": "recepcion",
                "email": "otra@example.com",
                "first_name": "Rosa",
                "last_name": "Mora",
                "password": "Clave1234",
                "confirm_password": "Clave1234",
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already registered"

    def test_unknown_role_rejected(self, client, admin_headers):
        response = client.post(
            "/api/v1/auth/users",
            json={
                "username": "nuevo",
                "email": "nuevo@example.com",
                "first_name": "Ana",
                "last_name": "Paz",
                "password": "Clave1234",
                "confirm_password": "Clave1234",
                "role": "superuser",
            },
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_non_admin_cannot_manage_users(self, client, client_headers):
        assert client.get("/api/v1/auth/users", headers=client_headers).status_code == 403

    def test_deactivate_and_activate(self, client, admin_headers, staff_user):
        response = client.post(f"/api/v1/auth/users/{staff_user.id}/deactivate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = client.post(f"/api/v1/auth/users/{staff_user.id}/activate", headers=admin_headers)
        assert response.json()["is_active"] is True

    def test_list_users(self, client, admin_headers, staff_user):
        response = client.get("/api/v1/auth/users", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_activity_listing(self, client, admin_headers, staff_user):
        client.post("/api/v1/auth/login", json={"username_or_email": "recepcion", "password": "Clave1234"})

        response = client.get("/api/v1/auth/activity", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()[0]["username"] == "recepcion"
