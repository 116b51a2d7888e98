"""
Интеграционные тесты регистрации, входа и профиля
"""

from airlab.core.config import settings


class TestAuthAPI:
    """Тесты /api/auth"""

    def test_register(self, client):
        response = client.post("/api/auth/register", json={
            "username": "newuser",
            "email": "New@Example.com",
            "password": "secret123",
            "firstName": "Иван",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == "new@example.com"
        assert data["user"]["firstName"] == "Иван"
        assert data["user"]["plan"] == "free"
        assert "passwordHash" not in data["user"]

    def test_register_ignores_role(self, client):
        response = client.post("/api/auth/register", json={
            "username": "sneaky", "email": "sneaky@example.com", "password": "secret123", "role": "admin"
        })
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "user"

    def test_register_duplicate(self, client, test_user):
        response = client.post("/api/auth/register", json={
            "username": "alice2", "email": test_user.email, "password": "secret123"
        })
        assert response.status_code == 400
        assert response.json() == {"error": "User with this email or username already exists"}

    def test_register_validation_error(self, client):
        response = client.post("/api/auth/register", json={
            "username": "shortpass", "email": "short@example.com", "password": "123"
        })
        assert response.status_code == 400
        assert "error" in response.json()
        assert response.json()["details"]

    def test_login(self, client, test_user):
        response = client.post("/api/auth/login", json={"email": test_user.email, "password": "secret123"})

        assert response.status_code == 200
        token = response.json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "alice"

    def test_login_invalid(self, client, test_user):
        response = client.post("/api/auth/login", json={"email": test_user.email, "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_default_admin_seeded(self, client):
        response = client.post("/api/auth/login", json={
            "email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD
        })
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer missing"})
        assert response.status_code == 401

    def test_logout(self, client, test_user, auth_headers):
        headers = auth_headers(test_user)

        response = client.post("/api/auth/logout", headers=headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestUsersAPI:
    """Тесты /api/users и /api/admin/users"""

    def test_get_self(self, client, test_user, auth_headers):
        response = client.get(f"/api/users/{test_user.id}", headers=auth_headers(test_user))
        assert response.status_code == 200
        assert response.json()["id"] == test_user.id

    def test_get_other_forbidden(self, client, test_user, other_user, auth_headers):
        response = client.get(f"/api/users/{other_user.id}", headers=auth_headers(test_user))
        assert response.status_code == 403

    def test_admin_gets_any_user(self, client, admin_user, test_user, auth_headers):
        response = client.get(f"/api/users/{test_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 200

    def test_update_profile(self, client, test_user, auth_headers):
        response = client.put(
            f"/api/users/{test_user.id}",
            json={"firstName": "Алиса", "settings": {"darkMode": True}},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["firstName"] == "Алиса"
        assert data["settings"]["darkMode"] is True
        assert data["settings"]["defaultModel"] == "gpt-4o"

    def test_self_update_ignores_api_key(self, client, db_session, test_user, auth_headers):
        response = client.put(
            f"/api/users/{test_user.id}",
            json={"lastName": "Смирнова", "apiKey": "sk-user-provided"},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        db_session.refresh(test_user)
        assert test_user.last_name == "Смирнова"
        assert test_user.api_key is None

    def test_update_rejects_null_username(self, client, db_session, test_user, auth_headers):
        response = client.put(
            f"/api/users/{test_user.id}", json={"username": None}, headers=auth_headers(test_user)
        )

        assert response.status_code == 400
        db_session.refresh(test_user)
        assert test_user.username == "alice"

    def test_admin_update_rejects_null_plan(self, client, admin_user, test_user, auth_headers):
        response = client.put(
            f"/api/admin/users/{test_user.id}", json={"plan": None}, headers=auth_headers(admin_user)
        )
        assert response.status_code == 400

    def test_admin_list_requires_admin(self, client, test_user, auth_headers):
        response = client.get("/api/admin/users", headers=auth_headers(test_user))
        assert response.status_code == 403

    def test_admin_blocks_user(self, client, admin_user, test_user, auth_headers):
        user_headers = auth_headers(test_user)

        response = client.put(
            f"/api/admin/users/{test_user.id}",
            json={"isActive": False, "plan": "pro"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json()["isActive"] is False
        assert response.json()["plan"] == "pro"
        assert client.get("/api/auth/me", headers=user_headers).status_code == 401
