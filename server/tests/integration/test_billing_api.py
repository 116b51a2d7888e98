"""
Интеграционные тесты тарифов и активации
"""


class TestPlansAPI:

    def test_seeded_plans_are_public(self, client):
        response = client.get("/api/plans")

        assert response.status_code == 200
        plans = response.json()
        assert [p["name"] for p in plans] == ["free", "basic", "pro", "premium"]
        assert plans[0]["features"]["maxAssistants"] == 1
        assert plans[3]["features"]["maxAssistants"] == -1

    def test_admin_creates_plan(self, client, admin_user, auth_headers):
        response = client.post("/api/admin/plans", json={
            "name": "team",
            "displayName": "Team",
            "price": 4990,
            "features": {"maxAssistants": 20},
        }, headers=auth_headers(admin_user))

        assert response.status_code == 201
        assert response.json()["features"]["maxAssistants"] == 20
        assert response.json()["billingPeriod"] == "monthly"

    def test_admin_plans_forbidden_for_users(self, client, test_user, auth_headers):
        assert client.get("/api/admin/plans", headers=auth_headers(test_user)).status_code == 403

    def test_admin_updates_and_deletes(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        plan = client.get("/api/admin/plans", headers=headers).json()[1]

        updated = client.put(f"/api/admin/plans/{plan['id']}", json={"isActive": False}, headers=headers)
        assert updated.status_code == 200
        assert "basic" not in [p["name"] for p in client.get("/api/plans").json()]

        deleted = client.delete(f"/api/admin/plans/{plan['id']}", headers=headers)
        assert deleted.status_code == 200
        assert client.delete(f"/api/admin/plans/{plan['id']}", headers=headers).status_code == 404


class TestActivationAPI:

    def test_activate_pro(self, client, test_user, auth_headers):
        headers = auth_headers(test_user)

        response = client.post("/api/activate-plan", json={"activationCode": "1963"}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["plan"] == "pro"
        assert data["expiresAt"]
        assert data["wasUnfrozen"] is False

        status = client.get("/api/account-status", headers=headers).json()
        assert status["plan"] == "pro"
        assert status["isActive"] is True
        assert status["daysLeft"] in (29, 30)

    def test_invalid_code(self, client, test_user, auth_headers):
        response = client.post("/api/activate-plan", json={"activationCode": "9999"}, headers=auth_headers(test_user))

        assert response.status_code == 400
        assert response.json() == {"error": "Неверный код активации"}

    def test_activation_requires_auth(self, client):
        assert client.post("/api/activate-plan", json={"activationCode": "1963"}).status_code == 401

    def test_activation_info(self, client):
        assert "message" in client.get("/api/activate-plan").json()

    def test_paid_plan_raises_assistant_limit(self, client, test_user, test_assistant, auth_headers):
        headers = auth_headers(test_user)
        client.post("/api/activate-plan", json={"activationCode": "1962"}, headers=headers)

        response = client.post("/api/assistants", json={"name": "Second"}, headers=headers)

        assert response.status_code == 201
