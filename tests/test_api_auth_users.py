"""
Integration tests for the auth and users routers.
"""


def _register(client, **overrides):
    payload = {
        "username": "trader",
        "password": "secret123",
        "email": "trader@example.com",
        "display_name": "Trader",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


class TestRegister:
    def test_register(self, client):
        response = _register(client)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["user"]["username"] == "trader"
        assert body["user"]["initial_balance"] == 10000
        assert body["user"]["current_balance"] == 10000
        assert "password" not in body["user"]

    def test_custom_initial_balance(self, client):
        body = _register(client, initial_balance=2500).json()
        assert body["user"]["current_balance"] == 2500

    def test_zero_initial_balance(self, client):
        body = _register(client, initial_balance=0).json()
        assert body["user"]["initial_balance"] == 0
        assert body["user"]["current_balance"] == 0

    def test_duplicate_username(self, client):
        _register(client)
        response = _register(client, email="other@example.com")
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Username already registered"}

    def test_short_password_is_rejected(self, client):
        response = _register(client, password="123")
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("password:")

    def test_invalid_email(self, client):
        response = _register(client, email="not-an-email")
        assert response.status_code == 400
        assert "email" in response.json()["message"]


class TestLogin:
    def test_login_returns_token(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"username": "trader", "password": "secret123"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["token_type"] == "bearer"
        assert "password" not in body["user"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["username"] == "trader"

    def test_wrong_password(self, client):
        _register(client)
        response = client.post("/api/auth/login", json={"username": "trader", "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid username or password"}

    def test_bad_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["success"] is False


class TestUsers:
    def test_get_user(self, client, user):
        response = client.get(f"/api/users/{user['id']}")
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "trader@example.com"
        assert "password" not in response.json()["user"]

    def test_missing_user(self, client):
        response = client.get("/api/users/999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}

    def test_update_initial_balance(self, client, user):
        response = client.put(f"/api/users/{user['id']}", json={"initial_balance": 5000, "settings": {"theme": "dark"}})
        assert response.status_code == 200
        updated = response.json()["user"]
        assert updated["initial_balance"] == 5000
        assert updated["current_balance"] == 5000
        assert updated["settings"] == {"theme": "dark"}
        assert updated["username"] == "trader"

    def test_update_password_is_hashed(self, client, storage, user):
        client.put(f"/api/users/{user['id']}", json={"password": "newsecret"})
        assert storage.authenticate_user("trader", "newsecret") is not None
