import pytest

pytestmark = pytest.mark.anyio

NEW_USER = {
    "username": "new.student",
    "password": "pencil-case",
    "user_type": "STUDENT",
    "name": "New",
    "surname": "Student",
}


class TestCreateUser:
    async def test_admin_creates_user_who_can_log_in(self, client, login, auth_headers, stores):
        response = await client.post("/api/users", json=NEW_USER, headers=auth_headers(await login("admin")))

        assert response.status_code == 201
        assert response.json()["username"] == "new.student"
        assert "CREATE_USER" in stores.audit.actions()

        response = await client.post("/api/auth/login", json={"username": "new.student", "password": "pencil-case"})
        assert response.status_code == 200

    @pytest.mark.parametrize("username", ["teacher", "student", "parent"])
    async def test_non_admin_forbidden(self, client, login, auth_headers, username):
        response = await client.post("/api/users", json=NEW_USER, headers=auth_headers(await login(username)))
        assert response.status_code == 403

    async def test_unauthenticated(self, client):
        response = await client.post("/api/users", json=NEW_USER)
        assert response.status_code == 401

    async def test_duplicate_username(self, client, login, auth_headers):
        response = await client.post(
            "/api/users", json={**NEW_USER, "username": "teacher"}, headers=auth_headers(await login("admin"))
        )
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
