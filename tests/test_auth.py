from conftest import OWNER_PASSWORD


class TestSignup:
    def test_first_account_owns_the_shop(self, client):
        first = client.post(
            "/auth/signup",
            json={"email": "Owner@Example.com", "username": "owner", "password": OWNER_PASSWORD},
        ).json()
        second = client.post(
            "/auth/signup",
            json={"email": "clerk@example.com", "username": "clerk", "password": OWNER_PASSWORD},
        ).json()
        assert first["role"] == "owner"
        assert first["email"] == "owner@example.com"
        assert second["role"] == "staff"

    def test_duplicate_identity(self, client, owner_headers):
        response = client.post(
            "/auth/signup",
            json={"email": "owner@example.com", "username": "other", "password": OWNER_PASSWORD},
        )
        assert response.status_code == 409


class TestLogin:
    def test_login_by_email_or_username(self, client, owner_headers):
        by_email = client.post("/auth/login", json={"email": "owner@example.com", "password": OWNER_PASSWORD})
        by_form = client.post("/auth/token", data={"username": "owner", "password": OWNER_PASSWORD})
        assert by_email.status_code == 200
        assert by_form.status_code == 200
        assert by_form.json()["token_type"] == "bearer"

    def test_wrong_password(self, client, owner_headers):
        response = client.post("/auth/login", json={"identity": "owner", "password": "not-the-password"})
        assert response.status_code == 401

    def test_bad_token(self, client):
        assert client.get("/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


class TestRefresh:
    def login(self, client):
        return client.post("/auth/login", json={"identity": "owner", "password": OWNER_PASSWORD}).json()

    def test_rotation_revokes_the_old_token(self, client, owner_headers):
        tokens = self.login(client)
        rotated = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert rotated.status_code == 200
        assert rotated.json()["refresh_token"] != tokens["refresh_token"]

        replay = client.post("/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
        assert replay.status_code == 401

    def test_logout(self, client, owner_headers):
        tokens = self.login(client)
        response = client.post(
            "/auth/logout",
            json={"refresh_token": tokens["refresh_token"]},
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )
        assert response.status_code == 200
        assert client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401


class TestUserManagement:
    def test_staff_cannot_manage_users(self, client, staff_headers):
        assert client.get("/auth/users", headers=staff_headers).status_code == 403

    def test_owner_deactivates_staff(self, client, owner_headers, staff_headers):
        users = client.get("/auth/users", headers=owner_headers).json()
        staff = next(user for user in users if user["username"] == "staff")

        response = client.post(f"/auth/users/{staff['id']}/deactivate", headers=owner_headers)
        assert response.json()["is_active"] is False
        assert client.get("/auth/me", headers=staff_headers).status_code == 403

    def test_owner_promotes_staff(self, client, owner_headers, staff_headers):
        staff = client.get("/auth/me", headers=staff_headers).json()
        response = client.patch(f"/auth/users/{staff['id']}/role", json={"role": "owner"}, headers=owner_headers)
        assert response.json()["role"] == "owner"

    def test_owner_cannot_demote_self(self, client, owner_headers):
        me = client.get("/auth/me", headers=owner_headers).json()
        response = client.patch(f"/auth/users/{me['id']}/role", json={"role": "staff"}, headers=owner_headers)
        assert response.status_code == 400
