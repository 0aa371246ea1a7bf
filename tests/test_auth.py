from datetime import timedelta

from jose import jwt

import auth

PASSWORD = "secret123"


class TestLogin:
    def test_sets_cookie_and_returns_token(self, client, super_admin):
        response = client.post("/api/admin/login", json={"email": "Owner@Rahhalah.com", "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["admin"] == {"id": str(super_admin["_id"]), "email": "owner@rahhalah.com", "role": "super_admin"}
        assert response.cookies["adminToken"] == body["token"]
        assert "httponly" in response.headers["set-cookie"].lower()

    def test_records_last_login(self, client, db, super_admin):
        client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": PASSWORD})

        assert db["admin"].find_one({"_id": super_admin["_id"]})["lastLogin"] is not None

    def test_wrong_password(self, client, super_admin):
        response = client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    def test_unknown_email(self, client):
        response = client.post("/api/admin/login", json={"email": "ghost@rahhalah.com", "password": PASSWORD})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_deactivated_account(self, client, db, staff_admin):
        db["admin"].update_one({"_id": staff_admin["_id"]}, {"$set": {"isActive": False}})

        response = client.post("/api/admin/login", json={"email": "staff@rahhalah.com", "password": PASSWORD})

        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated"

    def test_malformed_email(self, client):
        response = client.post("/api/admin/login", json={"email": "owner", "password": PASSWORD})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"


class TestSession:
    def test_cookie_authenticates(self, client, super_admin):
        client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": PASSWORD})

        response = client.get("/api/admin/check")

        assert response.status_code == 200
        assert response.json()["admin"]["role"] == "super_admin"

    def test_cookie_preferred_over_header(self, client, super_admin, staff_headers):
        client.cookies.set("adminToken", auth.issue_token(super_admin))

        response = client.get("/api/admin/check", headers=staff_headers)

        assert response.json()["admin"]["email"] == "owner@rahhalah.com"

    def test_bearer_header(self, client, staff_headers):
        response = client.get("/api/admin/check", headers=staff_headers)

        assert response.json()["admin"]["role"] == "admin"

    def test_no_token(self, client):
        response = client.get("/api/admin/check")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized to access this route"

    def test_expired_token(self, client, super_admin):
        token = auth.create_access_token({"sub": str(super_admin["_id"])}, expires_delta=timedelta(seconds=-5))

        response = client.get("/api/admin/check", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_token_signed_with_other_key(self, client, super_admin):
        token = jwt.encode({"sub": str(super_admin["_id"]), "role": "super_admin"}, "someone-else", algorithm="HS256")

        response = client.get("/api/admin/check", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_deactivated_after_login(self, client, db, staff_admin, staff_headers):
        db["admin"].update_one({"_id": staff_admin["_id"]}, {"$set": {"isActive": False}})

        response = client.get("/api/admin/check", headers=staff_headers)

        assert response.status_code == 401
        assert response.json()["message"] == "Admin account is no longer active"

    def test_deleted_after_login(self, client, db, staff_admin, staff_headers):
        db["admin"].delete_one({"_id": staff_admin["_id"]})

        response = client.get("/api/admin/check", headers=staff_headers)

        assert response.json()["message"] == "Admin account is no longer active"

    def test_logout_clears_cookie(self, client, super_admin):
        client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": PASSWORD})

        response = client.post("/api/admin/logout")

        assert response.status_code == 200
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("adminToken=")
        assert "Max-Age=0" in cookie


class TestChangePassword:
    def test_change_and_log_in_with_new_password(self, client, super_admin, admin_headers):
        response = client.put("/api/admin/change-password",
                              json={"currentPassword": PASSWORD, "newPassword": "n3w-secret"},
                              headers=admin_headers)

        assert response.status_code == 200
        old = client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": PASSWORD})
        new = client.post("/api/admin/login", json={"email": "owner@rahhalah.com", "password": "n3w-secret"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_wrong_current_password(self, client, admin_headers):
        response = client.put("/api/admin/change-password",
                              json={"currentPassword": "guess", "newPassword": "n3w-secret"},
                              headers=admin_headers)

        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    def test_new_password_too_short(self, client, admin_headers):
        response = client.put("/api/admin/change-password",
                              json={"currentPassword": PASSWORD, "newPassword": "abc"},
                              headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "newPassword"


class TestRoles:
    def test_is_authorized(self):
        assert auth.is_authorized({"role": "super_admin"}, auth.ADMIN_ROLES)
        assert auth.is_authorized({"role": "admin"}, auth.ADMIN_ROLES)
        assert not auth.is_authorized({"role": "admin"}, auth.SUPER_ADMIN_ONLY)
        assert not auth.is_authorized({}, auth.ADMIN_ROLES)

    def test_password_hash_never_exposed(self, client, staff_headers):
        admin = client.get("/api/admin/check", headers=staff_headers).json()["admin"]

        assert "passwordHash" not in admin


class TestDefaultAdmin:
    def test_created_once(self, db):
        created = auth.ensure_default_admin(db, "Founder@Rahhalah.com", "founder-pass")
        again = auth.ensure_default_admin(db, "other@rahhalah.com", "other-pass")

        assert created["email"] == "founder@rahhalah.com"
        assert created["role"] == "super_admin"
        assert again is None
        assert db["admin"].count_documents({}) == 1
        assert auth.verify_password("founder-pass", created["passwordHash"])

    def test_skipped_without_credentials(self, db):
        assert auth.ensure_default_admin(db, None, None) is None
        assert db["admin"].count_documents({}) == 0
