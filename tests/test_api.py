import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from api.main import create_app
from token_auth.config import TokenConfig

SECRET = "012345678901234567890123456789ab"


def make_client(**overrides) -> TestClient:
    values = {
        "jwt_secret": SECRET,
        "access_token_ttl": timedelta(minutes=5),
        "refresh_token_ttl": timedelta(minutes=10080),
        "refresh_store": "memory",
        "user_store": "memory",
    }
    values.update(overrides)
    return TestClient(create_app(TokenConfig(**values)))


class TestAuthApi(unittest.TestCase):
    def setUp(self):
        self.client = make_client()
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def register_and_login(self, username="test_user", password="test_password") -> dict:
        response = self.client.post(
            "/api/v1/auth/register", json={"username": username, "password": password}
        )
        self.assertEqual(response.status_code, 201)
        response = self.client.post(
            "/api/v1/auth/login", json={"username": username, "password": password}
        )
        self.assertEqual(response.status_code, 200)
        return response.json()["data"]

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_login_response_shape(self):
        data = self.register_and_login()
        self.assertEqual(
            set(data),
            {"access_token", "refresh_token", "access_expires_in", "refresh_expires_in", "owner_id"},
        )
        self.assertTrue(299 <= data["access_expires_in"] <= 300)
        self.assertTrue(10080 * 60 - 1 <= data["refresh_expires_in"] <= 10080 * 60)

    def test_me_with_access_token(self):
        data = self.register_and_login()
        response = self.client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["owner_id"], data["owner_id"])

    def test_me_rejects_missing_and_bad_tokens(self):
        data = self.register_and_login()
        self.assertEqual(self.client.get("/api/v1/auth/me").status_code, 401)
        response = self.client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {data['refresh_token']}"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["data"], {"code": "invalid_token"})

    def test_wrong_password(self):
        self.register_and_login()
        response = self.client.post(
            "/api/v1/auth/login", json={"username": "test_user", "password": "wrong_password"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid credentials")

    def test_duplicate_registration(self):
        self.register_and_login()
        response = self.client.post(
            "/api/v1/auth/register", json={"username": "test_user", "password": "test_password"}
        )
        self.assertEqual(response.status_code, 409)

    def test_password_longer_than_bcrypt_input_is_rejected(self):
        # 100 ASCII bytes, then 40 two-byte characters (80 bytes, 40 chars)
        for index, password in enumerate(["p" * 100, "é" * 40]):
            response = self.client.post(
                "/api/v1/auth/register", json={"username": f"long_{index}", "password": password}
            )
            self.assertEqual(response.status_code, 422)
            self.assertFalse(response.json()["success"])
            fields = [error["field"] for error in response.json()["data"]["validation_errors"]]
            self.assertEqual(fields, ["password"])

        self.register_and_login(username="edge_user", password="p" * 72)

    def test_refresh_rotates_and_rejects_reuse(self):
        data = self.register_and_login()
        response = self.client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": data["refresh_token"], "expected_owner_id": data["owner_id"]},
        )
        self.assertEqual(response.status_code, 200)
        rotated = response.json()["data"]
        self.assertNotEqual(rotated["refresh_token"], data["refresh_token"])
        self.assertEqual(rotated["owner_id"], data["owner_id"])

        reuse = self.client.post(
            "/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]}
        )
        self.assertEqual(reuse.status_code, 401)

        mismatch = self.client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": rotated["refresh_token"], "expected_owner_id": "someone-else"},
        )
        self.assertEqual(mismatch.status_code, 401)
        self.assertEqual(reuse.json(), mismatch.json())

    def test_revoke_is_idempotent(self):
        data = self.register_and_login()
        for _ in range(2):
            response = self.client.post(
                "/api/v1/auth/revoke", json={"refresh_token": data["refresh_token"]}
            )
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["data"], {"status": "revoked"})

        response = self.client.post(
            "/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]}
        )
        self.assertEqual(response.status_code, 401)

    def test_validation_error(self):
        response = self.client.post("/api/v1/auth/login", json={"username": "ab"})
        self.assertEqual(response.status_code, 422)
        self.assertFalse(response.json()["success"])


class TestLoginRateLimit(unittest.TestCase):
    def test_login_is_rate_limited(self):
        with make_client(login_rate_limit_per_minute=2) as client:
            payload = {"username": "nobody_here", "password": "test_password"}
            statuses = [client.post("/api/v1/auth/login", json=payload).status_code for _ in range(3)]
        self.assertEqual(statuses, [401, 401, 429])


class TestAppConfiguration(unittest.TestCase):
    def test_weak_secret_fails_at_startup(self):
        from token_auth.exceptions import InvalidConfiguration

        with self.assertRaises(InvalidConfiguration):
            create_app(TokenConfig(jwt_secret="s" * 20, refresh_store="memory", user_store="memory"))


if __name__ == "__main__":
    unittest.main()
