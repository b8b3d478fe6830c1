import unittest
from datetime import datetime, timedelta, timezone

from jose import jwt

from token_auth.codec import AccessTokenCodec
from token_auth.exceptions import InvalidConfiguration, InvalidToken, TokenExpired

SECRET = "012345678901234567890123456789ab"


class TestAccessTokenCodec(unittest.TestCase):
    def setUp(self):
        self.codec = AccessTokenCodec(SECRET, timedelta(minutes=5))

    def test_sign_then_verify_returns_owner(self):
        now = datetime.now(timezone.utc)
        token, expires_at = self.codec.sign("u1", now)
        self.assertEqual(expires_at, now + timedelta(minutes=5))
        self.assertEqual(self.codec.verify(token), "u1")

    def test_claims_shape(self):
        now = datetime.now(timezone.utc)
        token, _ = self.codec.sign("u1", now)
        claims = jwt.get_unverified_claims(token)
        self.assertEqual(claims["sub"], "u1")
        self.assertEqual(claims["type"], "access")
        self.assertEqual(claims["nbf"], int(now.timestamp()))
        self.assertEqual(claims["exp"] - claims["iat"], 300)
        self.assertTrue(claims["jti"])

    def test_each_token_has_unique_id(self):
        now = datetime.now(timezone.utc)
        first, _ = self.codec.sign("u1", now)
        second, _ = self.codec.sign("u1", now)
        self.assertNotEqual(
            jwt.get_unverified_claims(first)["jti"],
            jwt.get_unverified_claims(second)["jti"],
        )

    def test_caller_supplied_token_id(self):
        token, _ = self.codec.sign("u1", datetime.now(timezone.utc), token_id="abc123")
        self.assertEqual(jwt.get_unverified_claims(token)["jti"], "abc123")
        self.assertEqual(self.codec.verify(token), "u1")

    def test_short_secret_rejected_at_construction(self):
        with self.assertRaises(InvalidConfiguration):
            AccessTokenCodec("x" * 20, timedelta(minutes=5))

    def test_non_hmac_algorithm_rejected(self):
        with self.assertRaises(InvalidConfiguration):
            AccessTokenCodec(SECRET, timedelta(minutes=5), algorithm="RS256")

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        token, _ = self.codec.sign("u1", past)
        with self.assertRaises(TokenExpired):
            self.codec.verify(token)

    def test_expired_token_with_bad_signature_is_invalid(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        token, _ = AccessTokenCodec("y" * 32, timedelta(minutes=5)).sign("u1", past)
        with self.assertRaises(InvalidToken):
            self.codec.verify(token)

    def test_wrong_secret(self):
        other = AccessTokenCodec("z" * 40, timedelta(minutes=5))
        token, _ = other.sign("u1", datetime.now(timezone.utc))
        with self.assertRaises(InvalidToken):
            self.codec.verify(token)

    def test_tampered_signature(self):
        token, _ = self.codec.sign("u1", datetime.now(timezone.utc))
        head, body, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with self.assertRaises(InvalidToken):
            self.codec.verify(".".join([head, body, flipped]))

    def test_other_algorithm_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "u1", "type": "access", "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS512",
        )
        with self.assertRaises(InvalidToken):
            self.codec.verify(token)

    def test_wrong_kind_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "u1", "type": "refresh", "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidToken):
            self.codec.verify(token)

    def test_garbage_and_empty(self):
        for token in ("", "not-a-token", "a.b.c"):
            with self.assertRaises(InvalidToken):
                self.codec.verify(token)


if __name__ == "__main__":
    unittest.main()
