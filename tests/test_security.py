"""Unit tests for app.core.security: password hashing and access/refresh tokens."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt

from app.core import security
from app.core.config import settings
from app.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    hash_password,
    subject_id_from_claims,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    """Stored hash never equals the plaintext and verifies against it."""

    def setUp(self) -> None:
        patcher = patch.object(security, "BCRYPT_ROUNDS", 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_hash_differs_from_plaintext_and_verifies(self) -> None:
        hashed = hash_password("s3cret-password")
        self.assertNotEqual(hashed, "s3cret-password")
        self.assertTrue(verify_password("s3cret-password", hashed))

    def test_wrong_password_fails(self) -> None:
        hashed = hash_password("s3cret-password")
        self.assertFalse(verify_password("other-password", hashed))

    def test_hashes_are_salted(self) -> None:
        self.assertNotEqual(hash_password("same-password"), hash_password("same-password"))

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestTokens(unittest.TestCase):
    """Token issue/verify round trips and rejection cases."""

    def test_access_token_round_trip(self) -> None:
        claims = decode_token(create_access_token(42))
        self.assertEqual(subject_id_from_claims(claims), 42)
        self.assertEqual(claims["type"], "access")

    def test_access_token_expiry_window(self) -> None:
        claims = decode_token(create_access_token(1))
        lifetime = claims["exp"] - claims["iat"]
        self.assertEqual(lifetime, settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)

    def test_refresh_token_is_long_lived(self) -> None:
        claims = decode_token(create_refresh_token(7), expected_type="refresh")
        self.assertEqual(subject_id_from_claims(claims), 7)
        lifetime = claims["exp"] - claims["iat"]
        self.assertEqual(lifetime, settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400)

    def test_token_pair_carries_same_subject(self) -> None:
        pair = create_token_pair(5)
        access = decode_token(pair.access_token, expected_type="access")
        refresh = decode_token(pair.refresh_token, expected_type="refresh")
        self.assertEqual(access["sub"], refresh["sub"])

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(minutes=1)
        token = jwt.encode(
            {"sub": "1", "type": "access", "iat": past - timedelta(minutes=15), "exp": past},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(InvalidTokenError):
            decode_token(token)

    def test_bad_signature_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "1", "type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "some-other-secret",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            decode_token(token)

    def test_malformed_token_rejected(self) -> None:
        with self.assertRaises(InvalidTokenError):
            decode_token("not.a.jwt")

    def test_refresh_token_not_accepted_as_access(self) -> None:
        with self.assertRaises(InvalidTokenError):
            decode_token(create_refresh_token(1), expected_type="access")

    def test_access_token_not_accepted_as_refresh(self) -> None:
        with self.assertRaises(InvalidTokenError):
            decode_token(create_access_token(1), expected_type="refresh")

    def test_non_numeric_subject_rejected(self) -> None:
        with self.assertRaises(InvalidTokenError):
            subject_id_from_claims({"sub": "alice"})
        with self.assertRaises(InvalidTokenError):
            subject_id_from_claims({})


if __name__ == "__main__":
    unittest.main()
