"""Tests for password hashing, the token codec and reset-token digests."""

import base64
import json

import jwt
import pytest

from utils import security

SECRET = "unit-test-secret-0123456789abcdef0123456789"


def _b64url_json(segment: str) -> dict:
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


class TestPasswordHashing:
    """Tests for hash_password / verify_password."""

    @pytest.mark.parametrize(
        "password",
        ["secret", "correct horse battery staple", "p@$$w0rd!~`", "ünïcödé-пароль", "a" * 200],
    )
    def test_round_trip(self, password):
        """The original password verifies against its stored form."""
        stored = security.hash_password(password)

        assert security.verify_password(stored, password) is True

    def test_different_password_fails(self):
        """Any other password is rejected."""
        stored = security.hash_password("secret")

        assert security.verify_password(stored, "Secret") is False
        assert security.verify_password(stored, "secret ") is False

    def test_stored_form_is_salt_dollar_hex(self):
        """salt$derivedHex with a 16-byte salt and a 64-byte key."""
        salt, derived = security.hash_password("secret").split("$")

        assert len(salt) == 32
        assert len(derived) == 128
        int(derived, 16)

    def test_salts_differ(self):
        """Hashing the same password twice gives different stored forms."""
        assert security.hash_password("secret") != security.hash_password("secret")

    @pytest.mark.parametrize(
        "stored",
        ["", None, "no-separator", "$abcd", "salt$", "salt$not-hex", "salt$abcd", 12345],
    )
    def test_malformed_stored_form_is_false(self, stored):
        """Malformed stored forms never raise."""
        assert security.verify_password(stored, "secret") is False

    def test_empty_supplied_password_is_false(self):
        """An empty supplied password is a mismatch."""
        stored = security.hash_password("secret")

        assert security.verify_password(stored, "") is False
        assert security.verify_password(stored, None) is False


class TestTokens:
    """Tests for create_token / verify_token."""

    def test_wire_format(self):
        """Three base64url segments with an HS256/JWT header and iat/exp claims."""
        token = security.create_token({"sub": "u1", "type": "access"}, 60, SECRET)

        header, payload, signature = token.split(".")
        assert _b64url_json(header) == {"alg": "HS256", "typ": "JWT"}
        claims = _b64url_json(payload)
        assert claims["sub"] == "u1"
        assert claims["type"] == "access"
        assert claims["exp"] == claims["iat"] + 60
        assert "=" not in signature

    def test_round_trip(self):
        """A fresh token verifies to its payload."""
        token = security.create_token({"sub": "u1", "type": "refresh"}, 60, SECRET)

        payload = security.verify_token(token, SECRET)

        assert payload["sub"] == "u1"
        assert payload["type"] == "refresh"

    def test_caller_payload_is_not_mutated(self):
        """iat/exp are added to a copy."""
        claims = {"sub": "u1"}
        security.create_token(claims, 60, SECRET)

        assert claims == {"sub": "u1"}

    def test_expired_token(self):
        """ttl -1 is already expired."""
        token = security.create_token({"sub": "u1"}, -1, SECRET)

        assert security.verify_token(token, SECRET) is None

    def test_token_is_valid_through_its_exp_second(self, monkeypatch):
        """ttl 0 verifies while now == exp and fails one second later."""
        monkeypatch.setattr(security, "now_seconds", lambda: 1700000000)
        token = security.create_token({"sub": "u1", "type": "access"}, 0, SECRET)

        assert security.verify_token(token, SECRET)["exp"] == 1700000000

        monkeypatch.setattr(security, "now_seconds", lambda: 1700000001)
        assert security.verify_token(token, SECRET) is None

    def test_audience_claim_is_returned_unchecked(self):
        """An aud in the caller's payload does not fail verification."""
        token = security.create_token({"sub": "u1", "aud": "web"}, 60, SECRET)

        assert security.verify_token(token, SECRET)["aud"] == "web"

    def test_non_string_subject(self):
        """sub is whatever the caller put there."""
        token = security.create_token({"sub": 42, "jti": 7}, 60, SECRET)

        payload = security.verify_token(token, SECRET)

        assert payload["sub"] == 42
        assert payload["jti"] == 7

    def test_signed_token_without_integer_exp_is_rejected(self):
        """A validly signed payload still needs a numeric exp."""
        assert security.verify_token(jwt.encode({"sub": "u1"}, SECRET, algorithm="HS256"), SECRET) is None
        assert security.verify_token(jwt.encode({"exp": "soon"}, SECRET, algorithm="HS256"), SECRET) is None

    def test_wrong_secret(self):
        """A different key fails the signature check."""
        token = security.create_token({"sub": "u1"}, 60, SECRET)

        assert security.verify_token(token, SECRET + "x") is None

    def test_bytes_secret(self):
        """Key material may be bytes."""
        key = b"k" * 64
        token = security.create_token({"sub": "u1"}, 60, key)

        assert security.verify_token(token, key)["sub"] == "u1"

    def test_modified_payload_fails(self):
        """Swapping in another payload breaks the signature."""
        token = security.create_token({"sub": "u1"}, 60, SECRET)
        other = security.create_token({"sub": "admin"}, 60, SECRET)
        header, _, signature = token.split(".")
        forged = ".".join([header, other.split(".")[1], signature])

        assert security.verify_token(forged, SECRET) is None

    def test_unsigned_token_is_rejected(self):
        """An alg=none token does not verify."""
        header = base64.urlsafe_b64encode(b'{"alg":"none","typ":"JWT"}').rstrip(b"=").decode()
        body = base64.urlsafe_b64encode(b'{"sub":"u1"}').rstrip(b"=").decode()

        assert security.verify_token(f"{header}.{body}.", SECRET) is None

    @pytest.mark.parametrize(
        "token",
        [None, "", "onlyone", "two.parts", "four.parts.in.here", "!!!.@@@.###", "e30.e30.e30"],
    )
    def test_malformed_tokens(self, token):
        """Malformed input yields None rather than an exception."""
        assert security.verify_token(token, SECRET) is None


class TestResetDigest:
    """Tests for reset token generation and digests."""

    def test_digest_is_stable_hex(self):
        """Same input and key give the same 64-char hex digest."""
        first = security.digest_reset_token("raw", SECRET)

        assert first == security.digest_reset_token("raw", SECRET)
        assert len(first) == 64
        int(first, 16)

    def test_digest_depends_on_secret(self):
        """Another key gives another digest."""
        assert security.digest_reset_token("raw", SECRET) != security.digest_reset_token("raw", "other")

    def test_generated_reset_tokens(self):
        """32 random bytes, hex encoded, different each time."""
        token = security.generate_reset_token()

        assert len(token) == 64
        assert token != security.generate_reset_token()


class TestResolveSecret:
    """Tests for signing key selection."""

    def test_configured_secret_is_used_verbatim(self):
        assert security.resolve_secret("from-env") == "from-env"

    def test_random_secret_when_unset(self):
        """64 random bytes, hex encoded, new on each call."""
        generated = security.resolve_secret(None)

        assert len(generated) == 128
        assert generated != security.resolve_secret("")
