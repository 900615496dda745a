"""
security helpers:
- Argon2id key derivation for passwords via argon2-cffi (stored as "salt$derivedHex")
- HS256 token creation/verification via PyJWT
- HMAC digests for password reset tokens
- id / random token generation and the clock used for expiry checks
"""
from __future__ import annotations

import hmac
import hashlib
import secrets
import time
import uuid
from typing import Dict, Any, Optional, Union

import jwt
from argon2.low_level import hash_secret_raw
from argon2.profiles import RFC_9106_LOW_MEMORY

TOKEN_ALGORITHM = "HS256"
SALT_BYTES = 16
DERIVED_KEY_BYTES = 64
SEPARATOR = "$"

# exp is checked against now_seconds() in verify_token instead
UNCHECKED_CLAIMS = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}

Secret = Union[str, bytes]


def now_seconds() -> int:
    return int(time.time())


def generate_id() -> str:
    """Generate a unique record id.
    """
    return str(uuid.uuid4())


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return uuid.uuid4().hex


def generate_reset_token() -> str:
    """32 random bytes, hex encoded.
    """
    return secrets.token_hex(32)


def resolve_secret(configured: Optional[Secret]) -> Secret:
    """
    Return the configured signing secret verbatim, or a random 64-byte secret.
    The random secret only lives as long as the process: tokens issued with it
    stop verifying after a restart.
    """
    if configured:
        return configured
    return secrets.token_hex(64)


def _key_bytes(secret: Secret) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else secret


def _derive(password: str, salt: str) -> bytes:
    params = RFC_9106_LOW_MEMORY
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        time_cost=params.time_cost,
        memory_cost=params.memory_cost,
        parallelism=params.parallelism,
        hash_len=DERIVED_KEY_BYTES,
        type=params.type,
    )


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh salt using Argon2id
    """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{salt}{SEPARATOR}{_derive(password, salt).hex()}"


def verify_password(stored: str, supplied: str) -> bool:
    """ Verify a plaintext password against a stored "salt$derivedHex" form.
    Never raises: malformed stored forms and empty inputs are simply a mismatch.
    """
    if not stored or not supplied:
        return False
    if not isinstance(stored, str) or not isinstance(supplied, str):
        return False
    salt, sep, derived_hex = stored.partition(SEPARATOR)
    if not sep or not salt or not derived_hex:
        return False
    try:
        expected = bytes.fromhex(derived_hex)
    except ValueError:
        return False
    return hmac.compare_digest(expected, _derive(supplied, salt))


def create_token(payload: Dict[str, Any], ttl_seconds: int, secret: Secret) -> str:
    """
    Sign the caller's claims plus iat/exp into header.payload.signature.
    """
    issued_at = now_seconds()
    claims = dict(payload)
    claims["iat"] = issued_at
    claims["exp"] = issued_at + int(ttl_seconds)
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str, secret: Secret) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a signed token. Returns the payload, or None for a
    bad signature, an expired token or any malformed input.
    Only the signature and exp are checked; a token stays valid through its
    exp second. Other registered claims are the caller's business.
    """
    if not token or not isinstance(token, str) or token.count(".") != 2:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options=UNCHECKED_CLAIMS,
        )
    except jwt.InvalidTokenError:
        return None
    exp = payload.get("exp")
    if not isinstance(exp, int) or isinstance(exp, bool) or now_seconds() > exp:
        return None
    return payload


def digest_reset_token(raw_token: str, secret: Secret) -> str:
    """HMAC-SHA256 hex digest of a raw reset token; only the digest is persisted.
    """
    return hmac.new(_key_bytes(secret), raw_token.encode("utf-8"), hashlib.sha256).hexdigest()
