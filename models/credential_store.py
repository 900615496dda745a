"""
CredentialStore: users, refresh tokens and reset tokens over one FileStorage.

- register / authenticate users (Argon2id-derived password hashes)
- issue short-lived access tokens and longer-lived refresh tokens (HS256)
- persist refresh tokens so they can be revoked; access tokens stay stateless
- password change, and password reset through one-time reset tokens of which
  only an HMAC digest is stored

Every operation reloads the document before deciding anything and holds the
store lock for its whole load -> mutate -> save cycle. The lock serializes
callers sharing this instance; separate processes writing the same file still
race, and the last full-document write wins.
"""
from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Any, Dict, Optional

from models.errors import AuthError, AuthErrorCode
from models.file_storage import FileStorage
from models.refresh_token import RefreshToken
from models.reset_token import ResetToken
from models.schemas.user import UserOutSchema
from models.user import User
from utils import security

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL = 15 * 60
REFRESH_TOKEN_TTL = 7 * 24 * 3600
RESET_TOKEN_TTL = 60 * 60

public_user_schema = UserOutSchema(only=("id", "username", "email"))
user_profile_schema = UserOutSchema()


def _seconds(value) -> int:
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    return int(value)


class CredentialStore:
    """Owns the credential document; the only reader and writer of its file."""

    def __init__(
        self,
        path,
        secret: security.Secret,
        access_ttl=ACCESS_TOKEN_TTL,
        refresh_ttl=REFRESH_TOKEN_TTL,
        reset_ttl=RESET_TOKEN_TTL,
    ):
        if not secret:
            raise ValueError("secret must be a non-empty str or bytes")
        self.storage = FileStorage(path)
        self._secret = secret
        self.access_ttl = _seconds(access_ttl)
        self.refresh_ttl = _seconds(refresh_ttl)
        self.reset_ttl = _seconds(reset_ttl)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config) -> "CredentialStore":
        """
        Build a store from a Flask-style config mapping. AUTH_SECRET is used
        verbatim when set; otherwise a per-process random secret is generated here.
        """
        return cls(
            config.get("AUTH_DB_PATH", "squeeble_db.json"),
            security.resolve_secret(config.get("AUTH_SECRET")),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", ACCESS_TOKEN_TTL),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", REFRESH_TOKEN_TTL),
            reset_ttl=config.get("RESET_TOKEN_EXPIRES", RESET_TOKEN_TTL),
        )

    def init(self) -> None:
        with self._lock:
            self.storage.init()
        logger.info("Credential store ready at %s", self.storage.path)

    # token helpers
    def create_token(self, payload: Dict[str, Any], ttl_seconds: int) -> str:
        return security.create_token(payload, ttl_seconds, self._secret)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        return security.verify_token(token, self._secret)

    def _issue(self, subject: str, token_type: str, ttl_seconds: int) -> str:
        return self.create_token(
            {"sub": subject, "type": token_type, "jti": security.generate_jti()}, ttl_seconds
        )

    def _digest(self, raw_token: str) -> str:
        return security.digest_reset_token(raw_token, self._secret)

    # users
    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        if not username or not email or not password:
            raise AuthError(AuthErrorCode.FIELDS_REQUIRED)
        username = username.lower()
        email = email.lower()
        with self._lock:
            self.storage.reload()
            if self.storage.find(User, username=username):
                raise AuthError(AuthErrorCode.USERNAME_TAKEN)
            if self.storage.find(User, email=email):
                raise AuthError(AuthErrorCode.EMAIL_TAKEN)

            user = User(
                id=security.generate_id(),
                username=username,
                email=email,
                password_hash=security.hash_password(password),
                created_at=security.now_seconds(),
            )
            self.storage.new(user)
            self.storage.save()
        logger.info("Registered user %s (%s)", user.username, user.id)
        return public_user_schema.dump(user)

    def authenticate(self, username_or_email: str, password: str) -> Dict[str, Any]:
        if not username_or_email or not password:
            raise AuthError(AuthErrorCode.CREDENTIALS_REQUIRED)
        identity = username_or_email.lower()
        with self._lock:
            self.storage.reload()
            user = self.storage.find(User, username=identity) or self.storage.find(User, email=identity)
            # unknown identity and wrong password must be indistinguishable
            if not user or not security.verify_password(user.password_hash, password):
                logger.warning("Failed login for %s", identity)
                raise AuthError(AuthErrorCode.INVALID_CREDENTIALS)

            access_token = self._issue(user.id, "access", self.access_ttl)
            refresh_token = self._issue(user.id, "refresh", self.refresh_ttl)
            self.storage.new(
                RefreshToken(
                    token=refresh_token,
                    user_id=user.id,
                    expires_at=security.now_seconds() + self.refresh_ttl,
                )
            )
            self.storage.save()
        logger.info("User %s authenticated", user.id)
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": public_user_schema.dump(user),
        }

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self.storage.reload()
            user = self.storage.get(User, user_id)
        if user is None:
            return None
        return user_profile_schema.dump(user)

    # access / refresh tokens
    def verify_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        payload = self.verify_token(token)
        if not payload or payload.get("type") != "access":
            return None
        return payload

    def refresh_access_token(self, refresh_token: str) -> Dict[str, str]:
        if not refresh_token:
            raise AuthError(AuthErrorCode.MISSING_REFRESH_TOKEN)
        with self._lock:
            self.storage.reload()
            stored = self.storage.get(RefreshToken, refresh_token)
            if stored is None:
                raise AuthError(AuthErrorCode.INVALID_REFRESH_TOKEN)
            if stored.is_expired(security.now_seconds()):
                self.storage.delete(stored)
                self.storage.save()
                logger.info("Dropped expired refresh token of user %s", stored.user_id)
                raise AuthError(AuthErrorCode.REFRESH_TOKEN_EXPIRED)

        payload = self.verify_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            raise AuthError(AuthErrorCode.INVALID_REFRESH_TOKEN)
        access_token = self._issue(payload["sub"], "access", self.access_ttl)
        return {"access_token": access_token}

    def revoke_refresh_token(self, refresh_token: str) -> None:
        with self._lock:
            self.storage.reload()
            removed = self.storage.remove(RefreshToken, lambda r: r.token == refresh_token)
            self.storage.save()
        if removed:
            logger.info("Revoked %d refresh token(s)", removed)

    def revoke_user_refresh_tokens(self, user_id: str) -> int:
        with self._lock:
            self.storage.reload()
            removed = self.storage.remove(RefreshToken, lambda r: r.user_id == user_id)
            self.storage.save()
        logger.info("Revoked %d refresh token(s) of user %s", removed, user_id)
        return removed

    # passwords
    def change_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        if not user_id or not old_password or not new_password:
            raise AuthError(AuthErrorCode.MISSING_PARAMS)
        with self._lock:
            self.storage.reload()
            user = self.storage.get(User, user_id)
            if user is None:
                raise AuthError(AuthErrorCode.USER_NOT_FOUND)
            if not security.verify_password(user.password_hash, old_password):
                raise AuthError(AuthErrorCode.INVALID_CURRENT_PASSWORD)
            user.password_hash = security.hash_password(new_password)
            self.storage.save()
        logger.info("Password changed for user %s", user_id)
        return True

    def _force_set_password(self, user_id: str, new_password: str) -> None:
        """Overwrite a password without the current one. Reset flow only."""
        if not user_id or not new_password:
            raise AuthError(AuthErrorCode.MISSING_PARAMS)
        with self._lock:
            self.storage.reload()
            user = self.storage.get(User, user_id)
            if user is None:
                raise AuthError(AuthErrorCode.USER_NOT_FOUND)
            user.password_hash = security.hash_password(new_password)
            self.storage.save()

    # reset tokens
    def generate_reset_token(self, email: str) -> Dict[str, Any]:
        if not email:
            raise AuthError(AuthErrorCode.EMAIL_REQUIRED)
        email = email.lower()
        with self._lock:
            self.storage.reload()
            user = self.storage.find(User, email=email)
            if user is None:
                raise AuthError(AuthErrorCode.USER_NOT_FOUND)
            raw_token = security.generate_reset_token()
            expires_at = security.now_seconds() + self.reset_ttl
            self.storage.new(
                ResetToken(user_id=user.id, token_hash=self._digest(raw_token), expires_at=expires_at)
            )
            self.storage.save()
        logger.info("Issued password reset token for user %s", user.id)
        return {"reset_token": raw_token, "expires_at": expires_at}

    def verify_reset_token(self, raw_token: str) -> Optional[str]:
        if not raw_token:
            return None
        token_hash = self._digest(raw_token)
        with self._lock:
            self.storage.reload()
            record = self.storage.get(ResetToken, token_hash)
            if record is None:
                return None
            if record.is_expired(security.now_seconds()):
                self.storage.remove(ResetToken, lambda r: r.token_hash == token_hash)
                self.storage.save()
                return None
            return record.user_id

    def consume_reset_token(self, raw_token: str, new_password: str) -> bool:
        with self._lock:
            user_id = self.verify_reset_token(raw_token)
            if not user_id:
                raise AuthError(AuthErrorCode.INVALID_RESET_TOKEN)
            self._force_set_password(user_id, new_password)
            token_hash = self._digest(raw_token)
            # every outstanding reset token of this user goes, not only the one used
            self.storage.remove(
                ResetToken, lambda r: r.token_hash == token_hash or r.user_id == user_id
            )
            self.storage.save()
        logger.info("Password reset completed for user %s", user_id)
        return True

    # maintenance
    def cleanup_expired(self) -> Dict[str, int]:
        """Drop every expired refresh and reset record; meant for a periodic job."""
        with self._lock:
            self.storage.reload()
            now = security.now_seconds()
            refresh_removed = self.storage.remove(RefreshToken, lambda r: r.expires_at <= now)
            reset_removed = self.storage.remove(ResetToken, lambda r: r.expires_at <= now)
            self.storage.save()
        logger.info(
            "Cleanup removed %d refresh token(s) and %d reset token(s)", refresh_removed, reset_removed
        )
        return {"refresh_tokens": refresh_removed, "reset_tokens": reset_removed}
