from models.user import User
from models.refresh_token import RefreshToken
from models.reset_token import ResetToken
from models.errors import AuthError, AuthErrorCode
from models.file_storage import FileStorage
from models.credential_store import CredentialStore

__all__ = [
    "User",
    "RefreshToken",
    "ResetToken",
    "AuthError",
    "AuthErrorCode",
    "FileStorage",
    "CredentialStore",
]
