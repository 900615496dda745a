from models.base_model import BaseModel


class User(BaseModel):
    """Identity record. username and email are stored lower-cased."""

    __fields__ = ("id", "username", "email", "password_hash", "created_at")
