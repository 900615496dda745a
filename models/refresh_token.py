"""
RefreshToken record: ties an issued refresh token to its user so it can be revoked
Fields:
- token (primary key) - the full signed token string
- user_id - owning user's id (no cascading delete)
- expires_at - seconds since epoch
"""
from models.base_model import BaseModel


class RefreshToken(BaseModel):
    __key__ = "token"
    __fields__ = ("token", "user_id", "expires_at")

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id} expires_at={self.expires_at}>"
