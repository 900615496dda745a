"""
ResetToken record: lets a user set a new password without the current one.
Only the HMAC digest of the raw token is stored; the raw value goes to the caller.
"""
from models.base_model import BaseModel


class ResetToken(BaseModel):
    __key__ = "token_hash"
    __fields__ = ("user_id", "token_hash", "expires_at")

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def __repr__(self):
        return f"<ResetToken user_id={self.user_id} expires_at={self.expires_at}>"
