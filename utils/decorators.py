from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app


def get_store():
    """The CredentialStore bound to the running app."""
    return current_app.extensions["credential_store"]


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()

            store = get_store()
            decoded = store.verify_access_token(token)
            if decoded is None:
                abort(401, description="Invalid or expired access token")

            user = store.get_user_by_id(decoded.get("sub"))
            if not user:
                abort(401, description="User not found")
            g.current_user = user
            g.token_payload = decoded
            return fn(*args, **kwargs)

        return wrapper

    return decorator
