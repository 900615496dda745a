from __future__ import annotations

from flask import Blueprint, jsonify, g, abort

from utils.decorators import jwt_required, get_store

bp = Blueprint("users", __name__)


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": g.current_user}), 200


@bp.get("/users/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get a user's public profile.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
    responses:
      200:
        description: OK
      404:
        description: Not found
    """
    user = get_store().get_user_by_id(user_id)
    if user is None:
        abort(404, description="User not found")
    return jsonify({"data": user}), 200
