# Overview: Flask API routes for login/logout; issues and revokes bearer tokens.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..permissions import permissions_for
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange username/password for a bearer token.

    Returns 401 with a generic message for any credential failure.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password required"}), 400

    user = auth_service.authenticate(username, password)
    if not user:
        return jsonify({"error": "Invalid credentials"}), 401

    _, token = session_service.create_session(user.id)
    return jsonify({"token": token, "user": user.to_dict()}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.auth_token)
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(permissions_for(user.role)),
    }), 200
