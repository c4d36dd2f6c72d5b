# web_app/auth_api.py
from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

from ledgerlink.auth import issue_token
from web_app.gate import ext

bp = Blueprint("auth_api", __name__, url_prefix="/api/auth")


def _credentials():
    payload = request.get_json(silent=True) or {}
    email = (payload.get("email") or "").strip()
    password = payload.get("password") or ""
    if not email or not password:
        abort(400, description="Email and password are required")
    return email, password


@bp.post("/login")
def login():
    email, password = _credentials()
    user = ext("users").authenticate(email, password)
    if not user:
        current_app.logger.info("Failed login for %s", email)
        return jsonify({"success": False, "message": "Invalid email or password"}), 401

    token = issue_token(user, ext("settings"))
    return jsonify({
        "success": True,
        "token": token,
        "user": {"id": user["id"], "email": user["email"], "name": user.get("name")},
    })


@bp.post("/register")
def register():
    email, password = _credentials()
    user = ext("users").register(email, password)
    return jsonify({"success": True, "message": "User registered successfully", "user": user}), 201
