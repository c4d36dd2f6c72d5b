# web_app/gate.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g, request

from ledgerlink.auth import user_from_header

EXTENSION_KEY = "ledgerlink"


def ext(name: str):
    """Shared objects wired up by create_app (settings, service, users)."""
    return current_app.extensions[EXTENSION_KEY][name]


def require_auth(view):
    """Bearer JWT gate; sets g.user. AuthError bubbles to the 401 handler."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.user = user_from_header(request.headers.get("Authorization"), ext("settings"))
        current_app.logger.debug("Authenticated user %s for %s", g.user["id"], request.path)
        return view(*args, **kwargs)
    return wrapper


def current_user_id() -> str:
    return str(g.user["id"])
