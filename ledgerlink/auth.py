# ledgerlink/auth.py
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from ledgerlink.config import Settings
from ledgerlink.errors import AuthError

log = logging.getLogger(__name__)

ALGORITHM = "HS256"
MOCK_TOKEN_PREFIX = "mock_jwt_token_"

DEMO_USER = {
    "id": "123",
    "email": "demo@example.com",
    "name": "Demo User",
    "password": "password123",
}


def parse_bearer(header: Optional[str]) -> str:
    if not header:
        raise AuthError("Authorization header missing")
    parts = header.split(" ", 1)
    token = parts[1].strip() if len(parts) > 1 else ""
    if not token:
        raise AuthError("Token missing")
    return token


def verify_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Claims for a valid token (always with an ``id``); AuthError otherwise."""
    if not settings.is_production and token.startswith(MOCK_TOKEN_PREFIX):
        user_id = token.split("_")[-1] or "123"
        log.debug("DEV MODE: accepting mock token for user %s", user_id)
        return {"id": user_id, "email": "dev@example.com"}

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        log.info("JWT verification failed: %s", e)
        raise AuthError("Invalid token")

    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise AuthError("Invalid token")
    claims["id"] = str(user_id)
    return claims


def user_from_header(header: Optional[str], settings: Settings) -> Dict[str, Any]:
    return verify_token(parse_bearer(header), settings)


def issue_token(user: Dict[str, Any], settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expires_days)
    claims = {
        "id": str(user["id"]),
        "email": user.get("email"),
        "name": user.get("name"),
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password_hash"}


class UserStore:
    """In-process user registry, seeded with the demo login."""

    def __init__(self, seed_demo: bool = True):
        self._users: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        if seed_demo:
            self._users.append({
                "id": DEMO_USER["id"],
                "email": DEMO_USER["email"],
                "name": DEMO_USER["name"],
                "password_hash": generate_password_hash(DEMO_USER["password"]),
                "created_at": None,
            })

    def find(self, email: str) -> Optional[Dict[str, Any]]:
        lower = (email or "").strip().lower()
        with self._lock:
            return next((u for u in self._users if u["email"].lower() == lower), None)

    def register(self, email: str, password: str) -> Dict[str, Any]:
        email = (email or "").strip()
        if self.find(email):
            raise AuthError("User already exists", status=400)
        user = {
            "id": str(int(time.time() * 1000)),
            "email": email,
            "name": email.split("@")[0],
            "password_hash": generate_password_hash(password),
            "created_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        with self._lock:
            self._users.append(user)
        log.info("Registered user %s", user["id"])
        return public_user(user)

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        user = self.find(email)
        if not user or not check_password_hash(user["password_hash"], password or ""):
            return None
        return public_user(user)
