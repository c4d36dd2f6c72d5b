# ledgerlink/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base error; ``status`` is the HTTP status the web layer reports."""

    status = 500

    def __init__(self, message: str, status: Optional[int] = None, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.error = error

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class ConfigError(LedgerError):
    pass


class ApiError(LedgerError):
    """Client input problems (missing body fields, bad query params)."""

    status = 400


class AuthError(LedgerError):
    status = 401


class UpstreamError(LedgerError):
    """The banking provider rejected or failed a call."""

    def __init__(self, message: str, code: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, error=code)
        self.code = code
        self.upstream_status = upstream_status


class DataShapeError(LedgerError):
    pass
