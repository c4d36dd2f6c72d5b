# ledgerlink/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ledgerlink.errors import ConfigError


PLAID_ENV_HOSTS = {
    "sandbox":     "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production":  "https://production.plaid.com",
}

SIGN_POLICIES = ("plaid", "transaction_type", "as_is")
DATA_SOURCES = ("auto", "plaid", "mock")
TOKEN_STORES = ("memory", "json")

DEFAULT_JWT_SECRET = "your-secret-key"

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read NAME, falling back to the VITE_-prefixed copy the frontend build uses."""
    val = os.environ.get(name)
    if val is None or not val.strip():
        val = os.environ.get(f"VITE_{name}")
    if val is None or not val.strip():
        return default
    return val.strip()


def _choice(name: str, default: str, allowed) -> str:
    val = (_env(name, default) or default).lower()
    if val not in allowed:
        raise ConfigError(f"Invalid {name}: {val!r} (expected one of {', '.join(allowed)})")
    return val


def _int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"Invalid {name}: {raw!r} (expected an integer)")


def _prefix(value: Optional[str], n: int = 6) -> Optional[str]:
    return (value[:n] + "...") if value else None


@dataclass
class Settings:
    plaid_client_id: Optional[str] = None
    plaid_secret: Optional[str] = None
    plaid_env: str = "sandbox"
    plaid_timeout: int = 30
    plaid_redirect_uri: Optional[str] = None
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expires_days: int = 7
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    app_env: str = "development"
    data_source: str = "auto"
    token_store: str = "memory"
    token_store_path: Path = field(default_factory=lambda: Path(".data") / "plaid_items.json")
    sign_policy: str = "plaid"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.plaid_env not in PLAID_ENV_HOSTS:
            raise ConfigError(f"Invalid PLAID_ENV: {self.plaid_env}")
        if self.sign_policy not in SIGN_POLICIES:
            raise ConfigError(f"Invalid TX_SIGN_POLICY: {self.sign_policy}")
        if self.data_source not in DATA_SOURCES:
            raise ConfigError(f"Invalid DATA_SOURCE: {self.data_source}")
        if self.token_store not in TOKEN_STORES:
            raise ConfigError(f"Invalid TOKEN_STORE: {self.token_store}")
        if self.app_env == "production" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ConfigError("JWT_SECRET must be set in production")
        self.token_store_path = Path(self.token_store_path)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            plaid_client_id=_env("PLAID_CLIENT_ID"),
            plaid_secret=_env("PLAID_SECRET"),
            plaid_env=(_env("PLAID_ENV", "sandbox") or "sandbox").lower(),
            plaid_timeout=_int("PLAID_TIMEOUT", 30),
            plaid_redirect_uri=_env("PLAID_REDIRECT_URI"),
            jwt_secret=_env("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_expires_days=_int("JWT_EXPIRES_DAYS", 7),
            supabase_url=_env("SUPABASE_URL"),
            supabase_service_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            supabase_anon_key=_env("SUPABASE_ANON_KEY"),
            app_env=(_env("NODE_ENV") or _env("APP_ENV") or "development").lower(),
            data_source=_choice("DATA_SOURCE", "auto", DATA_SOURCES),
            token_store=_choice("TOKEN_STORE", "memory", TOKEN_STORES),
            token_store_path=Path(_env("TOKEN_STORE_PATH") or (Path(".data") / "plaid_items.json")),
            sign_policy=_choice("TX_SIGN_POLICY", "plaid", SIGN_POLICIES),
            log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
            log_file=_env("LOG_FILE"),
        )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def plaid_host(self) -> str:
        return PLAID_ENV_HOSTS[self.plaid_env]

    @property
    def has_plaid_credentials(self) -> bool:
        return bool(self.plaid_client_id and self.plaid_secret)

    def redacted(self) -> Dict[str, Any]:
        """Credential presence and short prefixes only; never the full values."""
        return {
            "plaid": {
                "client_id_set": bool(self.plaid_client_id),
                "client_id_prefix": _prefix(self.plaid_client_id),
                "secret_set": bool(self.plaid_secret),
                "secret_prefix": _prefix(self.plaid_secret),
                "env": self.plaid_env,
            },
            "supabase": {
                "url_set": bool(self.supabase_url),
                "service_key_set": bool(self.supabase_service_key),
                "anon_key_set": bool(self.supabase_anon_key),
            },
            "server": {
                "app_env": self.app_env,
                "data_source": self.data_source,
                "token_store": self.token_store,
                "sign_policy": self.sign_policy,
            },
        }


_LOGGING_CONFIGURED = False


def configure_logging(settings: Settings) -> None:
    """Attach the process-wide handler once; later calls are no-ops."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level = getattr(logging, settings.log_level, logging.INFO)
    kwargs: Dict[str, Any] = {"level": level, "format": LOG_FORMAT}
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = log_path
    logging.basicConfig(**kwargs)
    _LOGGING_CONFIGURED = True
