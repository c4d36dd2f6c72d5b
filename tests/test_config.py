from pathlib import Path

import pytest

from ledgerlink.config import Settings
from ledgerlink.errors import ConfigError

ENV_NAMES = [
    "PLAID_CLIENT_ID", "PLAID_SECRET", "PLAID_ENV", "PLAID_TIMEOUT", "PLAID_REDIRECT_URI",
    "JWT_SECRET", "JWT_EXPIRES_DAYS", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY",
    "NODE_ENV", "APP_ENV", "DATA_SOURCE", "TOKEN_STORE", "TOKEN_STORE_PATH", "TX_SIGN_POLICY",
    "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"VITE_{name}", raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings.from_env(dotenv=False)
    assert s.plaid_env == "sandbox"
    assert s.plaid_host == "https://sandbox.plaid.com"
    assert s.jwt_secret == "your-secret-key"
    assert s.app_env == "development"
    assert not s.is_production
    assert not s.has_plaid_credentials
    assert s.sign_policy == "plaid"
    assert s.token_store == "memory"
    assert s.token_store_path == Path(".data") / "plaid_items.json"


def test_vite_prefixed_fallback(clean_env):
    clean_env.setenv("VITE_PLAID_CLIENT_ID", "client-from-vite")
    clean_env.setenv("PLAID_SECRET", "server-secret")
    clean_env.setenv("VITE_PLAID_SECRET", "ignored")
    s = Settings.from_env(dotenv=False)
    assert s.plaid_client_id == "client-from-vite"
    assert s.plaid_secret == "server-secret"
    assert s.has_plaid_credentials


def test_blank_value_falls_through_to_vite_copy(clean_env):
    clean_env.setenv("JWT_SECRET", "   ")
    clean_env.setenv("VITE_JWT_SECRET", "from-vite")
    assert Settings.from_env(dotenv=False).jwt_secret == "from-vite"


def test_node_env_wins_over_app_env(clean_env):
    clean_env.setenv("NODE_ENV", "Production")
    clean_env.setenv("APP_ENV", "development")
    clean_env.setenv("JWT_SECRET", "prod-secret")
    assert Settings.from_env(dotenv=False).is_production


def test_production_requires_real_jwt_secret(clean_env):
    clean_env.setenv("NODE_ENV", "production")
    with pytest.raises(ConfigError, match="JWT_SECRET"):
        Settings.from_env(dotenv=False)

    clean_env.setenv("JWT_SECRET", "your-secret-key")
    with pytest.raises(ConfigError):
        Settings.from_env(dotenv=False)

    with pytest.raises(ConfigError):
        Settings(app_env="production")

    clean_env.setenv("JWT_SECRET", "rotated-secret")
    assert Settings.from_env(dotenv=False).jwt_secret == "rotated-secret"


def test_choice_values_are_case_insensitive(clean_env):
    clean_env.setenv("TX_SIGN_POLICY", "Transaction_Type")
    clean_env.setenv("TOKEN_STORE", "JSON")
    clean_env.setenv("TOKEN_STORE_PATH", "/tmp/items.json")
    s = Settings.from_env(dotenv=False)
    assert s.sign_policy == "transaction_type"
    assert s.token_store == "json"
    assert s.token_store_path == Path("/tmp/items.json")


@pytest.mark.parametrize(
    "name, value",
    [
        ("TX_SIGN_POLICY", "reverse"),
        ("DATA_SOURCE", "csv"),
        ("TOKEN_STORE", "redis"),
        ("PLAID_ENV", "staging"),
        ("PLAID_TIMEOUT", "soon"),
        ("JWT_EXPIRES_DAYS", "7d"),
    ],
)
def test_invalid_values_raise(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ConfigError):
        Settings.from_env(dotenv=False)


def test_direct_construction_is_validated():
    with pytest.raises(ConfigError):
        Settings(sign_policy="nope")


def test_redacted_never_leaks_secrets():
    s = Settings(plaid_client_id="5f3a9c1234567890", plaid_secret="abcdef0123456789", supabase_url="https://x")
    out = s.redacted()
    assert out["plaid"]["client_id_set"] is True
    assert out["plaid"]["client_id_prefix"] == "5f3a9c..."
    assert out["plaid"]["secret_prefix"] == "abcdef..."
    assert out["supabase"] == {"url_set": True, "service_key_set": False, "anon_key_set": False}
    assert "abcdef0123456789" not in repr(out)


def test_redacted_without_credentials():
    out = Settings().redacted()
    assert out["plaid"]["client_id_set"] is False
    assert out["plaid"]["client_id_prefix"] is None
    assert out["server"]["app_env"] == "development"
