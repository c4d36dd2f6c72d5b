"""Shared fixtures.

``FakeSource`` implements the same surface as ``PlaidSource``/``MockSource``
(four calls plus ``sign_policy``/``is_mock``) with Plaid-shaped payloads held
in memory, so the service and HTTP layers run without any network access.
"""

from __future__ import annotations

from typing import Any

import pytest

from ledgerlink.auth import UserStore
from ledgerlink.config import Settings
from ledgerlink.errors import UpstreamError
from ledgerlink.service import FinanceService
from ledgerlink.token_store import MemoryTokenStore
from web_app.app import create_app


class FakeSource:
    is_mock = False
    sign_policy = "plaid"

    def __init__(self) -> None:
        self.exchanges: dict[str, tuple[str, str]] = {}
        self.accounts: dict[str, list[Any]] = {}
        self.transactions: dict[str, Any] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple] = []

    def add_item(self, public_token, access_token, item_id, accounts, transactions=None):
        self.exchanges[public_token] = (access_token, item_id)
        self.accounts[access_token] = accounts
        self.transactions[access_token] = transactions or []

    def create_link_token(self, user_id):
        self.calls.append(("link", user_id))
        return {"link_token": f"link-sandbox-{user_id}", "expiration": "2030-01-01T00:00:00Z"}

    def exchange_public_token(self, public_token):
        self.calls.append(("exchange", public_token))
        if public_token not in self.exchanges:
            raise UpstreamError("provided public token is in an invalid format", code="INVALID_PUBLIC_TOKEN")
        return self.exchanges[public_token]

    def get_accounts(self, access_token):
        self.calls.append(("accounts", access_token))
        if access_token in self.failing:
            raise UpstreamError("the login details of this item have changed", code="ITEM_LOGIN_REQUIRED")
        return self.accounts.get(access_token, []), {"item_id": "item", "institution_id": "ins_109508"}

    def get_transactions(self, access_token, start_date, end_date):
        self.calls.append(("transactions", access_token, start_date, end_date))
        if access_token in self.failing:
            raise UpstreamError("the login details of this item have changed", code="ITEM_LOGIN_REQUIRED")
        return self.transactions.get(access_token, [])


CHASE_ACCOUNTS = [
    {
        "account_id": "chk-1",
        "name": "Plaid Checking",
        "mask": "0000",
        "type": "depository",
        "subtype": "checking",
        "balances": {"available": 100.0, "current": 110.0, "limit": None, "iso_currency_code": "USD"},
    },
    {
        "account_id": "cc-1",
        "name": "Plaid Credit Card",
        "mask": "3333",
        "type": "credit",
        "subtype": "credit card",
        "balances": {"available": None, "current": -410.0, "limit": 2000.0, "iso_currency_code": "USD"},
    },
]

# Plaid sign convention: positive = money out
CHASE_TRANSACTIONS = [
    {
        "transaction_id": "tx-uber",
        "account_id": "chk-1",
        "amount": 5.4,
        "date": "2025-03-19",
        "name": "Uber 063015 SF**POOL**",
        "category": ["Travel", "Taxi"],
        "pending": False,
    },
    {
        "transaction_id": "tx-payroll",
        "account_id": "chk-1",
        "amount": -2500.0,
        "date": "2025-03-15",
        "name": "COMPANY PAYROLL",
        "category": ["Transfer", "Payroll"],
        "pending": False,
    },
    {
        "transaction_id": "tx-airline",
        "account_id": "cc-1",
        "amount": 500.0,
        "date": "2025-03-17",
        "name": "United Airlines",
        "category": ["Travel", "Airlines and Aviation Services"],
        "pending": 1,
        "merchant_name": "United Airlines",
    },
]


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret", app_env="development")


@pytest.fixture
def fake_source() -> FakeSource:
    src = FakeSource()
    src.add_item("public-sandbox-chase", "access-sandbox-chase", "item-chase", CHASE_ACCOUNTS, CHASE_TRANSACTIONS)
    return src


@pytest.fixture
def store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def service(fake_source, store, settings) -> FinanceService:
    counter = iter(range(1, 10_000))
    return FinanceService(fake_source, store, settings, id_factory=lambda: f"tx-gen-{next(counter)}")


@pytest.fixture
def app(settings, fake_source, store):
    flask_app = create_app(settings=settings, source=fake_source, store=store, users=UserStore())
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer mock_jwt_token_42"}
