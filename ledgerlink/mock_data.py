# ledgerlink/mock_data.py
# Demo dataset served when no Plaid credentials are configured.
# Accounts are in Plaid's raw shape; transactions are already in canonical
# sign (negative = spending), so they are normalized with the "as_is" policy.
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

MOCK_ACCESS_TOKEN = "access-sandbox-mock-token"
MOCK_ITEM_ID = "mock-item-id"
MOCK_INSTITUTION_ID = "ins_mock"
MOCK_INSTITUTION_NAME = "Mock Bank"

MOCK_ACCOUNTS: List[Dict[str, Any]] = [
    {
        "account_id": "mock-account-1",
        "name": "Mock Checking",
        "mask": "1234",
        "type": "depository",
        "subtype": "checking",
        "institution_name": "Mock Bank",
        "balances": {"available": 1200.00, "current": 1250.45, "limit": None, "iso_currency_code": "USD"},
    },
    {
        "account_id": "mock-account-2",
        "name": "Mock Savings",
        "mask": "5678",
        "type": "depository",
        "subtype": "savings",
        "institution_name": "Mock Bank",
        "balances": {"available": 5432.10, "current": 5432.10, "limit": None, "iso_currency_code": "USD"},
    },
    {
        "account_id": "mock-account-3",
        "name": "Mock Credit Card",
        "mask": "9012",
        "type": "credit",
        "subtype": "credit card",
        "institution_name": "Mock Credit Union",
        "balances": {"available": 3549.25, "current": -450.75, "limit": 4000.00, "iso_currency_code": "USD"},
    },
]

# (id, account, days_ago, amount, name, description, category, category_id, pending, institution)
_MOCK_TX_ROWS = [
    ("mock-tx-1", "mock-account-1", 0, -75.50, "Whole Foods", "Grocery Store", "Food", "13005000", False, "Mock Bank"),
    ("mock-tx-2", "mock-account-1", 1, -12.99, "Starbucks", "Coffee Shop", "Dining", "13005043", False, "Mock Bank"),
    ("mock-tx-3", "mock-account-2", 7, 1000.00, "Transfer", "Deposit", "Income", "21001000", False, "Mock Bank"),
    ("mock-tx-4", "mock-account-3", 1, -120.35, "Amazon", "Online Shopping", "Shopping", "19013000", True, "Mock Credit Union"),
    ("mock-tx-5", "mock-account-1", 0, -45.00, "Uber", "Uber Ride", "Transportation", "17000000", False, "Mock Bank"),
    ("mock-tx-6", "mock-account-1", 7, -89.99, "Comcast", "Internet Bill", "Utilities", "16000000", False, "Mock Bank"),
    ("mock-tx-7", "mock-account-1", 7, 2500.00, "COMPANY PAYROLL", "Payroll", "Income", "21001000", False, "Mock Bank"),
    ("mock-tx-8", "mock-account-3", 0, -35.50, "Local Cafe", "Restaurant", "Dining", "13005000", True, "Mock Credit Union"),
]

_MERCHANTS = {
    "Transfer": "Transfer",
    "COMPANY PAYROLL": "Employer",
}


def mock_transactions(today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Fresh copies with dates relative to ``today``."""
    today = today or date.today()
    accounts = {a["account_id"]: a["name"] for a in MOCK_ACCOUNTS}
    rows = []
    for tx_id, acc, days_ago, amount, name, desc, cat, cat_id, pending, inst in _MOCK_TX_ROWS:
        rows.append({
            "transaction_id": tx_id,
            "account_id": acc,
            "account_name": accounts[acc],
            "amount": amount,
            "date": (today - timedelta(days=days_ago)).isoformat(),
            "name": name,
            "description": desc,
            "category": cat,
            "category_id": cat_id,
            "pending": pending,
            "merchant_name": _MERCHANTS.get(name, name),
            "institution_name": inst,
            "iso_currency_code": "USD",
        })
    return rows
