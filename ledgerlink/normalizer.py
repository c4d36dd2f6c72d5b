# ledgerlink/normalizer.py
"""
Turn account/transaction payloads of any origin (Plaid SDK dicts, the mock
dataset, legacy flat rows, already-canonical records) into the one shape the
API serves.

Canonical sign convention for transactions: negative = money out,
positive = money in. Plaid reports the opposite, so live Plaid rows are
normalized with the ``plaid`` sign policy.

Nothing in here raises on missing or malformed optional fields.
"""
from __future__ import annotations

import random
import string
import time
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

DEFAULT_ACCOUNT_INSTITUTION = "Bank Account"
DEFAULT_TX_INSTITUTION = "Connected Account"
DEFAULT_CATEGORY = "Other"
DEFAULT_CURRENCY = "USD"

SIGN_PLAID = "plaid"
SIGN_TRANSACTION_TYPE = "transaction_type"
SIGN_AS_IS = "as_is"

_BASE36 = string.digits + string.ascii_lowercase

IdFactory = Callable[[], str]


# === ID helpers ===
def make_transaction_id(now_ms: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    """tx-<millis>-<10 base36 chars>; not deterministic unless both args are given."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    pick = (rng or random).choice
    suffix = "".join(pick(_BASE36) for _ in range(10))
    return f"tx-{now_ms}-{suffix}"


def make_account_id() -> str:
    return f"acct-{uuid.uuid4().hex[:12]}"


# === Field helpers ===
def _num(value) -> Optional[float]:
    """Float for real numbers, None for anything else (bools and numeric strings included)."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first_text(*values) -> str:
    for v in values:
        t = _text(v)
        if t:
            return t
    return ""


def _institution_text(value) -> str:
    # Link metadata hands us {"name": ..., "institution_id": ...}
    if isinstance(value, Mapping):
        return _text(value.get("name"))
    return _text(value)


def _iso_date(value) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    s = _text(value)
    return s[:10] if len(s) >= 10 and s[4:5] == "-" else (s or None)


def extract_category(raw_category) -> str:
    """First element of a list category; "Other" when empty or missing."""
    if isinstance(raw_category, (list, tuple)):
        if not raw_category:
            return DEFAULT_CATEGORY
        return _text(raw_category[0]) or DEFAULT_CATEGORY
    return _text(raw_category) or DEFAULT_CATEGORY


def normalize_amount(raw_amount, policy: str = SIGN_PLAID, transaction_type: Optional[str] = None) -> float:
    """
    Map a raw amount into canonical sign space.
      plaid            -> always negate (Plaid: positive = outflow)
      transaction_type -> debit & positive => negate, credit & negative => abs
      as_is            -> unchanged
    """
    amount = _num(raw_amount) or 0.0
    if policy == SIGN_PLAID:
        amount = -amount
    elif policy == SIGN_TRANSACTION_TYPE:
        tt = _text(transaction_type).lower()
        if tt == "debit" and amount > 0:
            amount = -amount
        elif tt == "credit" and amount < 0:
            amount = abs(amount)
    elif policy != SIGN_AS_IS:
        raise ValueError(f"Unknown sign policy: {policy}")
    return amount + 0.0  # folds -0.0 into 0.0


# === Accounts ===
def normalize_account(
    raw: Mapping[str, Any],
    fallback_institution: Optional[str] = None,
    id_factory: IdFactory = make_account_id,
) -> Dict[str, Any]:
    raw = raw or {}
    nested = raw.get("balances")
    nested = nested if isinstance(nested, Mapping) else {}
    flat = _num(raw.get("balance"))

    current = _num(nested.get("current"))
    if current is None:
        current = flat if flat is not None else 0.0

    available = _num(nested.get("available"))
    if available is None:
        available = flat if flat is not None else 0.0

    institution = (
        _institution_text(raw.get("institution_name"))
        or _institution_text(raw.get("institution"))
        or _text(fallback_institution)
        or DEFAULT_ACCOUNT_INSTITUTION
    )

    account_id = _first_text(raw.get("account_id"), raw.get("id")) or id_factory()

    return {
        "id": account_id,
        "account_id": account_id,
        "name": _text(raw.get("name")) or "Account",
        "official_name": raw.get("official_name") or None,
        "mask": _text(raw.get("mask")),
        "type": _text(raw.get("type")),
        "subtype": _text(raw.get("subtype")),
        "institution_name": institution,
        "institution": institution,
        "balance": current,
        "balances": {
            "available": available,
            "current": current,
            "limit": _num(nested.get("limit")),
            "iso_currency_code": _first_text(
                nested.get("iso_currency_code"), nested.get("isoCurrencyCode")
            ) or DEFAULT_CURRENCY,
        },
    }


def normalize_accounts(
    raws: Iterable[Any],
    fallback_institution: Optional[str] = None,
    id_factory: IdFactory = make_account_id,
) -> List[Dict[str, Any]]:
    return [
        normalize_account(r, fallback_institution=fallback_institution, id_factory=id_factory)
        for r in (raws or [])
        if isinstance(r, Mapping)
    ]


# === Transactions ===
def normalize_transaction(
    raw: Mapping[str, Any],
    sign_policy: str = SIGN_PLAID,
    accounts_by_id: Optional[Mapping[str, Mapping[str, Any]]] = None,
    fallback_institution: Optional[str] = None,
    id_factory: IdFactory = make_transaction_id,
) -> Dict[str, Any]:
    raw = raw or {}
    tx_id = _first_text(raw.get("transaction_id"), raw.get("id")) or id_factory()

    account_id = _text(raw.get("account_id"))
    account = (accounts_by_id or {}).get(account_id) or {}

    transaction_type = _text(raw.get("transaction_type")) or None
    name = _first_text(raw.get("name"), raw.get("description")) or "Transaction"
    description = _first_text(raw.get("description"), raw.get("name")) or "Transaction"

    return {
        "id": tx_id,
        "transaction_id": tx_id,
        "name": name,
        "description": description,
        "date": _iso_date(raw.get("date")),
        "amount": normalize_amount(raw.get("amount"), sign_policy, transaction_type),
        "account_id": account_id,
        "account_name": _first_text(raw.get("account_name"), account.get("name")) or "Account",
        "institution_name": (
            _institution_text(raw.get("institution_name"))
            or _institution_text(raw.get("institution"))
            or _text(fallback_institution)
            or DEFAULT_TX_INSTITUTION
        ),
        "category": extract_category(raw.get("category")),
        "category_id": _text(raw.get("category_id")),
        "merchant_name": _text(raw.get("merchant_name")),
        "pending": bool(raw.get("pending")),
        "payment_channel": _text(raw.get("payment_channel")) or None,
        "iso_currency_code": _first_text(raw.get("iso_currency_code"), raw.get("currency")) or DEFAULT_CURRENCY,
        "transaction_type": transaction_type,
    }


def normalize_transactions(
    raws: Iterable[Any],
    sign_policy: str = SIGN_PLAID,
    accounts_by_id: Optional[Mapping[str, Mapping[str, Any]]] = None,
    fallback_institution: Optional[str] = None,
    id_factory: IdFactory = make_transaction_id,
) -> List[Dict[str, Any]]:
    return [
        normalize_transaction(
            r,
            sign_policy=sign_policy,
            accounts_by_id=accounts_by_id,
            fallback_institution=fallback_institution,
            id_factory=id_factory,
        )
        for r in (raws or [])
        if isinstance(r, Mapping)
    ]


def index_accounts(accounts: Iterable[Any]) -> Dict[str, Mapping[str, Any]]:
    """account_id -> account, for the account_name lookup."""
    out: Dict[str, Mapping[str, Any]] = {}
    for acc in accounts or []:
        if not isinstance(acc, Mapping):
            continue
        key = _first_text(acc.get("account_id"), acc.get("id"))
        if key:
            out[key] = acc
    return out
