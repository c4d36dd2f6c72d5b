# ledgerlink/aggregator.py
"""
Dashboard math over normalized accounts and transactions.

Every function here is total: an empty collection gives zero-valued results.
Amounts are summed as-is in a single currency (USD assumed); accounts in other
currencies are not converted.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from dateutil.relativedelta import relativedelta


# === Date helpers ===
def _parse_any_date(s) -> Optional[datetime]:
    if not s:
        return None
    if isinstance(s, datetime):
        return s.replace(tzinfo=None)
    if isinstance(s, date):
        return datetime(s.year, s.month, s.day)
    s = str(s).strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            pass
    try:
        # naive, so mixed inputs stay comparable
        return datetime.fromisoformat(s).replace(tzinfo=None)
    except ValueError:
        return None


def _month_key(value) -> Optional[str]:
    dt = _parse_any_date(value)
    return dt.strftime("%Y-%m") if dt else None


def _month_label(key: str) -> str:
    return datetime.strptime(key, "%Y-%m").strftime("%b %Y")


def last_n_month_keys(n: int = 6, end=None) -> List[str]:
    """Oldest first, ending with the month that contains ``end`` (default today)."""
    end_dt = _parse_any_date(end) or datetime.today()
    end_dt = end_dt.replace(day=1)
    return [(end_dt - relativedelta(months=i)).strftime("%Y-%m") for i in range(n - 1, -1, -1)]


def _amount(tx: Mapping[str, Any]) -> float:
    v = tx.get("amount")
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0.0
    return float(v)


# === Accounts ===
def account_balance(account: Mapping[str, Any]) -> float:
    """balances.current when a balances mapping exists, else the flat balance, else 0."""
    balances = account.get("balances")
    if isinstance(balances, Mapping):
        v = balances.get("current")
    else:
        v = account.get("balance")
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0.0
    return float(v)


def net_worth(accounts: Iterable[Mapping[str, Any]]) -> float:
    return round(sum(account_balance(a) for a in accounts or []), 2)


def total_assets(accounts: Iterable[Mapping[str, Any]]) -> float:
    return round(sum(b for b in (account_balance(a) for a in accounts or []) if b > 0), 2)


def total_debt(accounts: Iterable[Mapping[str, Any]]) -> float:
    return round(abs(sum(b for b in (account_balance(a) for a in accounts or []) if b < 0)), 2)


def account_summary(accounts: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    accounts = list(accounts or [])
    return {
        "net_worth": net_worth(accounts),
        "total_assets": total_assets(accounts),
        "total_debt": total_debt(accounts),
        "account_count": len(accounts),
    }


# === Transactions ===
def category_totals(transactions: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Expense magnitude per category; keys keep first-seen order."""
    totals: Dict[str, float] = {}
    for tx in transactions or []:
        amt = _amount(tx)
        if amt >= 0:
            continue
        cat = tx.get("category") or "Other"
        totals[cat] = totals.get(cat, 0.0) + abs(amt)
    return {cat: round(v, 2) for cat, v in totals.items()}


def monthly_spending(
    transactions: Iterable[Mapping[str, Any]],
    months: Optional[int] = None,
    end=None,
) -> List[Dict[str, Any]]:
    """
    Spending per calendar month, oldest first.
    months=None -> only months that have rows; months=N -> last N months, zero-filled.
    """
    bucket: Dict[str, float] = {}
    for tx in transactions or []:
        amt = _amount(tx)
        if amt >= 0:
            continue
        m = _month_key(tx.get("date"))
        if not m:
            continue
        bucket[m] = bucket.get(m, 0.0) + abs(amt)

    if months is None:
        keys = sorted(bucket)
    else:
        keys = last_n_month_keys(months, end)

    return [
        {"month": _month_label(k), "key": k, "totalSpent": round(bucket.get(k, 0.0), 2)}
        for k in keys
    ]


def sort_transactions(transactions: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Newest first; stable for equal dates; undated rows last."""
    rows = list(transactions or [])
    dated = [t for t in rows if _parse_any_date(t.get("date"))]
    undated = [t for t in rows if not _parse_any_date(t.get("date"))]
    dated.sort(key=lambda t: _parse_any_date(t.get("date")), reverse=True)
    return dated + undated


def transaction_stats(transactions: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    rows = list(transactions or [])
    amounts = [_amount(t) for t in rows]
    return {
        "total_transactions": len(rows),
        "total_expenses": round(abs(sum(a for a in amounts if a < 0)), 2),
        "total_income": round(sum(a for a in amounts if a > 0), 2),
        "net_cashflow": round(sum(amounts), 2),
    }


def filter_transactions(
    transactions: Iterable[Mapping[str, Any]],
    search: str = "",
    category: str = "",
) -> List[Mapping[str, Any]]:
    needle = (search or "").strip().lower()
    out = []
    for tx in transactions or []:
        if category and tx.get("category") != category:
            continue
        if needle:
            hay = [str(tx.get(k) or "").lower() for k in ("name", "description", "merchant_name")]
            if not any(needle in h for h in hay):
                continue
        out.append(tx)
    return out


def categories_of(transactions: Iterable[Mapping[str, Any]]) -> List[str]:
    return sorted({str(t.get("category")) for t in transactions or [] if t.get("category")})
