# ledgerlink/service.py
"""
Request-level orchestration: upstream source + token store + normalizer.

One instance per app. Calls are sequential per request; one linked item
failing never sinks the whole response, it is logged and skipped.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from ledgerlink import aggregator, formatters, mock_data
from ledgerlink.config import Settings
from ledgerlink.errors import DataShapeError
from ledgerlink.normalizer import (
    DEFAULT_TX_INSTITUTION,
    index_accounts,
    make_transaction_id,
    normalize_accounts,
    normalize_transactions,
)
from ledgerlink.token_store import PlaidItem

log = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
UNKNOWN_INSTITUTION = "Unknown Institution"


def default_window(today: Optional[date] = None):
    today = today or date.today()
    return today - timedelta(days=DEFAULT_WINDOW_DAYS), today


class FinanceService:
    def __init__(self, source, store, settings: Settings, id_factory=make_transaction_id):
        self.source = source
        self.store = store
        self.settings = settings
        self.id_factory = id_factory

    # ---------- helpers ----------
    def _as_list(self, payload, what: str) -> List[Any]:
        if isinstance(payload, list):
            return payload
        if self.settings.is_production:
            raise DataShapeError(f"Unexpected {what} payload from upstream ({type(payload).__name__})")
        log.warning("Upstream returned %s for %s; substituting an empty list", type(payload).__name__, what)
        return []

    def _items(self, user_id: str) -> List[PlaidItem]:
        items = self.store.list(user_id)
        if not items and self.source.is_mock:
            # demo item so a fresh login still sees a populated dashboard
            return [PlaidItem(
                item_id=mock_data.MOCK_ITEM_ID,
                access_token=mock_data.MOCK_ACCESS_TOKEN,
                user_id=str(user_id),
                institution_name=mock_data.MOCK_INSTITUTION_NAME,
                institution_id=mock_data.MOCK_INSTITUTION_ID,
                accounts=[dict(a) for a in mock_data.MOCK_ACCOUNTS],
            )]
        return items

    # ---------- Plaid Link flow ----------
    def create_link_token(self, user_id: str) -> Dict[str, Any]:
        return self.source.create_link_token(str(user_id))

    def link_item(self, user_id: str, public_token: str, institution: Optional[Dict[str, Any]] = None):
        access_token, item_id = self.source.exchange_public_token(public_token)
        raw_accounts, item_meta = self.source.get_accounts(access_token)
        raw_accounts = self._as_list(raw_accounts, "accounts")

        institution = institution or {}
        institution_name = (institution.get("name") or "").strip() or UNKNOWN_INSTITUTION
        self.store.put(PlaidItem(
            item_id=item_id,
            access_token=access_token,
            user_id=str(user_id),
            institution_name=institution_name,
            institution_id=institution.get("institution_id") or (item_meta or {}).get("institution_id"),
            accounts=raw_accounts,
        ))
        return normalize_accounts(raw_accounts, fallback_institution=institution_name)

    def remove_account(self, user_id: str, account_id: str) -> bool:
        item = self.store.find_by_account(user_id, account_id)
        if not item:
            return False
        log.info("Removing item %s (owns account %s) for user %s", item.item_id, account_id, user_id)
        return self.store.remove(user_id, item.item_id)

    # ---------- reads ----------
    def accounts(self, user_id: str) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for item in self._items(user_id):
            try:
                raw_accounts, _ = self.source.get_accounts(item.access_token)
                raw_accounts = self._as_list(raw_accounts, "accounts")
            except DataShapeError:
                raise
            except Exception as e:
                log.error("Error fetching accounts for item %s: %s", item.item_id, getattr(e, "message", e))
                continue
            out.extend(normalize_accounts(
                raw_accounts,
                fallback_institution=item.institution_name or DEFAULT_TX_INSTITUTION,
            ))
        log.info("Returning %d accounts for user %s", len(out), user_id)
        return out

    def transactions(self, user_id: str, start_date=None, end_date=None) -> List[Dict[str, Any]]:
        if start_date is None or end_date is None:
            d_start, d_end = default_window()
            start_date = start_date or d_start
            end_date = end_date or d_end

        out: List[Dict[str, Any]] = []
        for item in self._items(user_id):
            try:
                raw = self.source.get_transactions(item.access_token, start_date, end_date)
                raw = self._as_list(raw, "transactions")
            except DataShapeError:
                raise
            except Exception as e:
                log.error("Error fetching transactions for item %s: %s", item.item_id, getattr(e, "message", e))
                continue
            out.extend(normalize_transactions(
                raw,
                sign_policy=self.source.sign_policy,
                accounts_by_id=index_accounts(item.accounts),
                fallback_institution=item.institution_name or DEFAULT_TX_INSTITUTION,
                id_factory=self.id_factory,
            ))
        log.info("Returning %d transactions for user %s", len(out), user_id)
        return aggregator.sort_transactions(out)

    # ---------- dashboard ----------
    def monthly_spending(self, user_id: str, months: int = 6, today: Optional[date] = None):
        today = today or date.today()
        start = today.replace(day=1) - relativedelta(months=months - 1)
        txs = self.transactions(user_id, start, today)
        return aggregator.monthly_spending(txs, months=months, end=today)

    def category_spending(self, user_id: str, start_date=None, end_date=None) -> Dict[str, float]:
        return aggregator.category_totals(self.transactions(user_id, start_date, end_date))

    def summary(self, user_id: str, start_date=None, end_date=None) -> Dict[str, Any]:
        accounts = self.accounts(user_id)
        txs = self.transactions(user_id, start_date, end_date)
        acc = aggregator.account_summary(accounts)
        stats = aggregator.transaction_stats(txs)
        return {
            "accounts": acc,
            "transactions": stats,
            "categories": aggregator.category_totals(txs),
            "recent": txs[:5],
            "display": {
                "net_worth": formatters.format_currency(acc["net_worth"]),
                "total_assets": formatters.format_currency(acc["total_assets"]),
                "total_debt": formatters.format_currency(acc["total_debt"]),
                "total_income": formatters.format_currency(stats["total_income"]),
                "total_expenses": formatters.format_currency(stats["total_expenses"]),
                "net_cashflow": formatters.format_currency(stats["net_cashflow"]),
                "net_worth_short": formatters.format_large_number(acc["net_worth"]),
                "transaction_count": formatters.format_number(stats["total_transactions"], 0),
                "savings_rate": formatters.format_percentage(
                    stats["net_cashflow"] / stats["total_income"] if stats["total_income"] else 0
                ),
                "recent": [
                    {
                        "id": t["id"],
                        "date": formatters.format_date(t.get("date")),
                        "amount": formatters.format_currency(t["amount"], t.get("iso_currency_code") or "USD"),
                        "name": formatters.truncate(t.get("name")),
                        "category": formatters.capitalize(t.get("category")),
                    }
                    for t in txs[:5]
                ],
            },
        }
