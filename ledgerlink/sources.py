# ledgerlink/sources.py
"""
Upstream banking-data sources.

Both classes expose the same four calls plus ``sign_policy`` / ``is_mock``;
the service layer only talks to that surface, and ``build_source`` picks one
from configuration.
"""
from __future__ import annotations

import copy
import json
import logging
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from plaid.api import plaid_api
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.exceptions import ApiException
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions

from ledgerlink import mock_data
from ledgerlink.config import Settings
from ledgerlink.errors import UpstreamError
from ledgerlink.normalizer import SIGN_AS_IS

log = logging.getLogger(__name__)

CLIENT_NAME = "Personal Finance App"
LINK_PRODUCTS = ("auth", "transactions")
PAGE_SIZE = 100


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value), "%Y-%m-%d").date()


def _to_dict(obj) -> Dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj or {})


def _upstream_error(e: ApiException, what: str) -> UpstreamError:
    """Lift Plaid's error_message / error_code out of the response body."""
    message, code = None, None
    try:
        body = json.loads(e.body or "{}")
        message = body.get("error_message")
        code = body.get("error_code")
    except (TypeError, ValueError):
        pass
    return UpstreamError(message or f"Failed to {what}", code=code, upstream_status=e.status)


class PlaidSource:
    is_mock = False

    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self.sign_policy = settings.sign_policy
        self.timeout = settings.plaid_timeout
        if client is None:
            configuration = Configuration(
                host=settings.plaid_host,
                api_key={"clientId": settings.plaid_client_id, "secret": settings.plaid_secret},
            )
            client = plaid_api.PlaidApi(ApiClient(configuration))
        self.client = client

    def create_link_token(self, user_id: str) -> Dict[str, Any]:
        kwargs = {}
        if self.settings.plaid_redirect_uri:
            kwargs["redirect_uri"] = self.settings.plaid_redirect_uri
        request = LinkTokenCreateRequest(
            products=[Products(p) for p in LINK_PRODUCTS],
            client_name=CLIENT_NAME,
            country_codes=[CountryCode("US")],
            language="en",
            user=LinkTokenCreateRequestUser(client_user_id=str(user_id)),
            **kwargs,
        )
        try:
            response = self.client.link_token_create(request, _request_timeout=self.timeout)
        except ApiException as e:
            raise _upstream_error(e, "create link token")
        return _to_dict(response)

    def exchange_public_token(self, public_token: str) -> Tuple[str, str]:
        try:
            response = self.client.item_public_token_exchange(
                ItemPublicTokenExchangeRequest(public_token=public_token),
                _request_timeout=self.timeout,
            )
        except ApiException as e:
            raise _upstream_error(e, "exchange public token")
        return response.access_token, response.item_id

    def get_accounts(self, access_token: str) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        try:
            response = self.client.accounts_get(
                AccountsGetRequest(access_token=access_token),
                _request_timeout=self.timeout,
            )
        except ApiException as e:
            raise _upstream_error(e, "fetch accounts")
        data = _to_dict(response)
        return data.get("accounts"), data.get("item") or {}

    def get_transactions(self, access_token: str, start_date, end_date) -> List[Dict[str, Any]]:
        start_date, end_date = _as_date(start_date), _as_date(end_date)
        all_fetched: List[Dict[str, Any]] = []
        offset = 0
        try:
            while True:
                request = TransactionsGetRequest(
                    access_token=access_token,
                    start_date=start_date,
                    end_date=end_date,
                    options=TransactionsGetRequestOptions(count=PAGE_SIZE, offset=offset),
                )
                response = self.client.transactions_get(request, _request_timeout=self.timeout)
                batch = [_to_dict(t) for t in response.transactions]
                all_fetched.extend(batch)
                log.debug("Fetched %d (total %d/%d)", len(batch), len(all_fetched), response.total_transactions)
                if not batch or len(all_fetched) >= response.total_transactions:
                    break
                offset += len(batch)
        except ApiException as e:
            raise _upstream_error(e, "fetch transactions")
        return all_fetched


class MockSource:
    """Demo data; every call succeeds and nothing leaves the process."""

    is_mock = True
    sign_policy = SIGN_AS_IS

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def create_link_token(self, user_id: str) -> Dict[str, Any]:
        return {
            "link_token": f"mock-link-token-{int(time.time() * 1000)}",
            "expiration": None,
            "request_id": "mock-request",
        }

    def exchange_public_token(self, public_token: str) -> Tuple[str, str]:
        return mock_data.MOCK_ACCESS_TOKEN, mock_data.MOCK_ITEM_ID

    def get_accounts(self, access_token: str) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        item = {"item_id": mock_data.MOCK_ITEM_ID, "institution_id": mock_data.MOCK_INSTITUTION_ID}
        return copy.deepcopy(mock_data.MOCK_ACCOUNTS), item

    def get_transactions(self, access_token: str, start_date, end_date) -> List[Dict[str, Any]]:
        start_s, end_s = _as_date(start_date).isoformat(), _as_date(end_date).isoformat()
        return [
            tx for tx in mock_data.mock_transactions(self._today())
            if start_s <= tx["date"] <= end_s
        ]


def build_source(settings: Settings):
    if settings.data_source == "mock":
        return MockSource()
    if settings.data_source == "plaid" or settings.has_plaid_credentials:
        log.info("Using Plaid source (%s)", settings.plaid_env)
        return PlaidSource(settings)
    log.warning("Plaid credentials missing; serving mock data")
    return MockSource()
