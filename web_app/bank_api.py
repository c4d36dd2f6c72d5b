# web_app/bank_api.py
# Plaid Link flow + account/transaction reads.
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from flask import Blueprint, abort, current_app, jsonify, request

from ledgerlink import aggregator
from ledgerlink.errors import ApiError
from ledgerlink.service import default_window
from web_app.gate import current_user_id, ext, require_auth

bp = Blueprint("bank_api", __name__, url_prefix="/api")


def _parse_day(raw: Optional[str], name: str) -> Optional[date]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise ApiError(f"Invalid {name}: {raw!r} (expected YYYY-MM-DD)")


def date_window():
    """start_date/end_date query args, defaulting to the last 30 days."""
    start = _parse_day(request.args.get("start_date"), "start_date")
    end = _parse_day(request.args.get("end_date"), "end_date")
    d_start, d_end = default_window()
    start, end = start or d_start, end or d_end
    if start > end:
        raise ApiError("start_date must be on or before end_date")
    return start, end


@bp.post("/plaid/create-link-token")
@require_auth
def create_link_token():
    data = ext("service").create_link_token(current_user_id())
    return jsonify(data)


@bp.post("/plaid/exchange-public-token")
@require_auth
def exchange_public_token():
    payload = request.get_json(silent=True) or {}
    public_token = (payload.get("public_token") or "").strip()
    if not public_token:
        abort(400, description="Missing public_token in request body")

    # Link's onSuccess metadata may be posted whole or just its institution
    institution = payload.get("institution") or (payload.get("metadata") or {}).get("institution")
    if not isinstance(institution, dict):
        institution = {"name": institution} if isinstance(institution, str) else None

    accounts = ext("service").link_item(current_user_id(), public_token, institution)
    current_app.logger.info("Linked %d accounts for user %s", len(accounts), current_user_id())
    return jsonify({"success": True, "accounts": accounts})


@bp.get("/plaid/accounts")
@bp.get("/accounts")
@require_auth
def accounts():
    return jsonify({"success": True, "accounts": ext("service").accounts(current_user_id())})


@bp.delete("/plaid/accounts/<account_id>")
@require_auth
def remove_account(account_id: str):
    removed = ext("service").remove_account(current_user_id(), account_id)
    return jsonify({"success": True, "removed": removed})


@bp.get("/plaid/transactions")
@bp.get("/transactions")
@require_auth
def transactions():
    start, end = date_window()
    txs = ext("service").transactions(current_user_id(), start, end)
    txs = aggregator.filter_transactions(
        txs,
        search=request.args.get("search", ""),
        category=request.args.get("category", ""),
    )
    return jsonify({
        "success": True,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "transactions": txs,
        "categories": aggregator.categories_of(txs),
        "stats": aggregator.transaction_stats(txs),
    })
