# web_app/spending_api.py
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ledgerlink.errors import ApiError
from web_app.bank_api import date_window
from web_app.gate import current_user_id, ext, require_auth

bp = Blueprint("spending_api", __name__, url_prefix="/api")

MAX_MONTHS = 24


@bp.get("/spending/monthly")
@require_auth
def monthly():
    raw = (request.args.get("months") or "6").strip()
    if not raw.isdigit() or not (1 <= int(raw) <= MAX_MONTHS):
        raise ApiError(f"months must be an integer between 1 and {MAX_MONTHS}")
    return jsonify(ext("service").monthly_spending(current_user_id(), int(raw)))


@bp.get("/spending/categories")
@require_auth
def categories():
    start, end = date_window()
    totals = ext("service").category_spending(current_user_id(), start, end)
    return jsonify({
        "success": True,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "categories": [{"category": k, "total": v} for k, v in totals.items()],
    })


@bp.get("/summary")
@require_auth
def summary():
    start, end = date_window()
    data = ext("service").summary(current_user_id(), start, end)
    return jsonify({"success": True, **data})
