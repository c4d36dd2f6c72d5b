# web_app/app.py
from __future__ import annotations

from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from ledgerlink.auth import UserStore
from ledgerlink.config import Settings, configure_logging
from ledgerlink.errors import LedgerError
from ledgerlink.service import FinanceService
from ledgerlink.sources import build_source
from ledgerlink.token_store import build_store
from web_app import auth_api, bank_api, spending_api
from web_app.gate import EXTENSION_KEY

CORS_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]


def create_app(settings: Settings = None, source=None, store=None, users: UserStore = None) -> Flask:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = Flask(__name__)
    app.json.sort_keys = False  # category totals keep first-seen order

    source = source if source is not None else build_source(settings)
    store = store if store is not None else build_store(settings)
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "service": FinanceService(source, store, settings),
        "users": users if users is not None else UserStore(),
    }

    app.logger.info(
        "[Config] env=%s source=%s store=%s sign_policy=%s",
        settings.app_env, type(source).__name__, type(store).__name__, settings.sign_policy,
    )

    # ------------------ MIDDLEWARE ------------------
    CORS(
        app,
        resources={r"/api/*": {"origins": "*"}},
        send_wildcard=True,
        methods=CORS_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    @app.after_request
    def add_no_cache_headers(resp):
        resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
        return resp

    # ------------------ ERRORS ------------------
    @app.errorhandler(LedgerError)
    def handle_ledger_error(e: LedgerError):
        if e.status >= 500:
            app.logger.error("%s on %s: %s", type(e).__name__, request.path, e.message)
        return jsonify(e.to_envelope()), e.status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        app.logger.exception("Unhandled error on %s", request.path)
        return jsonify({"success": False, "message": "Internal server error", "error": str(e)}), 500

    # ------------------ ROUTES ------------------
    @app.get("/api/health-check")
    def health_check():
        return jsonify(status="ok", timestamp=datetime.now(timezone.utc).isoformat())

    if not settings.is_production:
        @app.get("/api/debug/env")
        def debug_env():
            return jsonify(settings.redacted())

    app.register_blueprint(auth_api.bp)
    app.register_blueprint(bank_api.bp)
    app.register_blueprint(spending_api.bp)
    return app


app = create_app()


if __name__ == "__main__":
    app.run(debug=True, port=8000)
