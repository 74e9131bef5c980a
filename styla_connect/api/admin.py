"""Admin routes for connecting this installation to Styla."""
from __future__ import annotations
import hmac
from functools import wraps

from flask import Blueprint, current_app, flash, get_flashed_messages, jsonify, redirect, request, url_for

from styla_connect.core.exceptions import ConnectorError

bp = Blueprint("admin", __name__)


# ─────────────────────────────────────────────────────────────────────────────
# Decorators
# ─────────────────────────────────────────────────────────────────────────────
def require_admin_token(fn):
    """Restrict the connect action to callers presenting the admin Bearer token.

    Without a configured token the action is only available in developer mode.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        cfg = current_app.config["APP_CONFIG"]
        if not cfg.admin_token:
            if cfg.developer_mode:
                return fn(*args, **kwargs)
            return jsonify({"error": "Forbidden", "message": "Connect action is disabled (no admin token configured)"}), 403

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            current_app.logger.warning("[admin] Connect request without Bearer token")
            return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401

        supplied = auth_header[len("Bearer "):]
        if not hmac.compare_digest(supplied.encode("utf-8"), cfg.admin_token.encode("utf-8")):
            current_app.logger.warning("[admin] Connect request with invalid admin token")
            return jsonify({"error": "Unauthorized", "message": "Invalid admin token"}), 401

        return fn(*args, **kwargs)
    return wrapper


def _connector():
    return current_app.extensions["styla_connector"]


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.post("/connect")
@require_admin_token
def admin_connect():
    """Grant Styla API access and register this installation with Styla."""
    login_data = {
        "email": request.form.get("email", ""),
        "password": request.form.get("password", ""),
    }
    override_url = request.form.get("connection_url", "").strip() or None

    try:
        result = _connector().connect(login_data, override_url, operator="admin-ui")
    except ValueError as exc:
        flash(f"Validation error: {exc}", "error")
    except ConnectorError as exc:
        current_app.logger.warning(f"[admin] Connect failed: {exc.__class__.__name__}")
        flash(str(exc), "error")
    else:
        message = "Connection to Styla made successfully."
        if result.client:
            message += f" Client: {result.client}"
        flash(message, "success")

    return redirect(url_for("admin.admin_status"))


@bp.get("/status")
def admin_status():
    """Current connection state plus pending notifications."""
    cfg = current_app.config["APP_CONFIG"]
    messages = [
        {"category": category, "message": message}
        for category, message in get_flashed_messages(with_categories=True)
    ]
    return jsonify({
        "developer_mode": cfg.developer_mode,
        "status": _connector().status(),
        "messages": messages,
    })
