"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the admin application with its blueprints, error handlers and the
connector service.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask

from styla_connect.config import AppConfig, load_settings
from styla_connect.core.provisioning_service import ConnectorService
from styla_connect.core.store import CredentialStore


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, store: Optional[CredentialStore] = None) -> Flask:
    """Create and configure Flask application."""
    cfg = cfg or load_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["DEVELOPER_MODE"] = cfg.developer_mode
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"

    if not app.debug:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    app.extensions["styla_connector"] = ConnectorService.from_config(cfg, store=store)

    from styla_connect.api import admin, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(admin.bp, url_prefix="/admin")
    errors.register_error_handlers(app)

    mode_label = "DEVELOPER" if cfg.developer_mode else "PRODUCTION"
    app.logger.info(f"[flask_app] Mode={mode_label}")
    if cfg.developer_mode:
        app.logger.warning("[flask_app] Developer mode active - connection URL overrides are accepted")

    return app
