"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..core.exceptions import ConfigurationError

# Production registration endpoint; only developer mode may override it per request.
STYLA_API_CONNECTOR_URL_PRODUCTION = "http://live.styla.com/api/magento"

DEFAULT_REQUEST_TIMEOUT = 10

SECRETS_DIR = Path("/run/secrets")

# Attributes exposed read-only to the Styla API, per resource group.
DEFAULT_RESOURCE_ATTRIBUTES: dict[str, list[str]] = {
    "styla_category": [
        "children",
        "entity_id",
        "is_active",
        "level",
        "name",
        "parent_id",
        "position",
        "url_key",
    ],
    "styla_product": [
        "categories",
        "description",
        "entity_id",
        "final_price",
        "image",
        "is_in_stock",
        "name",
        "price",
        "short_description",
        "sku",
        "special_price",
        "type_id",
        "url",
        "visibility",
    ],
}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(var_name: str, default: str = "false") -> bool:
    return os.environ.get(var_name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    developer_mode: bool

    # Flask
    secret_key: str

    # Registration
    connector_api_url: str = STYLA_API_CONNECTOR_URL_PRODUCTION
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    default_front_name: str = "magazine"

    # Admin action guard (Bearer token for POST /admin/connect)
    admin_token: str = ""

    # Storage
    database_url: str = ""

    # Audit
    audit_log_dir: str = ".runtime/audit"
    audit_log_signing_key: str = ""

    # Permissions granted to the API role
    resource_attributes: dict[str, list[str]] = field(
        default_factory=lambda: {group: list(attrs) for group, attrs in DEFAULT_RESOURCE_ATTRIBUTES.items()}
    )


def _parse_timeout(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = int(raw)
    except ValueError:
        raise ConfigurationError(f"STYLA_REQUEST_TIMEOUT must be an integer, got '{raw}'")
    if timeout <= 0:
        raise ConfigurationError("STYLA_REQUEST_TIMEOUT must be positive")
    return timeout


def load_settings(require_secret_key: bool = True) -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Args:
        require_secret_key: False for CLI use, where no Flask session exists
    """
    developer_mode = _env_flag("STYLA_DEVELOPER_MODE")

    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key and require_secret_key:
        if not developer_mode:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")
        secret_key = secrets.token_urlsafe(48)
        os.environ["FLASK_SECRET_KEY"] = secret_key
        print("[developer-mode] Generated temporary FLASK_SECRET_KEY")

    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key

    admin_token = _load_secret_from_file("connector_admin_token", "CONNECTOR_ADMIN_TOKEN") or ""
    if not admin_token and not developer_mode:
        print("[settings] WARNING: CONNECTOR_ADMIN_TOKEN not set; the connect action is disabled.")

    database_url = _load_secret_from_file("connector_database_url", "CONNECTOR_DATABASE_URL") or ""
    request_timeout = _parse_timeout(os.environ.get("STYLA_REQUEST_TIMEOUT"))
    audit_log_dir = os.environ.get("AUDIT_LOG_DIR", ".runtime/audit")
    default_front_name = os.environ.get("STYLA_DEFAULT_FRONT_NAME", "magazine").strip() or "magazine"

    mode_label = "DEVELOPER" if developer_mode else "PRODUCTION"
    backend = database_url.split(":", 1)[0] if database_url else "memory"
    print(f"[settings] Mode={mode_label}; store={backend}; timeout={request_timeout}s")

    if developer_mode:
        print("[settings] WARNING: Developer mode allows overriding the Styla connection URL.")

    return AppConfig(
        developer_mode=developer_mode,
        secret_key=secret_key or "",
        request_timeout=request_timeout,
        default_front_name=default_front_name,
        admin_token=admin_token,
        database_url=database_url,
        audit_log_dir=audit_log_dir,
        audit_log_signing_key=audit_log_signing_key,
    )
