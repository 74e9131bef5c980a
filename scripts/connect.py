"""Command-line wrapper around the Styla connector.

Runs the same provisioning flow as the admin action, against the store
configured by CONNECTOR_DATABASE_URL.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from styla_connect.config import load_settings
from styla_connect.core import audit
from styla_connect.core.exceptions import ConfigurationError, ConnectorError
from styla_connect.core.provisioning_service import ConnectorService


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Styla connector helper")
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sc = sub.add_parser("connect")
    sc.add_argument("--email", required=True)
    sc.add_argument("--password", default=os.environ.get("STYLA_PASSWORD"))
    sc.add_argument("--connection-url", default=None,
                    help="Endpoint override (honoured in developer mode only)")
    sc.add_argument("--no-create-user", action="store_true",
                    help="Fail instead of creating the API admin user")

    sub.add_parser("status")
    sub.add_parser("verify-audit")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    try:
        cfg = load_settings(require_secret_key=False)
    except ConfigurationError as e:
        print(f"[connect] Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.cmd == "verify-audit":
        audit.configure(cfg.audit_log_dir)
        total, valid = audit.verify_audit_log()
        print(f"Audit log: {valid}/{total} events with valid signatures")
        sys.exit(0 if total == valid else 1)

    if not cfg.database_url:
        print("[connect] Warning: CONNECTOR_DATABASE_URL not set, using a throwaway in-memory store",
              file=sys.stderr)
    service = ConnectorService.from_config(cfg)

    if args.cmd == "status":
        print(json.dumps(service.status(), indent=2, sort_keys=True))
    elif args.cmd == "connect":
        if not args.password:
            parser.error("Missing password (use --password or STYLA_PASSWORD)")
        try:
            result = service.connect(
                {"email": args.email, "password": args.password},
                args.connection_url,
                operator=args.operator,
                create_identity=not args.no_create_user,
            )
        except (ValueError, ConnectorError) as e:
            print(f"[connect] Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Connection to Styla made successfully (client={result.client or 'n/a'}).")
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
