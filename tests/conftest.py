"""Pytest shared fixtures for connector tests."""
import os
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("STYLA_DEVELOPER_MODE", "true")

import pytest
import requests

from styla_connect.core import audit
from styla_connect.core.store import InMemoryCredentialStore


class StubResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload=None, status_code: int = 200, text: str | None = None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a test reaches the network without stubbing it first."""

    def _stub_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    def _stub_get(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP GET in unit test: {url}")

    monkeypatch.setattr(requests, "post", _stub_post)
    monkeypatch.setattr(requests, "get", _stub_get)


@pytest.fixture(autouse=True)
def temp_audit_dir(tmp_path, monkeypatch):
    """Send audit events to a temporary directory with a known signing key."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key")
    return audit_dir, audit_dir / audit.AUDIT_LOG_FILENAME


# ─────────────────────────────────────────────────────────────────────────────
# Connector fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def store():
    return InMemoryCredentialStore()


@pytest.fixture()
def stub_styla(monkeypatch):
    """Answer registration POSTs with a configurable response and record the calls."""

    class _Styla:
        Response = StubResponse

        def __init__(self):
            self.calls = []
            self.response = StubResponse({"client": "acme"}, 200)

        def post(self, url, data=None, timeout=None, **kwargs):
            self.calls.append({"url": url, "data": data, "timeout": timeout})
            if isinstance(self.response, Exception):
                raise self.response
            return self.response

    styla = _Styla()
    monkeypatch.setattr(requests, "post", styla.post)
    return styla


