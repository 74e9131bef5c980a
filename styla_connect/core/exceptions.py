"""Connector-specific exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class ConnectorError(Exception):
    """Base exception for all connector operations."""
    pass


class ConfigurationError(ConnectorError):
    """Settings or a caller-supplied override are invalid (e.g. connection URL)."""
    pass


class IdentityCreationError(ConnectorError):
    """The API service account could not be resolved or created."""
    pass


class TokenStateError(ConnectorError):
    """An OAuth token was asked for a transition its current state does not allow."""
    pass


class RegistrationError(ConnectorError):
    """Registration call to the remote Styla API failed.

    Attributes:
        status_code: HTTP status code (None when no response was received)
        message: Error message returned by the server, if any
        endpoint: URL that was called
    """

    def __init__(self, status_code: Optional[int], message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        status = status_code if status_code is not None else "no response"
        detail = f" - {message}" if message else ""
        super().__init__(
            f"Couldn't connect to Styla API. Error result: {status}{detail}. "
            "Please check the email and password used and try connecting one more time. "
            "In case still no success, contact Styla."
        )


class StoreError(ConnectorError):
    """Credential store failure."""
    pass


class DuplicateEntityError(StoreError):
    """Upsert would create a second record with an existing unique key."""
    pass
