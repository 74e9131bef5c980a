"""HTTP client for the Styla registration endpoint.

Sends the OAuth credentials of this installation to Styla and receives the
client configuration in return. Registration is an interactive admin
action: one attempt, no retries.
"""
from __future__ import annotations
import logging
from typing import Any, Optional

import requests

from ..config.settings import DEFAULT_REQUEST_TIMEOUT, STYLA_API_CONNECTOR_URL_PRODUCTION
from .domain import Consumer, RegistrationResult, Token
from .exceptions import RegistrationError
from .validators import validate_connection_url

logger = logging.getLogger(__name__)


class RegistrationClient:
    """Register the local consumer/token pair with Styla.

    Usage:
        client = RegistrationClient(developer_mode=False)
        result = client.register({"email": ..., "password": ...}, consumer, token)
    """

    def __init__(
        self,
        developer_mode: bool = False,
        production_url: str = STYLA_API_CONNECTOR_URL_PRODUCTION,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ):
        """Initialize registration client.

        Args:
            developer_mode: Allow callers to override the endpoint URL
            production_url: Endpoint used unless an override is accepted
            timeout: HTTP timeout in seconds
        """
        self.developer_mode = developer_mode
        self.production_url = production_url
        self.timeout = timeout

    def resolve_endpoint(self, override_url: Optional[str] = None) -> str:
        """Get the URL for connecting with Styla, by operating mode.

        In developer mode the admin can force a URL of their choice; it must
        pass basic URL validation. Outside developer mode the override is
        ignored.

        Raises:
            ConfigurationError: If an accepted override is not a valid URL
        """
        if self.developer_mode and override_url:
            return validate_connection_url(override_url)
        return self.production_url

    def register(
        self,
        login_data: dict[str, str],
        consumer: Consumer,
        token: Token,
        override_url: Optional[str] = None,
    ) -> RegistrationResult:
        """Send the registration data to Styla and return the client configuration.

        Args:
            login_data: Operator credentials ({"email", "password"})
            consumer: Consumer whose key/secret Styla will use
            token: Permanent access token for the consumer
            override_url: Developer-mode endpoint override

        Returns:
            RegistrationResult with the remote configuration

        Raises:
            ConfigurationError: Invalid override URL (before any network call)
            RegistrationError: Transport failure or non-success response
        """
        endpoint = self.resolve_endpoint(override_url)
        payload = {
            "styla_email": login_data["email"],
            "styla_password": login_data["password"],
            "consumer_key": consumer.key,
            "consumer_secret": consumer.secret,
            "token_key": token.token,
            "token_secret": token.secret,
        }

        logger.info(f"[register] POST {endpoint} for consumer '{consumer.name}'")
        try:
            resp = requests.post(endpoint, data=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"[register] Request to {endpoint} failed: {exc.__class__.__name__}")
            raise RegistrationError(None, str(exc), endpoint) from exc

        body = _json_body(resp)
        if not 200 <= resp.status_code < 300:
            message = body.get("error", "") if isinstance(body, dict) else ""
            logger.warning(f"[register] Styla answered {resp.status_code} for {endpoint}")
            raise RegistrationError(resp.status_code, str(message or ""), endpoint)

        if not isinstance(body, dict):
            raise RegistrationError(resp.status_code, "Response body is not a JSON object", endpoint)

        client = body.get("client")
        logger.info(f"[register] Registered with Styla (client={client})")
        return RegistrationResult(client=str(client) if client else None, configuration=body)


def _json_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None
