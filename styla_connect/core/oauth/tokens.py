"""OAuth token issuance and promotion.

A consumer owns a single token which moves through
``unauthorized -> authorized -> permanent``. ``permanent`` is terminal:
once promoted, a token is never re-authorized or re-issued.
"""
from __future__ import annotations
import logging
from typing import Optional

from .. import audit
from ..domain import Consumer, ServiceIdentity, Token, TokenState, TokenType
from ..exceptions import TokenStateError
from ..store import CredentialStore
from .consumers import generate_key

logger = logging.getLogger(__name__)

USER_TYPE_ADMIN = "admin"

TOKEN_LENGTH = 32
TOKEN_SECRET_LENGTH = 32
VERIFIER_LENGTH = 32


class TokenService:
    """Issue the consumer's token and promote it to a permanent access token."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def find_for_consumer(self, consumer: Consumer) -> Optional[Token]:
        return self.store.find_by_unique_key(Token, str(consumer.id))

    def ensure_access_token(
        self,
        consumer: Consumer,
        identity: ServiceIdentity,
        callback_url: str = "",
    ) -> Token:
        """Return the consumer's permanent token, issuing and promoting it if needed.

        Args:
            consumer: Persisted consumer owning the token
            identity: Service account authorizing the token
            callback_url: URL recorded on a newly issued request token

        Returns:
            Token in the ``permanent`` state

        Raises:
            TokenStateError: If the identity cannot authorize tokens
        """
        if consumer.id is None:
            raise TokenStateError("Consumer must be persisted before a token can be issued")

        token = self.find_for_consumer(consumer)
        if token is None:
            token = self.create_request_token(consumer, callback_url)

        if token.state is TokenState.UNAUTHORIZED:
            token = self.authorize(token, identity)
        if token.state is TokenState.AUTHORIZED:
            token = self.convert_to_access(token)
        else:
            logger.debug(f"[oauth] Token for consumer {consumer.id} already permanent")

        return token

    def create_request_token(self, consumer: Consumer, callback_url: str = "") -> Token:
        """Issue a new unauthorized request token for the consumer."""
        token = Token(
            consumer_id=consumer.id,
            token=generate_key(TOKEN_LENGTH),
            secret=generate_key(TOKEN_SECRET_LENGTH),
            callback_url=callback_url,
            type=TokenType.REQUEST,
            state=TokenState.UNAUTHORIZED,
        )
        token = self.store.upsert(token)
        logger.info(f"[oauth] Request token issued for consumer {consumer.id} (token id={token.id})")
        return token

    def authorize(self, token: Token, identity: ServiceIdentity, user_type: str = USER_TYPE_ADMIN) -> Token:
        """Mark a request token as authorized by the service account."""
        if token.state is not TokenState.UNAUTHORIZED:
            raise TokenStateError(f"Cannot authorize a token in state '{token.state.value}'")
        if identity.id is None or not identity.is_active:
            raise TokenStateError(f"Identity '{identity.username}' is not an active service account")

        token.state = TokenState.AUTHORIZED
        token.authorized_user_id = identity.id
        token.user_type = user_type
        token.verifier = generate_key(VERIFIER_LENGTH)
        token = self.store.upsert(token)
        logger.info(f"[oauth] Token {token.id} authorized by '{identity.username}'")
        return token

    def convert_to_access(self, token: Token) -> Token:
        """Promote an authorized request token to a permanent access token.

        The key and secret are regenerated; the request-token values stop
        being valid.
        """
        if token.state is not TokenState.AUTHORIZED:
            raise TokenStateError(f"Cannot promote a token in state '{token.state.value}'")

        token.token = generate_key(TOKEN_LENGTH)
        token.secret = generate_key(TOKEN_SECRET_LENGTH)
        token.type = TokenType.ACCESS
        token.state = TokenState.PERMANENT
        token = self.store.upsert(token)
        logger.info(f"[oauth] Token {token.id} converted to permanent access token")
        audit.safe_log_event(
            "token_promoted",
            str(token.consumer_id),
            details={"token_id": token.id, "authorized_user_id": token.authorized_user_id},
        )
        return token
