"""OAuth consumer management."""
from __future__ import annotations
import logging
import secrets

from .. import audit
from ..domain import Consumer
from ..store import CredentialStore

logger = logging.getLogger(__name__)

CONSUMER_NAME = "Styla Api Connector"

# OAuth1 key/secret lengths (hex characters)
CONSUMER_KEY_LENGTH = 32
CONSUMER_SECRET_LENGTH = 32


def generate_key(length: int) -> str:
    """Random lowercase hex string of ``length`` characters."""
    return secrets.token_hex(length // 2)


class ConsumerService:
    """Get or create the consumer representing this integration."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def find(self, name: str = CONSUMER_NAME) -> Consumer | None:
        return self.store.find_by_unique_key(Consumer, name)

    def get_or_create(self, name: str = CONSUMER_NAME) -> Consumer:
        consumer = self.find(name)
        if consumer is not None:
            return consumer

        consumer = self.store.upsert(
            Consumer(
                name=name,
                key=generate_key(CONSUMER_KEY_LENGTH),
                secret=generate_key(CONSUMER_SECRET_LENGTH),
            )
        )
        logger.info(f"[oauth] Consumer '{name}' created (id={consumer.id})")
        audit.safe_log_event("consumer_created", name, details={"consumer_id": consumer.id})
        return consumer
