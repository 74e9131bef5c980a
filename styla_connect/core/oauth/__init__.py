"""OAuth1 consumer and token management."""
from .consumers import CONSUMER_NAME, ConsumerService, generate_key
from .tokens import USER_TYPE_ADMIN, TokenService

__all__ = [
    "CONSUMER_NAME",
    "ConsumerService",
    "TokenService",
    "USER_TYPE_ADMIN",
    "generate_key",
]
