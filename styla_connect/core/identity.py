"""Service account used by the Styla API to read catalog data."""
from __future__ import annotations
import logging
from typing import Optional

from werkzeug.security import generate_password_hash

from . import audit
from .domain import ServiceIdentity
from .exceptions import IdentityCreationError, StoreError
from .store import CredentialStore

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "StylaApiAdminUser"
# The admin email must be unique, so the operator's email is prefixed in case
# it is already used by a human admin account.
ADMIN_EMAIL_PREPEND = "stylaapiadmin."


class IdentityService:
    """Resolve or create the dedicated API admin user."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def find(self) -> Optional[ServiceIdentity]:
        return self.store.find_by_unique_key(ServiceIdentity, ADMIN_USERNAME)

    def get_admin_user(
        self,
        email: str,
        password: str,
        create_if_not_exist: bool = True,
    ) -> Optional[ServiceIdentity]:
        """Return the service account, creating it on first use.

        Args:
            email: Operator email; the account email is derived from it
            password: Password for the new account (stored hashed)
            create_if_not_exist: When False, a missing account yields None

        Returns:
            The persisted identity, or None if absent and creation is disabled

        Raises:
            IdentityCreationError: If the store refuses the new account
        """
        identity = self.find()
        if identity is not None:
            logger.debug(f"[identity] Service user '{ADMIN_USERNAME}' already exists (id={identity.id})")
            return identity
        if not create_if_not_exist:
            return None

        identity = ServiceIdentity(
            username=ADMIN_USERNAME,
            email=f"{ADMIN_EMAIL_PREPEND}{email}",
            password_hash=generate_password_hash(password),
            first_name="Styla",
            last_name="Api Connector",
        )
        try:
            identity = self.store.upsert(identity)
        except StoreError as exc:
            raise IdentityCreationError(
                "Couldn't create an API admin user for you. Please create the user manually, "
                f"first (refer to the docs for details). Cause: {exc}"
            ) from exc

        logger.info(f"[identity] Service user '{ADMIN_USERNAME}' created (id={identity.id})")
        audit.safe_log_event("identity_created", ADMIN_USERNAME, details={"identity_id": identity.id, "email": identity.email})
        return identity
