"""
Provisioning Service Layer: one idempotent "connect to Styla" operation

Used by both the Flask admin action and the CLI so that validation,
sequencing and error handling stay identical across interfaces.

Flow:
    validate login data ──> service account ──> role + attribute ACL
        ──> consumer + permanent token ──> Styla registration
        ──> default magazine binding

Every step re-resolves its records by unique key, so a failed run can
simply be repeated; partial progress is left in place.
"""

from __future__ import annotations
import logging
from typing import Any, Mapping, Optional

from ..config.settings import DEFAULT_RESOURCE_ATTRIBUTES, AppConfig
from . import audit
from .bindings import BindingService
from .domain import RegistrationResult, Role, Token
from .exceptions import IdentityCreationError, RegistrationError
from .identity import ADMIN_USERNAME, IdentityService
from .oauth import CONSUMER_NAME, ConsumerService, TokenService
from .permissions import API2_ROLE_NAME, PermissionService
from .registration import RegistrationClient
from .store import CredentialStore, create_store
from .validators import validate_email, validate_password

logger = logging.getLogger(__name__)

DEFAULT_FRONT_NAME = "magazine"


class ConnectorService:
    """Grant Styla API access to this installation and register it with Styla."""

    def __init__(
        self,
        store: CredentialStore,
        registration_client: Optional[RegistrationClient] = None,
        resource_attributes: Optional[Mapping[str, list[str]]] = None,
        default_front_name: str = DEFAULT_FRONT_NAME,
    ):
        self.store = store
        self.registration_client = registration_client or RegistrationClient()
        self.resource_attributes = dict(resource_attributes or DEFAULT_RESOURCE_ATTRIBUTES)
        self.default_front_name = default_front_name

        self.identities = IdentityService(store)
        self.permissions = PermissionService(store)
        self.consumers = ConsumerService(store)
        self.tokens = TokenService(store)
        self.bindings = BindingService(store)

    @classmethod
    def from_config(cls, cfg: AppConfig, store: Optional[CredentialStore] = None) -> "ConnectorService":
        """Build a service wired to the configured store and endpoint."""
        audit.configure(cfg.audit_log_dir)
        return cls(
            store if store is not None else create_store(cfg.database_url),
            RegistrationClient(
                developer_mode=cfg.developer_mode,
                production_url=cfg.connector_api_url,
                timeout=cfg.request_timeout,
            ),
            resource_attributes=cfg.resource_attributes,
            default_front_name=cfg.default_front_name,
        )

    def connect(
        self,
        login_data: Mapping[str, str],
        override_url: Optional[str] = None,
        *,
        operator: str = "system",
        create_identity: bool = True,
    ) -> RegistrationResult:
        """Create the API user, ACL, consumer and token, then register with Styla.

        Args:
            login_data: Operator's Styla credentials ({"email", "password"})
            override_url: Developer-mode connection URL override
            operator: Who triggered the connection (for the audit trail)
            create_identity: Create the service account when it is missing

        Returns:
            RegistrationResult returned by Styla

        Raises:
            ValueError: Invalid login data (nothing is written)
            ConfigurationError: Invalid override URL (nothing is written)
            IdentityCreationError: Service account missing and not creatable
            RegistrationError: Styla rejected the registration
        """
        email = validate_email(login_data.get("email", ""))
        # Styla receives the address as typed; only the local account email is normalized
        styla_email = (login_data.get("email") or "").strip()
        password = validate_password(login_data.get("password", ""))
        endpoint = self.registration_client.resolve_endpoint(override_url)

        identity = self.identities.get_admin_user(email, password, create_if_not_exist=create_identity)
        if identity is None:
            raise IdentityCreationError(
                f"API admin user '{ADMIN_USERNAME}' does not exist and automatic creation is disabled. "
                "Please create the user manually, first (refer to the docs for details)."
            )

        self.permissions.ensure_permissions(identity, self.resource_attributes)

        consumer = self.consumers.get_or_create(CONSUMER_NAME)
        token = self.tokens.ensure_access_token(consumer, identity, callback_url=endpoint)

        try:
            result = self.registration_client.register(
                {"email": styla_email, "password": password},
                consumer,
                token,
                override_url=override_url,
            )
        except RegistrationError as exc:
            audit.safe_log_event(
                "registration",
                email,
                operator=operator,
                details={"endpoint": exc.endpoint, "status": exc.status_code, "error": exc.message},
                success=False,
            )
            raise

        if result.client:
            self.bindings.create_default_binding(result.client, self.default_front_name)
        else:
            logger.warning("[connect] Styla response carried no client name; default binding not created")

        audit.safe_log_event(
            "registration",
            email,
            operator=operator,
            details={"endpoint": endpoint, "client": result.client},
        )
        logger.info(f"[connect] Connection to Styla made successfully (client={result.client})")
        return result

    def status(self) -> dict[str, Any]:
        """Summarize what has been provisioned so far (never includes secrets)."""
        identity = self.identities.find()
        consumer = self.consumers.find(CONSUMER_NAME)
        token: Optional[Token] = self.tokens.find_for_consumer(consumer) if consumer else None
        binding = self.bindings.load_default()
        role = self.store.find_by_unique_key(Role, API2_ROLE_NAME)

        return {
            "identity": identity.username if identity else None,
            "role": role.name if role else None,
            "privileges": sorted("-".join(pair) for pair in role.privileges) if role else [],
            "consumer": consumer.name if consumer else None,
            "token_state": token.state.value if token else None,
            "binding": {"client_name": binding.client_name, "front_name": binding.front_name} if binding else None,
            "connected": bool(token and token.is_permanent and binding),
        }
