"""REST ACL setup for the Styla service account.

Two independent grants are managed here:

- attribute filters: which fields of ``styla_product`` / ``styla_category``
  the admin REST user type may read;
- the API role: which resources/privileges the service account may call.

Both converge to exactly the declared state on every run.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from . import audit
from .domain import AttributeFilter, Role, ServiceIdentity
from .store import CredentialStore

logger = logging.getLogger(__name__)

API2_ROLE_NAME = "StylaApi2Role"
REST_USER_TYPE = "admin"
READ_OPERATION = "read"
ALL_RESOURCES = "all"
STYLA_RESOURCE_GROUPS = ("styla_product", "styla_category")

# Catalog read access on both Styla resources.
ROLE_RESOURCE_TREE = (
    "__root__,group-catalog,"
    "resource-styla_category,privilege-styla_category-retrieve,"
    "resource-styla_product,privilege-styla_product-retrieve"
)


@dataclass
class RoleAssignmentRequest:
    """Role save parameters, passed explicitly to the role storage step."""

    role_name: str
    user_ids: list[int] = field(default_factory=list)
    resource_tree: str = ROLE_RESOURCE_TREE

    def privilege_pairs(self) -> set[tuple[str, str]]:
        """Parse the comma separated resource tree into (resource, privilege) pairs.

        ``__root__`` and ``group-*`` nodes only structure the tree and carry
        no privileges; ``resource-*`` nodes are implied by their privileges.
        """
        pairs: set[tuple[str, str]] = set()
        for node in (part.strip() for part in self.resource_tree.split(",")):
            if not node.startswith("privilege-"):
                continue
            resource_id, sep, privilege = node[len("privilege-"):].rpartition("-")
            if not sep or not resource_id or not privilege:
                raise ValueError(f"Malformed privilege node '{node}'")
            pairs.add((resource_id, privilege))
        return pairs


class PermissionService:
    """Grant the service account read access to the Styla resources."""

    def __init__(self, store: CredentialStore, resource_groups: Iterable[str] = STYLA_RESOURCE_GROUPS):
        self.store = store
        self.resource_groups = tuple(resource_groups)

    def ensure_permissions(
        self,
        identity: ServiceIdentity,
        resource_attributes: Mapping[str, Iterable[str]],
    ) -> Role:
        """Assign the API role and grant attribute read access."""
        role = self.assign_role(identity)
        self.grant_read_access(identity, resource_attributes)
        return role

    # ─────────────────────────────────────────────────────────────────────
    # Attribute filters
    # ─────────────────────────────────────────────────────────────────────

    def grant_read_access(
        self,
        identity: ServiceIdentity,
        resource_attributes: Mapping[str, Iterable[str]],
    ) -> list[AttributeFilter]:
        """Replace the Styla attribute filters with the declared attribute lists.

        Args:
            identity: Service account the grant is made for
            resource_attributes: Resource group -> readable field names

        Returns:
            Attribute filters written (empty when the wildcard grant exists)

        Raises:
            ValueError: If a resource group is not managed by this service
        """
        declared = {group: sorted(set(attrs)) for group, attrs in resource_attributes.items()}
        unknown = set(declared) - set(self.resource_groups)
        if unknown:
            raise ValueError(f"Unsupported resource groups: {', '.join(sorted(unknown))}")

        # Legacy escape hatch: environments granting "all" attributes are left alone.
        if self.has_all_attributes():
            logger.info(f"[acl] '{REST_USER_TYPE}' already reads all attributes; skipping for '{identity.username}'")
            return []

        self.reset_attributes()

        written: list[AttributeFilter] = []
        for group, attributes in declared.items():
            row = AttributeFilter(
                user_type=REST_USER_TYPE,
                resource_id=group,
                operation=READ_OPERATION,
                allowed_attributes=",".join(attributes),
            )
            written.append(self.store.upsert(row))

        logger.info(f"[acl] Granted read attributes on {', '.join(sorted(declared))}")
        audit.safe_log_event(
            "attributes_granted",
            identity.username,
            details={group: len(attrs) for group, attrs in declared.items()},
        )
        return written

    def has_all_attributes(self) -> bool:
        """Check whether the REST admin user type already has the "all" attribute grant."""
        return bool(self.store.find_all(AttributeFilter, user_type=REST_USER_TYPE, resource_id=ALL_RESOURCES))

    def reset_attributes(self) -> int:
        """Delete existing attribute filters for the managed resource groups."""
        rows = self.store.find_all(
            AttributeFilter,
            user_type=REST_USER_TYPE,
            resource_id=list(self.resource_groups),
        )
        for row in rows:
            self.store.delete(row)
        return len(rows)

    # ─────────────────────────────────────────────────────────────────────
    # API role
    # ─────────────────────────────────────────────────────────────────────

    def assign_role(self, identity: ServiceIdentity, request: Optional[RoleAssignmentRequest] = None) -> Role:
        """Assign the identity to the API role, creating the role if missing.

        Privileges on the resources named in the request are replaced by the
        declared set; privileges on other resources are kept.
        """
        if identity.id is None:
            raise ValueError("Identity must be persisted before it can join a role")

        request = request or RoleAssignmentRequest(role_name=API2_ROLE_NAME, user_ids=[identity.id])
        declared = request.privilege_pairs()
        managed_resources = {resource for resource, _ in declared}

        role = self.store.find_by_unique_key(Role, request.role_name)
        created = role is None
        if created:
            role = Role(name=request.role_name)

        user_ids = role.user_ids | set(request.user_ids)
        privileges = {pair for pair in role.privileges if pair[0] not in managed_resources} | declared

        if created or user_ids != role.user_ids or privileges != role.privileges:
            role.user_ids = user_ids
            role.privileges = privileges
            role = self.store.upsert(role)
            logger.info(f"[acl] Role '{role.name}' saved (id={role.id}, members={sorted(role.user_ids)})")
            audit.safe_log_event(
                "role_assigned",
                identity.username,
                details={"role": role.name, "role_id": role.id, "created": created},
            )

        if identity.role_id != role.id:
            identity.role_id = role.id
            self.store.upsert(identity)

        return role
