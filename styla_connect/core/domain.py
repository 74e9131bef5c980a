"""Core domain records persisted in the credential store.

Each record declares a ``kind`` (its namespace in the store) and a
``unique_key()`` used for idempotent lookups and upserts.
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Optional


class TokenState(str, Enum):
    """Lifecycle of an OAuth token. ``PERMANENT`` is terminal."""

    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    PERMANENT = "permanent"


class TokenType(str, Enum):
    REQUEST = "request"
    ACCESS = "access"


@dataclass
class Entity:
    """Base for store records; subclasses are plain dataclasses."""

    kind: ClassVar[str] = ""

    def unique_key(self) -> str:
        raise NotImplementedError

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        record: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (set, frozenset)):
                value = sorted(list(item) if isinstance(item, tuple) else item for item in value)
            record[f.name] = value
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in record.items() if key in known})

    def copy(self):
        return replace(self)


@dataclass
class ServiceIdentity(Entity):
    """Dedicated non-human admin account used by the remote API."""

    kind: ClassVar[str] = "identity"

    username: str = ""
    email: str = ""
    password_hash: str = ""
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    role_id: Optional[int] = None
    id: Optional[int] = None

    def unique_key(self) -> str:
        return self.username


@dataclass
class Role(Entity):
    """API role: member identities plus (resource, privilege) grants."""

    kind: ClassVar[str] = "role"

    name: str = ""
    user_ids: set[int] = field(default_factory=set)
    privileges: set[tuple[str, str]] = field(default_factory=set)
    id: Optional[int] = None

    def unique_key(self) -> str:
        return self.name

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Role":
        return cls(
            name=record["name"],
            user_ids=set(record.get("user_ids") or []),
            privileges={tuple(pair) for pair in record.get("privileges") or []},
            id=record.get("id"),
        )

    def copy(self) -> "Role":
        return replace(self, user_ids=set(self.user_ids), privileges=set(self.privileges))


@dataclass
class AttributeFilter(Entity):
    """Allow-list of readable attributes for a resource group."""

    kind: ClassVar[str] = "attribute_filter"

    user_type: str = ""
    resource_id: str = ""
    operation: str = ""
    allowed_attributes: str = ""
    id: Optional[int] = None

    def unique_key(self) -> str:
        return f"{self.user_type}:{self.resource_id}:{self.operation}"

    @property
    def attributes(self) -> list[str]:
        return [attr for attr in self.allowed_attributes.split(",") if attr]


@dataclass
class Consumer(Entity):
    """OAuth1 consumer representing this integration."""

    kind: ClassVar[str] = "consumer"

    name: str = ""
    key: str = ""
    secret: str = field(default="", repr=False)
    id: Optional[int] = None

    def unique_key(self) -> str:
        return self.name


@dataclass
class Token(Entity):
    """OAuth1 token bound to a consumer; one token per consumer."""

    kind: ClassVar[str] = "token"

    consumer_id: Optional[int] = None
    token: str = ""
    secret: str = field(default="", repr=False)
    callback_url: str = ""
    type: TokenType = TokenType.REQUEST
    state: TokenState = TokenState.UNAUTHORIZED
    verifier: str = ""
    authorized_user_id: Optional[int] = None
    user_type: str = ""
    id: Optional[int] = None

    def unique_key(self) -> str:
        return str(self.consumer_id)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Token":
        data = dict(record)
        data["type"] = TokenType(data.get("type", TokenType.REQUEST.value))
        data["state"] = TokenState(data.get("state", TokenState.UNAUTHORIZED.value))
        return super().from_record(data)

    @property
    def is_permanent(self) -> bool:
        return self.state is TokenState.PERMANENT


@dataclass
class Binding(Entity):
    """Downstream site record (a "magazine") tying a Styla client to a front name."""

    kind: ClassVar[str] = "binding"

    client_name: str = ""
    front_name: str = ""
    is_default: bool = False
    id: Optional[int] = None

    def unique_key(self) -> str:
        return self.front_name


@dataclass(frozen=True)
class RegistrationResult:
    """Client configuration returned by the remote registration endpoint."""

    client: Optional[str]
    configuration: dict[str, Any]


ENTITY_TYPES: tuple[type[Entity], ...] = (
    ServiceIdentity,
    Role,
    AttributeFilter,
    Consumer,
    Token,
    Binding,
)
