"""Core Business Logic Module

Framework-independent logic for provisioning Styla API access.

Module Structure:
    - store/            : Credential store interface and backends
    - domain.py         : Records kept in the store
    - identity.py       : Service account resolution
    - permissions.py    : API role and attribute ACL
    - oauth/            : Consumer and token lifecycle
    - registration.py   : HTTP handshake with the Styla API
    - bindings.py       : Default magazine binding
    - provisioning_service.py : The "connect" orchestration
    - audit.py          : Signed audit trail
    - validators.py     : Input validation

Import explicitly when needed:
    from styla_connect.core.provisioning_service import ConnectorService
    from styla_connect.core.exceptions import RegistrationError
"""
