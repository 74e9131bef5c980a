"""Default magazine binding created after a successful registration."""
from __future__ import annotations
import logging
from typing import Optional

from . import audit
from .domain import Binding
from .store import CredentialStore

logger = logging.getLogger(__name__)


class BindingService:
    """Maintain the single default binding between a Styla client and a front name."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def load_default(self) -> Optional[Binding]:
        defaults = self.store.find_all(Binding, is_default=True)
        return defaults[0] if defaults else None

    def create_default_binding(self, client_name: str, front_name: str) -> Binding:
        """Create or update the default binding.

        An existing default binding is updated in place; otherwise a
        binding with the same front name is promoted, or a new one created.
        """
        binding = self.load_default() or self.store.find_by_unique_key(Binding, front_name)
        if binding is None:
            binding = Binding()

        if binding.front_name != front_name and binding.id is not None:
            other = self.store.find_by_unique_key(Binding, front_name)
            if other is not None:
                self.store.delete(other)

        binding.client_name = client_name
        binding.front_name = front_name
        binding.is_default = True
        binding = self.store.upsert(binding)

        logger.info(f"[binding] Default binding '{front_name}' -> client '{client_name}' (id={binding.id})")
        audit.safe_log_event("binding_created", client_name, details={"front_name": front_name, "binding_id": binding.id})
        return binding
