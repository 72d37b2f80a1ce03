# Vault Registry
#
# A vault's master key may live as a secret in another vault. The
# resolver reaches that vault through its registration: the registered
# SecretSource is asked for the secret with the same contract the host
# uses, get_secret(name, vault_name, additional_params), so any source
# can serve master keys, including another VaultAdapter.
#
# Registrations can be loaded from a JSON file:
#
#   {
#       "vaults": {
#           "team": {"path": "/srv/team.db", "masterKeyVault": "personal",
#                    "masterKeySecretName": "team-db"},
#           "personal": {"path": "~/personal.db"}
#       }
#   }

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import ConfigError, VaultNotRegisteredError

logger = logging.getLogger(__name__)


class SecretSource(ABC):
    """Anything that can read a secret by name from a named vault."""

    @abstractmethod
    def get_secret(
        self,
        name: str,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Return the secret (str, SecureString or Credential)."""


@dataclass
class VaultRegistration:
    """One registered vault: its name, source and parameter bag."""

    name: str
    source: SecretSource
    parameters: Dict[str, Any] = field(default_factory=dict)


class VaultRegistry:
    """Name -> VaultRegistration lookup used for master key delegation."""

    def __init__(self):
        self._vaults: Dict[str, VaultRegistration] = {}

    def register(
        self,
        name: str,
        source: SecretSource,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> VaultRegistration:
        if not name:
            raise ConfigError("Vault name must not be empty")
        registration = VaultRegistration(
            name=name, source=source, parameters=dict(parameters or {})
        )
        self._vaults[name] = registration
        logger.debug("Registered vault '%s'", name)
        return registration

    def unregister(self, name: str) -> bool:
        return self._vaults.pop(name, None) is not None

    def get(self, name: str) -> VaultRegistration:
        """Return the registration for ``name``.

        Raises:
            VaultNotRegisteredError: no vault registered under ``name``
        """
        try:
            return self._vaults[name]
        except KeyError:
            raise VaultNotRegisteredError(f"Vault '{name}' is not registered") from None

    def names(self) -> List[str]:
        return sorted(self._vaults)

    def __contains__(self, name: object) -> bool:
        return name in self._vaults

    # ── File persistence ─────────────────────────────────────────────

    @classmethod
    def from_file(cls, path: Union[str, Path], source: SecretSource) -> "VaultRegistry":
        """Load registrations from JSON, all served by ``source``.

        A missing file yields an empty registry.
        """
        registry = cls()
        path = Path(path)
        if not path.exists():
            return registry
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid vault registry file {path}: {e}") from e
        vaults = data.get("vaults") if isinstance(data, dict) else None
        if not isinstance(vaults, dict):
            raise ConfigError(f"Vault registry file {path} must contain a 'vaults' object")
        for name, parameters in vaults.items():
            if not isinstance(parameters, dict):
                raise ConfigError(f"Parameters for vault '{name}' must be an object")
            registry.register(name, source, parameters)
        return registry

    def save(self, path: Union[str, Path]) -> None:
        """Write every registration's parameters to ``path`` as JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "vaults": {
                name: reg.parameters for name, reg in sorted(self._vaults.items())
            }
        }
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
