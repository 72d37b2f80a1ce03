# Master Key Cache
#
# Vault name -> MasterKey for keys obtained by prompting. Owned by one
# adapter instance and lives as long as it does; nothing is persisted.
# Keys resolved through a delegate vault are never stored here.
#
# No locking: the host serialises calls per vault. Two concurrent first
# resolutions may both prompt; the last put wins.

from typing import Dict, Optional

from ..models import MasterKey


class MasterKeyCache:
    """In-process store of prompted master keys."""

    def __init__(self):
        self._keys: Dict[str, MasterKey] = {}

    def get(self, vault_name: str) -> Optional[MasterKey]:
        return self._keys.get(vault_name)

    def put(self, vault_name: str, key: MasterKey) -> None:
        self._keys[vault_name] = key

    def evict(self, vault_name: str) -> bool:
        """Drop the key for ``vault_name``. Returns True if one was cached."""
        return self._keys.pop(vault_name, None) is not None

    def __contains__(self, vault_name: object) -> bool:
        return vault_name in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"MasterKeyCache(vaults={sorted(self._keys)!r})"
