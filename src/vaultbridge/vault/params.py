# Vault Parameter Builder
#
# Turns (vault name, host parameter bag) into the keyword set every
# engine call needs: profile name, master key and, when configured, the
# group path entries are scoped to.

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..models import MasterKey, VaultConfig
from .resolver import MasterKeyResolver


@dataclass(frozen=True)
class OperationParams:
    """Parameters for one engine operation against one vault."""

    database_profile: str
    master_key: MasterKey
    group_path: Optional[str] = None

    def engine_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for an engine call; group_path only if set."""
        kwargs: Dict[str, Any] = {
            "database_profile": self.database_profile,
            "master_key": self.master_key,
        }
        if self.group_path:
            kwargs["group_path"] = self.group_path
        return kwargs

    def without_group(self) -> "OperationParams":
        return dataclasses.replace(self, group_path=None)


class VaultParameterBuilder:
    """Assemble OperationParams; resolver failures propagate."""

    def __init__(self, resolver: MasterKeyResolver):
        self.resolver = resolver

    def build(
        self, vault_name: str, additional_params: Optional[Mapping[str, Any]] = None
    ) -> OperationParams:
        config = VaultConfig.from_parameters(vault_name, additional_params)
        return OperationParams(
            database_profile=vault_name,
            master_key=self.resolver.resolve(vault_name, config),
            group_path=config.default_entry_group_path,
        )
