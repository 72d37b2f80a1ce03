# Vault Validator
#
# Confirms a vault is usable. Called by the host when a vault is set up
# and whenever it wants to test one; safe to call repeatedly.
#
# First call for a vault registers its database profile and returns
# without exercising the key. Later calls run a lookup for a title that
# never exists, purely to prove the key opens the database.

from pathlib import Path
from typing import Any, Mapping, Optional

from ..core import EventSeverity, EventType, get_audit_logger
from ..engine.base import DatastoreEngine
from ..errors import ConfigError, InvalidMasterKeyError
from ..models import PARAM_PATH, MasterKey, VaultConfig
from .resolver import MasterKeyResolver


class VaultValidator:
    """
    Validate vault configuration and reachability.

    Args:
        engine: Datastore engine holding profiles and databases
        resolver: Master key resolver (shared with the operations)
    """

    SENTINEL_TITLE = "__vaultbridge_sentinel_entry_that_never_exists__"

    def __init__(self, engine: DatastoreEngine, resolver: MasterKeyResolver):
        self.engine = engine
        self.resolver = resolver
        self.logger = get_audit_logger()

    def validate(
        self, vault_name: str, additional_params: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """
        Validate ``vault_name``; returns True or raises.

        Raises:
            ConfigError: empty vault name, missing/nonexistent path, or a
                delegate vault without a secret name
            InvalidMasterKeyError: the database rejected the key (the
                cached key, if any, has been evicted)
        """
        if not vault_name:
            raise ConfigError("Vault name must not be empty")

        config = VaultConfig.from_parameters(vault_name, additional_params)
        if not config.database_path:
            raise ConfigError(
                f"Vault '{vault_name}': '{PARAM_PATH}' (database file) is required"
            )
        database_path = Path(config.database_path).expanduser()
        if not database_path.exists():
            raise ConfigError(
                f"Vault '{vault_name}': database file not found: {database_path}"
            )

        master_key = self.resolver.resolve(vault_name, config)

        if not self.engine.has_profile(vault_name):
            self.engine.register_profile(
                vault_name, str(database_path), use_master_key=True
            )
            self.logger.log_vault_event(
                EventType.VAULT_REGISTERED,
                vault_name,
                "Database profile registered",
                details={"database_path": str(database_path)},
            )
            return True

        try:
            self.verify_key(vault_name, master_key)
        except InvalidMasterKeyError:
            self.resolver.evict(vault_name)
            self.logger.log_vault_event(
                EventType.VAULT_UNLOCK_FAILED,
                vault_name,
                "Validation failed: master key rejected",
                severity=EventSeverity.ALERT,
            )
            raise

        self.logger.log_vault_event(EventType.VAULT_VALIDATED, vault_name, "Vault validated")
        return True

    def verify_key(self, vault_name: str, master_key: MasterKey) -> None:
        """Open the vault database with ``master_key``; raises on rejection."""
        self.engine.find_entries(
            database_profile=vault_name,
            master_key=master_key,
            title=self.SENTINEL_TITLE,
        )
