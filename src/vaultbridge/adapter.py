# Vault Adapter - Host Entry Points
#
# The object a secret-management host talks to. Five operations, each
# taking the vault's registered name and its additional-parameters bag:
#   get_secret / set_secret / remove_secret / get_secret_info / test_secret_vault
# plus unlock_secret_vault / lock_secret_vault for explicit key control.
#
# One adapter owns one MasterKeyCache for its whole lifetime.

from typing import Any, List, Mapping, Optional, Union

from .core import EventType, get_audit_logger
from .engine.base import DatastoreEngine
from .errors import ConfigError, PromptError, UnsupportedTypeError
from .models import Credential, MasterKey, SecretInfo, SecureString, VaultConfig
from .registry import SecretSource, VaultRegistration, VaultRegistry
from .vault import (
    ConsolePrompt,
    CredentialPrompt,
    MasterKeyCache,
    MasterKeyResolver,
    SecretOperations,
    VaultParameterBuilder,
    VaultValidator,
)


class VaultAdapter(SecretSource):
    """
    Secret-management adapter for password-database vaults.

    Args:
        engine: Datastore engine (default: bundled SqliteEngine)
        prompt: Interactive master key prompt (default: console)
        registry: Vault registrations for master key delegation
        cache: Master key cache (default: a fresh, empty cache)

    Usage::

        adapter = VaultAdapter()
        params = {"path": "~/vaults/personal.db"}
        adapter.test_secret_vault("personal", params)
        adapter.set_secret("github", Credential("me", "s3cret"), "personal", params)
        adapter.get_secret("github", "personal", params)
    """

    def __init__(
        self,
        engine: Optional[DatastoreEngine] = None,
        prompt: Optional[CredentialPrompt] = None,
        registry: Optional[VaultRegistry] = None,
        cache: Optional[MasterKeyCache] = None,
    ):
        if engine is None:
            from .engine.sqlite_engine import SqliteEngine
            engine = SqliteEngine()
        self.engine = engine
        self.registry = registry if registry is not None else VaultRegistry()
        self.cache = cache if cache is not None else MasterKeyCache()
        self.resolver = MasterKeyResolver(
            self.cache, prompt or ConsolePrompt(), self.registry
        )
        self.builder = VaultParameterBuilder(self.resolver)
        self.operations = SecretOperations(self.engine, self.builder, self.resolver)
        self.validator = VaultValidator(self.engine, self.resolver)
        self.logger = get_audit_logger()

    def register_vault(
        self, vault_name: str, additional_params: Optional[Mapping[str, Any]] = None
    ) -> VaultRegistration:
        """Register a vault served by this adapter (usable as a delegate)."""
        return self.registry.register(vault_name, self, additional_params)

    # ------------------------------------------------------------------
    # Host operations
    # ------------------------------------------------------------------

    def get_secret(
        self,
        name: str,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> Union[SecureString, Credential]:
        return self.operations.read(name, vault_name, additional_params)

    def set_secret(
        self,
        name: str,
        secret: Any,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        return self.operations.write(name, secret, vault_name, additional_params)

    def remove_secret(
        self,
        name: str,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        return self.operations.delete(name, vault_name, additional_params)

    def get_secret_info(
        self,
        name_filter: Optional[str],
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> List[SecretInfo]:
        return self.operations.enumerate(name_filter, vault_name, additional_params)

    def test_secret_vault(
        self, vault_name: str, additional_params: Optional[Mapping[str, Any]] = None
    ) -> bool:
        return self.validator.validate(vault_name, additional_params)

    # ------------------------------------------------------------------
    # Explicit key control
    # ------------------------------------------------------------------

    def unlock_secret_vault(
        self,
        vault_name: str,
        password: Any,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Cache ``password`` as the master key for ``vault_name`` after
        checking it opens the database. A rejected key leaves the cache
        as it was.

        Raises:
            ConfigError: the vault gets its key from a delegate vault
            UnsupportedTypeError: password is not a secret shape
            PromptError: password is empty
            InvalidMasterKeyError: the database rejected the key
        """
        config = VaultConfig.from_parameters(vault_name, additional_params)
        if config.uses_delegation:
            raise ConfigError(
                f"Vault '{vault_name}' reads its master key from vault "
                f"'{config.master_key_vault_name}' and cannot be unlocked directly"
            )
        key = MasterKey.from_secret(password)
        if key is None:
            raise UnsupportedTypeError(
                f"Unsupported master key type {type(password).__name__}"
            )
        if not key:
            raise PromptError(f"No master key was supplied for vault '{vault_name}'")

        self.validator.verify_key(vault_name, key)
        self.cache.put(vault_name, key)
        self.logger.log_vault_event(EventType.VAULT_UNLOCKED, vault_name, "Vault unlocked")
        return True

    def lock_secret_vault(self, vault_name: str) -> bool:
        """Forget the cached master key. Returns True if one was cached."""
        evicted = self.resolver.evict(vault_name)
        self.logger.log_vault_event(EventType.VAULT_LOCKED, vault_name, "Vault locked")
        return evicted
