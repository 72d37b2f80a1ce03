# Master Key Resolver
#
# Decides, per vault, where the key that unlocks its database comes from.
# Strategies, in order:
#   1. Delegated: read the key as a secret from another registered vault
#      (never cached here; the delegate vault owns its own caching)
#   2. Cache:     a key prompted for earlier in this process
#   3. Prompt:    ask the user, then cache the answer
#
# Callers that see the engine reject a key must call evict() before
# re-raising, so the next call prompts again instead of reusing it.
#
# A delegation chain that leads back to a vault still being resolved is a
# ConfigError.

from typing import Optional, Set

from ..core import EventSeverity, EventType, get_audit_logger
from ..errors import ConfigError, PromptError, ResolutionError, VaultNotRegisteredError
from ..models import MasterKey, VaultConfig
from ..registry import VaultRegistry
from .cache import MasterKeyCache
from .prompt import CredentialPrompt


class MasterKeyResolver:
    """
    Resolve the master key for a vault.

    Args:
        cache: Owned cache of prompted keys
        prompt: Interactive prompt used when nothing is cached
        registry: Vault registrations used for delegation
    """

    PROMPT_USERNAME = "MasterPassword"

    def __init__(
        self,
        cache: MasterKeyCache,
        prompt: CredentialPrompt,
        registry: Optional[VaultRegistry] = None,
    ):
        self.cache = cache
        self.prompt = prompt
        self.registry = registry
        self._delegating: Set[str] = set()
        self.logger = get_audit_logger()

    def resolve(self, vault_name: str, config: VaultConfig) -> MasterKey:
        """
        Return a usable master key for ``vault_name``.

        Raises:
            ConfigError: delegate vault named without a secret name, or a
                delegation chain that leads back to this vault
            VaultNotRegisteredError: delegate vault is not registered
            PromptError: user cancelled or entered nothing
            ResolutionError: delegate returned no usable key
        """
        config.require_delegation_pair()
        if config.uses_delegation:
            return self.resolve_delegated(vault_name, config)
        return self.resolve_local(vault_name)

    def resolve_delegated(self, vault_name: str, config: VaultConfig) -> MasterKey:
        """Read the key from the delegate vault. Errors propagate as-is."""
        config.require_delegation_pair()
        delegate_name = config.master_key_vault_name
        if self.registry is None:
            raise VaultNotRegisteredError(
                f"Vault '{delegate_name}' is not registered (no vault registry)"
            )
        if vault_name in self._delegating:
            raise ConfigError(
                f"Vault '{vault_name}' is part of a master key delegation cycle "
                f"(via vault '{delegate_name}')"
            )
        registration = self.registry.get(delegate_name)

        self._delegating.add(vault_name)
        try:
            secret = registration.source.get_secret(
                config.master_key_secret_name,
                registration.name,
                registration.parameters,
            )
        finally:
            self._delegating.discard(vault_name)

        key = MasterKey.from_secret(secret)
        if key is None or not key:
            raise ResolutionError(
                f"Vault '{delegate_name}' returned no usable master key for "
                f"'{vault_name}' (secret '{config.master_key_secret_name}')"
            )

        self.logger.log_vault_event(
            EventType.MASTER_KEY_DELEGATED,
            vault_name,
            f"Master key read from vault '{delegate_name}'",
            details={
                "delegate_vault": delegate_name,
                "secret_name": config.master_key_secret_name,
            },
        )
        return key

    def resolve_local(self, vault_name: str) -> MasterKey:
        """Cache first, then prompt (caching the prompted key)."""
        cached = self.cache.get(vault_name)
        if cached is not None:
            return cached

        credential = self.prompt.prompt(
            f"Enter the master password for vault '{vault_name}'",
            self.PROMPT_USERNAME,
        )
        key = MasterKey.from_secret(credential) if credential is not None else None
        if key is None or not key:
            self.logger.log_vault_event(
                EventType.MASTER_KEY_PROMPTED,
                vault_name,
                "Master key prompt cancelled",
                severity=EventSeverity.WARNING,
            )
            raise PromptError(f"No master key was entered for vault '{vault_name}'")

        self.cache.put(vault_name, key)
        self.logger.log_vault_event(
            EventType.MASTER_KEY_CACHED, vault_name, "Prompted master key cached"
        )
        return key

    def evict(self, vault_name: str) -> bool:
        """Forget the cached key for ``vault_name``."""
        evicted = self.cache.evict(vault_name)
        if evicted:
            self.logger.log_vault_event(
                EventType.MASTER_KEY_EVICTED,
                vault_name,
                "Cached master key evicted",
                severity=EventSeverity.ALERT,
            )
        return evicted
