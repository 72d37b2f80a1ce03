# vaultbridge - Password-database vault adapter
#
# Lets a secret-management host read, write, list and delete secrets in
# password-database vaults, resolving and caching each vault's master key.

__version__ = "0.3.0"
__description__ = "Secret-management adapter for password-database vaults"

from .adapter import VaultAdapter
from .errors import (
    AmbiguousEntryError,
    ConfigError,
    EngineError,
    InvalidMasterKeyError,
    NotFoundError,
    PromptError,
    ResolutionError,
    UnsupportedTypeError,
    VaultBridgeError,
    VaultNotRegisteredError,
)
from .models import Credential, MasterKey, SecretInfo, SecretType, SecureString, VaultConfig
from .registry import SecretSource, VaultRegistry

__all__ = [
    "__version__",
    "VaultAdapter",
    "VaultRegistry",
    "SecretSource",
    # Models
    "Credential",
    "MasterKey",
    "SecretInfo",
    "SecretType",
    "SecureString",
    "VaultConfig",
    # Errors
    "VaultBridgeError",
    "ConfigError",
    "VaultNotRegisteredError",
    "NotFoundError",
    "AmbiguousEntryError",
    "UnsupportedTypeError",
    "PromptError",
    "ResolutionError",
    "EngineError",
    "InvalidMasterKeyError",
]
