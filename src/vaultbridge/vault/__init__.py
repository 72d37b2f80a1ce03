# Vault Module - Master Key Resolution & Secret Operations
#
# Resolver + cache decide where a vault's master key comes from;
# the parameter builder, operations and validator sit on top of it.

from .cache import MasterKeyCache
from .operations import SecretOperations
from .params import OperationParams, VaultParameterBuilder
from .prompt import ConsolePrompt, CredentialPrompt
from .resolver import MasterKeyResolver
from .validator import VaultValidator

__all__ = [
    "MasterKeyCache",
    "MasterKeyResolver",
    "CredentialPrompt",
    "ConsolePrompt",
    "OperationParams",
    "VaultParameterBuilder",
    "SecretOperations",
    "VaultValidator",
]
