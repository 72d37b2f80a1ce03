# Error Hierarchy
#
# Every failure the adapter surfaces to the host is one of these.
# Engine errors pass through unchanged; nothing here wraps another
# exception type.


class VaultBridgeError(Exception):
    """Base exception for the vault adapter."""


class ConfigError(VaultBridgeError):
    """Raised when vault configuration is malformed or incomplete."""


class VaultNotRegisteredError(ConfigError):
    """Raised when a delegate vault name has no registration."""


class NotFoundError(VaultBridgeError):
    """Raised when the requested secret does not exist."""


class AmbiguousEntryError(VaultBridgeError):
    """Raised when more than one live entry carries the requested title."""


class UnsupportedTypeError(VaultBridgeError, TypeError):
    """Raised when a write is given a secret shape the vault cannot store."""


class PromptError(VaultBridgeError):
    """Raised when the user declines or cancels master key entry."""


class ResolutionError(VaultBridgeError):
    """Raised when no strategy produced a usable master key."""


# ---------------------------------------------------------------------------
# Datastore engine errors
# ---------------------------------------------------------------------------

class EngineError(VaultBridgeError):
    """Base exception for datastore engine failures."""


class InvalidMasterKeyError(EngineError):
    """Raised when the engine rejects the supplied master key."""


class ProfileNotFoundError(EngineError):
    """Raised when no database profile is registered under a name."""


class DatabaseError(EngineError):
    """Raised when the database file is missing, corrupt, or inconsistent."""
