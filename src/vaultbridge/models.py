# Vault Adapter Data Model
#
# Value types shared by the resolver, the operation handlers and the
# datastore engine:
# - SecureString / Credential: the secret shapes a host can hand us
# - SecretPayload: the closed, tagged form a write is normalised into
# - MasterKey: the opaque key that unlocks one vault database
# - VaultConfig: per-vault settings parsed from the host's parameter bag
# - SecretInfo: what enumeration exposes about an entry

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import ConfigError, UnsupportedTypeError

# Keys of the host's additional-parameters bag
PARAM_PATH = "path"
PARAM_DEFAULT_GROUP = "defaultEntryGroupPath"
PARAM_MASTER_KEY_VAULT = "masterKeyVault"
PARAM_MASTER_KEY_SECRET = "masterKeySecretName"

_MASK = "**********"


class SecureString:
    """A string value that keeps itself out of reprs and logs.

    Equality is constant-time so it can be used to compare secrets.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str):
        if not isinstance(value, str):
            raise TypeError(f"SecureString wraps str, not {type(value).__name__}")
        self._value = value

    def get_secret_value(self) -> str:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecureString):
            return NotImplemented
        return hmac.compare_digest(
            self._value.encode("utf-8"), other._value.encode("utf-8")
        )

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return len(self._value)

    def __bool__(self) -> bool:
        return bool(self._value)

    def __repr__(self) -> str:
        return f"SecureString('{_MASK}')"

    __str__ = __repr__


@dataclass(frozen=True)
class Credential:
    """Username + secret pair."""

    username: str
    password: SecureString

    def __post_init__(self):
        if isinstance(self.password, str):
            object.__setattr__(self, "password", SecureString(self.password))


class SecretKind(str, Enum):
    """The three secret shapes a write accepts."""

    STRING = "string"
    SECURE_STRING = "secure_string"
    CREDENTIAL = "credential"


@dataclass(frozen=True)
class SecretPayload:
    """A write request normalised to the fields the engine stores."""

    kind: SecretKind
    password: SecureString
    username: Optional[str] = None

    @property
    def carries_username(self) -> bool:
        return self.kind is SecretKind.CREDENTIAL


def coerce_secret(secret: Any) -> SecretPayload:
    """Normalise a host-supplied secret into a ``SecretPayload``.

    Raises:
        UnsupportedTypeError: secret is none of str, SecureString, Credential
    """
    match secret:
        case str():
            return SecretPayload(SecretKind.STRING, SecureString(secret))
        case SecureString():
            return SecretPayload(SecretKind.SECURE_STRING, secret)
        case Credential(username=username, password=password):
            return SecretPayload(SecretKind.CREDENTIAL, password, username=username)
        case _:
            raise UnsupportedTypeError(
                f"Unsupported secret type {type(secret).__name__}: expected "
                "str, SecureString or Credential"
            )


class MasterKey:
    """Opaque key that unlocks one vault database.

    Never logged and never written to disk by the adapter.
    """

    __slots__ = ("_secret",)

    def __init__(self, secret: SecureString):
        self._secret = secret

    @classmethod
    def from_secret(cls, value: Any) -> Optional["MasterKey"]:
        """Build a key from any secret shape; ``None`` for anything else."""
        match value:
            case MasterKey():
                return value
            case str():
                return cls(SecureString(value))
            case SecureString():
                return cls(value)
            case Credential(password=password):
                return cls(password)
            case _:
                return None

    def get_secret_value(self) -> str:
        return self._secret.get_secret_value()

    def __bool__(self) -> bool:
        return bool(self._secret)

    def __repr__(self) -> str:
        return f"MasterKey('{_MASK}')"


class SecretType(str, Enum):
    """Secret type reported by enumeration.

    Entries always hold a password and optionally a username.
    """

    CREDENTIAL = "credential"


@dataclass(frozen=True)
class SecretInfo:
    """Read-only projection of an entry, produced by enumeration."""

    name: str
    type: SecretType
    vault_name: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type.value,
            "vault_name": self.vault_name,
        }


@dataclass(frozen=True)
class VaultConfig:
    """Per-vault settings, built from the host's additional parameters.

    Args:
        vault_name: Registered vault name (also the engine profile name)
        database_path: Location of the vault database file
        default_entry_group_path: Group new entries land in, if set
        master_key_vault_name: Vault holding this vault's master key
        master_key_secret_name: Secret name of the master key in that vault
    """

    vault_name: str
    database_path: Optional[str] = None
    default_entry_group_path: Optional[str] = None
    master_key_vault_name: Optional[str] = None
    master_key_secret_name: Optional[str] = None

    @classmethod
    def from_parameters(
        cls, vault_name: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> "VaultConfig":
        params = dict(parameters or {})
        return cls(
            vault_name=vault_name,
            database_path=_optional_str(params.get(PARAM_PATH)),
            default_entry_group_path=_optional_str(params.get(PARAM_DEFAULT_GROUP)),
            master_key_vault_name=_optional_str(params.get(PARAM_MASTER_KEY_VAULT)),
            master_key_secret_name=_optional_str(params.get(PARAM_MASTER_KEY_SECRET)),
        )

    @property
    def uses_delegation(self) -> bool:
        return bool(self.master_key_vault_name)

    def require_delegation_pair(self) -> None:
        """Raise ConfigError if a delegate vault is named without a secret."""
        if self.master_key_vault_name and not self.master_key_secret_name:
            raise ConfigError(
                f"Vault '{self.vault_name}': '{PARAM_MASTER_KEY_VAULT}' is set "
                f"but '{PARAM_MASTER_KEY_SECRET}' is missing"
            )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
