# Secret Operation Handlers
#
# read / write / delete / enumerate against one vault. Each call builds
# OperationParams (resolving the master key), then talks to the engine.
#
# Rules:
# - read/write/enumerate ignore entries under a recycle bin at any depth
# - delete sees recycled entries too, so trash can be purged
# - every lookup is scoped to the configured group; only the engine
#   remove call is made without it
# - write updates the entry with the same title, or creates one
# - a key the engine rejects is evicted from the cache before re-raising

import logging
import re
from collections import Counter
from contextlib import contextmanager
from fnmatch import fnmatchcase
from typing import Any, List, Mapping, Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger
from ..engine.base import GROUP_SEPARATOR, DatastoreEngine, EntryRecord
from ..errors import (
    AmbiguousEntryError,
    DatabaseError,
    InvalidMasterKeyError,
    NotFoundError,
)
from ..models import (
    Credential,
    SecretInfo,
    SecretType,
    SecureString,
    coerce_secret,
)
from .params import OperationParams, VaultParameterBuilder
from .resolver import MasterKeyResolver

logger = logging.getLogger(__name__)

RECYCLE_BIN_PATTERN = re.compile(r"recycle\s?bin", re.IGNORECASE)


def in_recycle_bin(entry: EntryRecord) -> bool:
    """True if any group below the root on the entry's path is a recycle bin."""
    below_root = entry.group_path.split(GROUP_SEPARATOR)[1:]
    return any(RECYCLE_BIN_PATTERN.search(segment) for segment in below_root)


class SecretOperations:
    """
    Secret CRUD on top of a DatastoreEngine.

    Args:
        engine: Datastore engine holding the vault databases
        builder: Builds per-call engine parameters
        resolver: Used to evict keys the engine rejects
    """

    def __init__(
        self,
        engine: DatastoreEngine,
        builder: VaultParameterBuilder,
        resolver: MasterKeyResolver,
    ):
        self.engine = engine
        self.builder = builder
        self.resolver = resolver
        self.logger = get_audit_logger()

    @contextmanager
    def _evict_on_rejection(self, vault_name: str):
        try:
            yield
        except InvalidMasterKeyError:
            self.resolver.evict(vault_name)
            self.logger.log_vault_event(
                EventType.VAULT_UNLOCK_FAILED,
                vault_name,
                "Master key rejected by the database",
                severity=EventSeverity.ALERT,
            )
            raise

    def _live_entries(self, params: OperationParams, title: str) -> List[EntryRecord]:
        entries = self.engine.find_entries(title=title, **params.engine_kwargs())
        return [entry for entry in entries if not in_recycle_bin(entry)]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(
        self,
        name: str,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> Union[SecureString, Credential]:
        """
        Read the secret titled ``name``.

        Returns:
            SecureString when the entry has no username, else Credential

        Raises:
            AmbiguousEntryError: several live entries carry the title
            NotFoundError: no live entry carries the title
        """
        params = self.builder.build(vault_name, additional_params)
        with self._evict_on_rejection(vault_name):
            matches = self._live_entries(params, name)

        if len(matches) > 1:
            raise AmbiguousEntryError(
                f"Vault '{vault_name}' has {len(matches)} entries titled '{name}'. "
                "Titles must be unique to read a secret."
            )
        if not matches:
            raise NotFoundError(f"No secret named '{name}' in vault '{vault_name}'")

        entry = matches[0]
        self.logger.log_vault_event(
            EventType.SECRET_READ, vault_name, f"Secret read: {name}",
            details={"entry_id": entry.entry_id},
        )
        if not entry.username:
            return entry.password
        return Credential(username=entry.username, password=entry.password)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(
        self,
        name: str,
        secret: Any,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Store ``secret`` under ``name``: update the existing entry with that
        title in place, or create a new one.

        Raises:
            UnsupportedTypeError: secret is not str, SecureString or Credential
            AmbiguousEntryError: several live entries already carry the title
        """
        payload = coerce_secret(secret)
        params = self.builder.build(vault_name, additional_params)

        with self._evict_on_rejection(vault_name):
            existing = self._live_entries(params, name)
            if len(existing) > 1:
                raise AmbiguousEntryError(
                    f"Vault '{vault_name}' has {len(existing)} entries titled "
                    f"'{name}'; refusing to pick one to update."
                )

            plain = params.without_group()
            if existing:
                updated = self.engine.update_entry(
                    existing[0],
                    password=payload.password,
                    username=payload.username if payload.carries_username else None,
                    **plain.engine_kwargs(),
                )
                self.logger.log_vault_event(
                    EventType.SECRET_UPDATED, vault_name, f"Secret updated: {name}",
                    details={"entry_id": existing[0].entry_id, "kind": payload.kind.value},
                )
                return bool(updated)

            group_path = params.group_path or self._default_group(plain, vault_name)
            created = self.engine.create_entry(
                title=name,
                password=payload.password,
                username=payload.username,
                group_path=group_path,
                **plain.engine_kwargs(),
            )
        self.logger.log_vault_event(
            EventType.SECRET_CREATED, vault_name, f"Secret created: {name}",
            details={"group_path": group_path, "kind": payload.kind.value},
        )
        return bool(created)

    def _default_group(self, params: OperationParams, vault_name: str) -> str:
        """First root-level group (full path without a separator)."""
        groups = self.engine.list_groups(**params.engine_kwargs())
        for group in groups:
            if group.is_root:
                return group.full_path
        raise DatabaseError(f"Vault '{vault_name}' has no root group for new entries")

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(
        self,
        name: str,
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Remove every entry titled ``name`` within the configured group,
        recycled ones included.

        The engine's remove takes no group filter, so the group path is
        dropped from the parameters for the remove call only.

        Raises:
            NotFoundError: no entry carries the title
        """
        params = self.builder.build(vault_name, additional_params)

        with self._evict_on_rejection(vault_name):
            matches = self.engine.find_entries(title=name, **params.engine_kwargs())
            if not matches:
                raise NotFoundError(f"No secret named '{name}' in vault '{vault_name}'")
            remove_kwargs = params.without_group().engine_kwargs()
            for entry in matches:
                self.engine.remove_entry(entry, **remove_kwargs)

        self.logger.log_vault_event(
            EventType.SECRET_DELETED, vault_name, f"Secret deleted: {name}",
            details={"entries": len(matches)},
        )
        return True

    # ------------------------------------------------------------------
    # Enumerate
    # ------------------------------------------------------------------

    def enumerate(
        self,
        name_filter: Optional[str],
        vault_name: str,
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> List[SecretInfo]:
        """
        List secrets whose titles match the glob ``name_filter`` (default
        ``*``, case-insensitive), sorted by name, one per title.

        Duplicate titles are tolerated: a warning names them and only one
        SecretInfo per title is returned.
        """
        pattern = (name_filter or "*").casefold()
        params = self.builder.build(vault_name, additional_params)

        with self._evict_on_rejection(vault_name):
            entries = self.engine.find_entries(**params.engine_kwargs())

        infos = sorted(
            (
                SecretInfo(name=entry.title, type=SecretType.CREDENTIAL, vault_name=vault_name)
                for entry in entries
                if not in_recycle_bin(entry)
                and fnmatchcase(entry.title.casefold(), pattern)
            ),
            key=lambda info: (info.name.casefold(), info.name),
        )

        counts = Counter(info.name.casefold() for info in infos)
        unique: List[SecretInfo] = []
        seen = set()
        for info in infos:
            key = info.name.casefold()
            if key not in seen:
                seen.add(key)
                unique.append(info)

        duplicates = [info.name for info in unique if counts[info.name.casefold()] > 1]
        if duplicates:
            logger.warning(
                "Vault '%s' has duplicate secret titles; listing one entry each for: %s",
                vault_name,
                ", ".join(duplicates),
            )
            self.logger.log_vault_event(
                EventType.SECRET_DUPLICATES,
                vault_name,
                "Duplicate titles filtered from listing",
                severity=EventSeverity.WARNING,
                details={"titles": duplicates},
            )

        self.logger.log_vault_event(
            EventType.SECRET_ENUMERATED, vault_name, "Secrets listed",
            details={"filter": name_filter or "*", "count": len(unique)},
        )
        return unique
