# Datastore Engine - Abstract Contract
#
# The adapter never touches a database file directly. Every open, query
# and write goes through a DatastoreEngine addressed by profile name +
# master key. SqliteEngine is the bundled implementation; hosts can plug
# in any other engine that honours this contract.

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..models import MasterKey, SecureString

GROUP_SEPARATOR = "/"


@dataclass
class EntryRecord:
    """A stored secret record as returned by the engine."""

    entry_id: str
    title: str
    group_path: str
    password: SecureString
    username: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def parent_group(self) -> str:
        """Name of the group the entry sits in directly."""
        return self.group_path.rsplit(GROUP_SEPARATOR, 1)[-1]


@dataclass
class GroupRecord:
    """A group (folder) inside a database."""

    full_path: str
    name: str
    parent_path: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return GROUP_SEPARATOR not in self.full_path


@dataclass
class DatabaseProfile:
    """Registration tying a profile name to a database file."""

    name: str
    database_path: str
    use_master_key: bool = True
    registered_at: str = ""


class DatastoreEngine(ABC):
    """Abstract datastore engine.

    Every data operation takes ``database_profile`` and ``master_key`` as
    keyword arguments. ``remove_entry`` deliberately accepts no group
    filter: passing ``group_path`` to it is a TypeError.
    """

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    @abstractmethod
    def has_profile(self, name: str) -> bool:
        """Return True if a database profile is registered under ``name``."""

    @abstractmethod
    def get_profile(self, name: str) -> DatabaseProfile:
        """Return the profile registered under ``name``.

        Raises:
            ProfileNotFoundError: nothing is registered under ``name``
        """

    @abstractmethod
    def register_profile(
        self, name: str, database_path: str, use_master_key: bool = True
    ) -> DatabaseProfile:
        """Register (or replace) a database profile."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @abstractmethod
    def find_entries(
        self,
        *,
        database_profile: str,
        master_key: MasterKey,
        title: Optional[str] = None,
        group_path: Optional[str] = None,
    ) -> List[EntryRecord]:
        """Return entries matching ``title`` (case-insensitive), optionally
        restricted to ``group_path`` and its subgroups.

        An empty list means nothing matched; it is not an error.

        Raises:
            InvalidMasterKeyError: the key does not unlock the database
        """

    @abstractmethod
    def list_groups(
        self, *, database_profile: str, master_key: MasterKey
    ) -> List[GroupRecord]:
        """Return every group in the database, ordered by full path."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    def create_entry(
        self,
        *,
        database_profile: str,
        master_key: MasterKey,
        title: str,
        password: SecureString,
        group_path: str,
        username: Optional[str] = None,
    ) -> EntryRecord:
        """Create a new entry and return it."""

    @abstractmethod
    def update_entry(
        self,
        entry: EntryRecord,
        *,
        database_profile: str,
        master_key: MasterKey,
        password: SecureString,
        username: Optional[str] = None,
        group_path: Optional[str] = None,
    ) -> EntryRecord:
        """Update an entry in place. ``username=None`` keeps the old one."""

    @abstractmethod
    def remove_entry(
        self,
        entry: EntryRecord,
        *,
        database_profile: str,
        master_key: MasterKey,
    ) -> bool:
        """Remove an entry. Returns True on success."""
