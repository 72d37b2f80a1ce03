# Engine - SQLite Vault Database
#
# Bundled DatastoreEngine: one SQLite file per vault database.
# - Groups form a '/'-separated tree under a single root group
# - Every database has a Recycle Bin group directly under the root
# - Passwords are sealed per entry with AES-256-GCM
# - The master key is checked against an encrypted canary on every open
#
# Connections are opened per call and closed before returning.

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from cryptography.exceptions import InvalidTag

from ..errors import DatabaseError, InvalidMasterKeyError
from ..models import MasterKey, SecureString
from .base import (
    GROUP_SEPARATOR,
    DatabaseProfile,
    DatastoreEngine,
    EntryRecord,
    GroupRecord,
)
from .encryption import EncryptionService
from .profiles import ProfileRegistry

logger = logging.getLogger(__name__)

RECYCLE_BIN_NAME = "Recycle Bin"
SCHEMA_VERSION = "1"


class SqliteEngine(DatastoreEngine):
    """
    Datastore engine backed by SQLite files.

    Args:
        profiles: Profile registry (default: settings.profile_db)
        kdf_iterations: PBKDF2 iterations for databases created by this
            engine (default: settings.kdf_iterations). Existing databases
            always use the count stored in them.
    """

    CANARY_PLAINTEXT = "VAULTBRIDGE_DB_OK"

    def __init__(
        self,
        profiles: Optional[ProfileRegistry] = None,
        kdf_iterations: Optional[int] = None,
    ):
        if kdf_iterations is None:
            from ..core.settings import get_settings
            kdf_iterations = get_settings().kdf_iterations
        self.profiles = profiles or ProfileRegistry()
        self.kdf_iterations = kdf_iterations

    # ------------------------------------------------------------------
    # Database creation
    # ------------------------------------------------------------------

    def create_database(
        self,
        database_path: Union[str, Path],
        master_key: MasterKey,
        root_group: str = "Database",
    ) -> Path:
        """
        Create a new, empty vault database.

        Args:
            database_path: File to create (must not already hold data)
            master_key: Key that will unlock the database
            root_group: Name of the root group

        Returns:
            Path of the created file

        Raises:
            DatabaseError: file already exists or root_group is invalid
        """
        path = Path(database_path)
        if path.exists() and path.stat().st_size > 0:
            raise DatabaseError(f"Database already exists: {path}")
        if not root_group or GROUP_SEPARATOR in root_group:
            raise DatabaseError(f"Invalid root group name: {root_group!r}")
        if not master_key:
            raise DatabaseError("Master key must not be empty")

        path.parent.mkdir(parents=True, exist_ok=True)
        salt = EncryptionService.generate_salt()
        key = EncryptionService.derive_key(
            master_key.get_secret_value(), salt, self.kdf_iterations
        )
        canary_nonce, canary_ct = EncryptionService.seal(self.CANARY_PLAINTEXT, key)
        recycle_bin = f"{root_group}{GROUP_SEPARATOR}{RECYCLE_BIN_NAME}"
        now = _now()

        conn = sqlite3.connect(str(path))
        try:
            conn.execute("""
                CREATE TABLE vault_config (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE groups (
                    full_path TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    parent_path TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE entries (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    group_path TEXT NOT NULL REFERENCES groups(full_path),
                    username TEXT,
                    encrypted_password TEXT NOT NULL,
                    nonce TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX idx_entries_title ON entries(title COLLATE NOCASE)"
            )
            conn.executemany(
                "INSERT INTO vault_config (key, value) VALUES (?, ?)",
                [
                    ("salt", EncryptionService.encode_salt(salt)),
                    ("kdf_iterations", str(self.kdf_iterations)),
                    ("verify_nonce", canary_nonce),
                    ("verify_ciphertext", canary_ct),
                    ("root_group", root_group),
                    ("recycle_bin", recycle_bin),
                    ("created_at", now),
                    ("version", SCHEMA_VERSION),
                ],
            )
            conn.executemany(
                "INSERT INTO groups (full_path, name, parent_path) VALUES (?, ?, ?)",
                [
                    (root_group, root_group, None),
                    (recycle_bin, RECYCLE_BIN_NAME, root_group),
                ],
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("Created vault database %s (root group '%s')", path, root_group)
        return path

    def create_group(
        self,
        group_path: str,
        *,
        database_profile: str,
        master_key: MasterKey,
    ) -> GroupRecord:
        """Create a group (and any missing parents) under the root group."""
        with self._open(database_profile, master_key) as (conn, _key):
            root = _config_value(conn, "root_group")
            parts = [p for p in group_path.split(GROUP_SEPARATOR) if p]
            if not parts or parts[0] != root:
                raise DatabaseError(
                    f"Group path '{group_path}' must start with root group '{root}'"
                )
            for depth in range(2, len(parts) + 1):
                full_path = GROUP_SEPARATOR.join(parts[:depth])
                parent = GROUP_SEPARATOR.join(parts[:depth - 1])
                conn.execute(
                    "INSERT OR IGNORE INTO groups (full_path, name, parent_path) "
                    "VALUES (?, ?, ?)",
                    (full_path, parts[depth - 1], parent),
                )
        full_path = GROUP_SEPARATOR.join(parts)
        parent_path = GROUP_SEPARATOR.join(parts[:-1]) or None
        return GroupRecord(full_path=full_path, name=parts[-1], parent_path=parent_path)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def has_profile(self, name: str) -> bool:
        return self.profiles.exists(name)

    def get_profile(self, name: str) -> DatabaseProfile:
        return self.profiles.get(name)

    def register_profile(
        self, name: str, database_path: str, use_master_key: bool = True
    ) -> DatabaseProfile:
        return self.profiles.register(name, database_path, use_master_key)

    # ------------------------------------------------------------------
    # Open / unlock
    # ------------------------------------------------------------------

    @contextmanager
    def _open(
        self, database_profile: str, master_key: MasterKey
    ) -> Iterator[Tuple[sqlite3.Connection, bytes]]:
        """Open the profile's database and verify the master key.

        Yields (connection, derived key). Commits on success.
        """
        profile = self.profiles.get(database_profile)
        path = Path(profile.database_path)
        if not path.exists() or path.stat().st_size == 0:
            raise DatabaseError(f"Database file not found: {path}")

        conn = sqlite3.connect(str(path), timeout=10)
        conn.row_factory = sqlite3.Row
        try:
            key = self._unlock(conn, master_key, database_profile)
            yield conn, key
            conn.commit()
        except sqlite3.DatabaseError as e:
            conn.rollback()
            raise DatabaseError(f"Database error on '{database_profile}': {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _unlock(
        self, conn: sqlite3.Connection, master_key: MasterKey, database_profile: str
    ) -> bytes:
        if not master_key:
            raise InvalidMasterKeyError(
                f"No master key supplied for '{database_profile}'"
            )
        salt = EncryptionService.decode_salt(_config_value(conn, "salt"))
        iterations = int(_config_value(conn, "kdf_iterations"))
        key = EncryptionService.derive_key(master_key.get_secret_value(), salt, iterations)
        try:
            plaintext = EncryptionService.unseal(
                _config_value(conn, "verify_nonce"),
                _config_value(conn, "verify_ciphertext"),
                key,
            )
        except InvalidTag:
            raise InvalidMasterKeyError(
                f"The master key does not unlock '{database_profile}'"
            ) from None
        if plaintext != self.CANARY_PLAINTEXT:
            raise InvalidMasterKeyError(
                f"The master key does not unlock '{database_profile}'"
            )
        return key

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_entries(
        self,
        *,
        database_profile: str,
        master_key: MasterKey,
        title: Optional[str] = None,
        group_path: Optional[str] = None,
    ) -> List[EntryRecord]:
        query = "SELECT * FROM entries"
        clauses = []
        args: list = []
        if title is not None:
            clauses.append("title = ? COLLATE NOCASE")
            args.append(title)
        if group_path:
            clauses.append("(group_path = ? OR group_path LIKE ? ESCAPE '\\')")
            args.extend([group_path, _like_prefix(group_path)])
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY group_path, title, created_at"

        with self._open(database_profile, master_key) as (conn, key):
            rows = conn.execute(query, args).fetchall()
            return [_row_to_entry(row, key) for row in rows]

    def list_groups(
        self, *, database_profile: str, master_key: MasterKey
    ) -> List[GroupRecord]:
        with self._open(database_profile, master_key) as (conn, _key):
            rows = conn.execute(
                "SELECT full_path, name, parent_path FROM groups ORDER BY full_path"
            ).fetchall()
        return [
            GroupRecord(
                full_path=row["full_path"],
                name=row["name"],
                parent_path=row["parent_path"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

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
        with self._open(database_profile, master_key) as (conn, key):
            _require_group(conn, group_path)
            nonce, ciphertext = EncryptionService.seal(password.get_secret_value(), key)
            entry_id = str(uuid.uuid4())
            now = _now()
            conn.execute(
                """INSERT INTO entries
                   (id, title, group_path, username, encrypted_password, nonce,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (entry_id, title, group_path, username, ciphertext, nonce, now, now),
            )
        return EntryRecord(
            entry_id=entry_id,
            title=title,
            group_path=group_path,
            password=password,
            username=username,
            created_at=now,
            updated_at=now,
        )

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
        with self._open(database_profile, master_key) as (conn, key):
            row = _fetch_entry_row(conn, entry.entry_id)
            new_group = group_path or row["group_path"]
            if group_path:
                _require_group(conn, group_path)
            new_username = username if username is not None else row["username"]
            nonce, ciphertext = EncryptionService.seal(password.get_secret_value(), key)
            now = _now()
            conn.execute(
                """UPDATE entries
                   SET group_path = ?, username = ?, encrypted_password = ?,
                       nonce = ?, updated_at = ?
                   WHERE id = ?""",
                (new_group, new_username, ciphertext, nonce, now, entry.entry_id),
            )
        return EntryRecord(
            entry_id=entry.entry_id,
            title=row["title"],
            group_path=new_group,
            password=password,
            username=new_username,
            created_at=row["created_at"],
            updated_at=now,
        )

    def remove_entry(
        self,
        entry: EntryRecord,
        *,
        database_profile: str,
        master_key: MasterKey,
    ) -> bool:
        """Move an entry to the recycle bin, or purge it if already there."""
        with self._open(database_profile, master_key) as (conn, _key):
            row = _fetch_entry_row(conn, entry.entry_id)
            recycle_bin = _config_value(conn, "recycle_bin")
            current = row["group_path"]
            if current == recycle_bin or current.startswith(recycle_bin + GROUP_SEPARATOR):
                conn.execute("DELETE FROM entries WHERE id = ?", (entry.entry_id,))
                logger.debug("Purged entry %s from '%s'", entry.entry_id, database_profile)
            else:
                conn.execute(
                    "UPDATE entries SET group_path = ?, updated_at = ? WHERE id = ?",
                    (recycle_bin, _now(), entry.entry_id),
                )
                logger.debug("Recycled entry %s in '%s'", entry.entry_id, database_profile)
        return True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _config_value(conn: sqlite3.Connection, key: str) -> str:
    row = conn.execute("SELECT value FROM vault_config WHERE key = ?", (key,)).fetchone()
    if row is None:
        raise DatabaseError(f"Corrupted database: missing '{key}'")
    return row[0]


def _require_group(conn: sqlite3.Connection, group_path: str) -> None:
    row = conn.execute(
        "SELECT 1 FROM groups WHERE full_path = ?", (group_path,)
    ).fetchone()
    if row is None:
        raise DatabaseError(f"Group not found: '{group_path}'")


def _fetch_entry_row(conn: sqlite3.Connection, entry_id: str) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM entries WHERE id = ?", (entry_id,)).fetchone()
    if row is None:
        raise DatabaseError(f"Entry no longer exists: {entry_id}")
    return row


def _like_prefix(group_path: str) -> str:
    escaped = (
        group_path.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"{escaped}{GROUP_SEPARATOR}%"


def _row_to_entry(row: sqlite3.Row, key: bytes) -> EntryRecord:
    try:
        password = EncryptionService.unseal(row["nonce"], row["encrypted_password"], key)
    except InvalidTag:
        raise DatabaseError(f"Corrupted entry: {row['id']}") from None
    return EntryRecord(
        entry_id=row["id"],
        title=row["title"],
        group_path=row["group_path"],
        password=SecureString(password),
        username=row["username"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
