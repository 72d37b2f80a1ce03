# Engine - Database Profile Registry
#
# SQLite-backed store of database profiles: profile name -> database file
# + whether a master key is supplied per call. The adapter registers one
# profile per vault the first time the vault is validated.

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from ..errors import ProfileNotFoundError
from .base import DatabaseProfile

logger = logging.getLogger(__name__)


class ProfileRegistry:
    """SQLite store of database profiles.

    Args:
        db_path: Path to the registry SQLite file. Defaults to
            ``settings.profile_db``.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        if db_path is None:
            from ..core.settings import get_settings
            db_path = get_settings().profile_db
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS database_profiles (
                    name TEXT PRIMARY KEY,
                    database_path TEXT NOT NULL,
                    use_master_key INTEGER NOT NULL DEFAULT 1,
                    registered_at TEXT NOT NULL
                )
            """)

    @contextmanager
    def _connect(self):
        """Open a WAL-mode connection; commits on success, always closes."""
        conn = sqlite3.connect(str(self.db_path), timeout=10)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def exists(self, name: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM database_profiles WHERE name = ?", (name,)
            ).fetchone()
        return row is not None

    def get(self, name: str) -> DatabaseProfile:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM database_profiles WHERE name = ?", (name,)
            ).fetchone()
        if row is None:
            raise ProfileNotFoundError(f"No database profile named '{name}'")
        return _row_to_profile(row)

    def register(
        self, name: str, database_path: Union[str, Path], use_master_key: bool = True
    ) -> DatabaseProfile:
        """Register a profile (upsert)."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO database_profiles
                   (name, database_path, use_master_key, registered_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(name) DO UPDATE SET
                       database_path = excluded.database_path,
                       use_master_key = excluded.use_master_key,
                       registered_at = excluded.registered_at""",
                (name, str(database_path), int(use_master_key), now),
            )
        logger.info("Registered database profile '%s' -> %s", name, database_path)
        return DatabaseProfile(
            name=name,
            database_path=str(database_path),
            use_master_key=use_master_key,
            registered_at=now,
        )

    def remove(self, name: str) -> bool:
        """Delete a profile. Returns True if it existed."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM database_profiles WHERE name = ?", (name,))
            return cur.rowcount > 0

    def list_all(self) -> List[DatabaseProfile]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM database_profiles ORDER BY name"
            ).fetchall()
        return [_row_to_profile(row) for row in rows]


def _row_to_profile(row: sqlite3.Row) -> DatabaseProfile:
    return DatabaseProfile(
        name=row["name"],
        database_path=row["database_path"],
        use_master_key=bool(row["use_master_key"]),
        registered_at=row["registered_at"],
    )
