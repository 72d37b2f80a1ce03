# Engine Module - Vault Database Storage
#
# DatastoreEngine is the contract the adapter talks to; SqliteEngine is
# the bundled implementation (SQLite + AES-256-GCM fields).

from .base import DatabaseProfile, DatastoreEngine, EntryRecord, GroupRecord
from .encryption import EncryptionService
from .profiles import ProfileRegistry
from .sqlite_engine import RECYCLE_BIN_NAME, SqliteEngine

__all__ = [
    "DatastoreEngine",
    "DatabaseProfile",
    "EntryRecord",
    "GroupRecord",
    "EncryptionService",
    "ProfileRegistry",
    "SqliteEngine",
    "RECYCLE_BIN_NAME",
]
