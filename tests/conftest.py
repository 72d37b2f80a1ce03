"""
Shared pytest fixtures for the vaultbridge test suite.

Autouse fixtures isolate every test from real state:
  - Settings     -> temp data directory, cheap PBKDF2 iteration count
  - Audit logger -> fresh instance writing into the temp directory
"""

from typing import List, Optional, Tuple

import pytest

from vaultbridge.adapter import VaultAdapter
from vaultbridge.core.settings import Settings
from vaultbridge.engine.profiles import ProfileRegistry
from vaultbridge.engine.sqlite_engine import SqliteEngine
from vaultbridge.models import Credential, MasterKey, SecureString
from vaultbridge.vault.prompt import CredentialPrompt

MASTER_PASSWORD = "Correct-Horse-Battery-1"
TEST_KDF_ITERATIONS = 1_000


class FakePrompt(CredentialPrompt):
    """Scripted prompt: returns queued answers, None once they run out.

    A queued ``None`` simulates the user cancelling.
    """

    def __init__(self, *answers: Optional[str]):
        self.answers: List[Optional[str]] = list(answers)
        self.calls: List[Tuple[str, str]] = []

    def prompt(self, message: str, username: str) -> Optional[Credential]:
        self.calls.append((message, username))
        if not self.answers:
            return None
        answer = self.answers.pop(0)
        if answer is None:
            return None
        return Credential(username=username, password=answer)


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path, monkeypatch):
    """Point settings at a temp data dir for every test.

    Without this, code paths that fall back to get_settings() would
    create ``data/`` in the working directory and derive keys with the
    production iteration count.
    """
    import vaultbridge.core.settings as settings_mod

    for var in ("DATA_DIR", "PROFILE_DB", "REGISTRY_FILE", "AUDIT_DIR", "KDF_ITERATIONS"):
        monkeypatch.delenv(f"VAULTBRIDGE_{var}", raising=False)

    data_dir = tmp_path / "data"
    settings_mod.set_settings(
        Settings(
            data_dir=data_dir,
            profile_db=data_dir / "profiles.db",
            registry_file=data_dir / "vaults.json",
            audit_dir=data_dir / "audit_logs",
            kdf_iterations=TEST_KDF_ITERATIONS,
        )
    )
    yield
    settings_mod.set_settings(None)


@pytest.fixture(autouse=True)
def _isolate_audit_logs():
    """Reset the global AuditLogger so each test gets one in its temp dir."""
    import vaultbridge.core.audit_log as audit_mod

    audit_mod.set_audit_logger(None)
    yield
    audit_mod.set_audit_logger(None)


@pytest.fixture
def engine(tmp_path):
    return SqliteEngine(
        ProfileRegistry(tmp_path / "profiles.db"),
        kdf_iterations=TEST_KDF_ITERATIONS,
    )


@pytest.fixture
def master_key():
    return MasterKey(SecureString(MASTER_PASSWORD))


@pytest.fixture
def database(engine, master_key, tmp_path):
    """An empty vault database (root group 'Database')."""
    return engine.create_database(tmp_path / "personal.db", master_key)


@pytest.fixture
def vault_params(database):
    return {"path": str(database)}


@pytest.fixture
def prompt():
    return FakePrompt(MASTER_PASSWORD)


@pytest.fixture
def adapter(engine, prompt):
    return VaultAdapter(engine=engine, prompt=prompt)


@pytest.fixture
def ready_vault(adapter, vault_params):
    """Vault 'personal', validated (profile registered, key cached)."""
    adapter.test_secret_vault("personal", vault_params)
    return "personal"
