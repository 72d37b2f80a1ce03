# Adapter Settings
#
# Environment-driven configuration. A .env file in the working directory
# is loaded first (python-dotenv) so local setups don't need exported
# variables. Real environment variables win over .env values.

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "VAULTBRIDGE_"

# OWASP 2023: 600k iterations for PBKDF2-SHA256
DEFAULT_KDF_ITERATIONS = 600_000


@dataclass
class Settings:
    """Resolved adapter settings.

    Args:
        data_dir: Base directory for adapter state
        profile_db: SQLite file holding engine profile registrations
        registry_file: JSON file listing host vault registrations (CLI)
        audit_dir: Directory for daily audit log files
        kdf_iterations: PBKDF2 iterations used when creating new databases
    """

    data_dir: Path
    profile_db: Path
    registry_file: Path
    audit_dir: Path
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS


def _env(name: str) -> Optional[str]:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    return value if value else None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from the environment (and a .env file, if present)."""
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)

    data_dir = Path(_env("DATA_DIR") or "data")
    iterations_raw = _env("KDF_ITERATIONS")
    try:
        iterations = int(iterations_raw) if iterations_raw else DEFAULT_KDF_ITERATIONS
    except ValueError:
        raise ValueError(
            f"{ENV_PREFIX}KDF_ITERATIONS must be an integer, got {iterations_raw!r}"
        ) from None
    if iterations < 1:
        raise ValueError(f"{ENV_PREFIX}KDF_ITERATIONS must be positive")

    return Settings(
        data_dir=data_dir,
        profile_db=Path(_env("PROFILE_DB") or data_dir / "profiles.db"),
        registry_file=Path(_env("REGISTRY_FILE") or data_dir / "vaults.json"),
        audit_dir=Path(_env("AUDIT_DIR") or data_dir / "audit_logs"),
        kdf_iterations=iterations,
    )


# ── Singleton ────────────────────────────────────────────────────────

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or load the process-wide Settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace the process-wide Settings (None forces a reload)."""
    global _settings
    _settings = settings
