# Audit Logging
#
# Append-only structured audit trail for vault adapter activity: master
# key resolution, cache evictions, profile registration and secret access.
# Events are rendered as JSON by structlog and written to a daily file.
#
# Never put a secret value or master key into an event. Names only.

import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "vaultbridge.audit"


class EventType(str, Enum):
    """Types of events recorded in the audit trail."""

    # Vault lifecycle
    VAULT_REGISTERED = "vault.registered"
    VAULT_VALIDATED = "vault.validated"
    VAULT_UNLOCKED = "vault.unlocked"
    VAULT_LOCKED = "vault.locked"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"
    VAULT_CREATED = "vault.created"

    # Master key resolution
    MASTER_KEY_PROMPTED = "master_key.prompted"
    MASTER_KEY_CACHED = "master_key.cached"
    MASTER_KEY_EVICTED = "master_key.evicted"
    MASTER_KEY_DELEGATED = "master_key.delegated"

    # Secret access
    SECRET_READ = "secret.read"
    SECRET_CREATED = "secret.created"
    SECRET_UPDATED = "secret.updated"
    SECRET_DELETED = "secret.deleted"
    SECRET_ENUMERATED = "secret.enumerated"
    SECRET_DUPLICATES = "secret.duplicates"


class EventSeverity(str, Enum):
    """Severity levels for audit events."""

    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault adapter events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - OS user / host context on every event
    - One log file per day under ``log_dir``
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: settings.audit_dir)
        """
        if log_dir is None:
            from .settings import get_settings
            log_dir = get_settings().audit_dir

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        self.log_file = self._setup_file_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _setup_file_handler(self) -> Path:
        """Point the audit logger at today's file, replacing older handlers."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        std_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for handler in list(std_logger.handlers):
            std_logger.removeHandler(handler)
            handler.close()

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog formats

        std_logger.addHandler(file_handler)
        std_logger.setLevel(logging.INFO)
        std_logger.propagate = False
        return log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Record an audit event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable description
            details: Extra fields (never secret values!)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        self.logger.info(
            "vault_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            timestamp=datetime.utcnow().isoformat(),
            details=details or {},
            user_context=self._get_default_user_context(),
        )
        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        vault_name: str,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Record an event scoped to one vault."""
        event_details = dict(details or {})
        event_details["vault_name"] = vault_name
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Vault '{vault_name}': {message}",
            details=event_details,
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """OS user, hostname and platform of the calling process."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(logger: Optional[AuditLogger]) -> None:
    """Replace the global audit logger (None forces re-creation)."""
    global _audit_logger
    _audit_logger = logger
