# Core Module - Shared Utilities
#
# - Audit logging (structlog)
# - Settings (environment + .env)

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .settings import (
    Settings,
    get_settings,
    load_settings,
    set_settings,
)

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    # Settings
    "Settings",
    "get_settings",
    "load_settings",
    "set_settings",
]
