"""Tests for the structured audit trail."""

import json

from vaultbridge.core.audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)


def _events(logger):
    return [json.loads(line) for line in logger.log_file.read_text().splitlines()]


class TestAuditLogger:

    def test_writes_json_event(self, tmp_path):
        logger = AuditLogger(log_dir=tmp_path / "audit")

        event_id = logger.log_event(
            EventType.VAULT_CREATED, EventSeverity.INFO, "created", {"path": "/x.db"}
        )

        (event,) = _events(logger)
        assert event["event_id"] == event_id
        assert event["event_type"] == "vault.created"
        assert event["severity"] == "info"
        assert event["details"] == {"path": "/x.db"}
        assert "hostname" in event["user_context"]

    def test_daily_file_name(self, tmp_path):
        logger = AuditLogger(log_dir=tmp_path)
        assert logger.log_file.parent == tmp_path
        assert logger.log_file.name.startswith("audit_")
        assert logger.log_file.suffix == ".log"

    def test_vault_event_adds_vault_name(self, tmp_path):
        logger = AuditLogger(log_dir=tmp_path)

        logger.log_vault_event(
            EventType.MASTER_KEY_EVICTED, "personal", "evicted",
            severity=EventSeverity.ALERT,
        )

        (event,) = _events(logger)
        assert event["details"]["vault_name"] == "personal"
        assert event["message"] == "Vault 'personal': evicted"
        assert event["severity"] == "alert"

    def test_caller_details_not_mutated(self, tmp_path):
        logger = AuditLogger(log_dir=tmp_path)
        details = {"count": 1}
        logger.log_vault_event(EventType.SECRET_ENUMERATED, "v", "listed", details=details)
        assert details == {"count": 1}

    def test_new_instance_replaces_file_handler(self, tmp_path):
        first = AuditLogger(log_dir=tmp_path / "one")
        second = AuditLogger(log_dir=tmp_path / "two")

        second.log_event(EventType.VAULT_LOCKED, EventSeverity.INFO, "locked")

        assert not first.log_file.exists() or first.log_file.read_text() == ""
        assert len(_events(second)) == 1


class TestGlobalLogger:

    def test_defaults_to_settings_audit_dir(self):
        from vaultbridge.core.settings import get_settings

        assert get_audit_logger().log_dir == get_settings().audit_dir

    def test_singleton_and_override(self, tmp_path):
        assert get_audit_logger() is get_audit_logger()
        custom = AuditLogger(log_dir=tmp_path)
        set_audit_logger(custom)
        assert get_audit_logger() is custom
