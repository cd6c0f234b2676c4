"""Tests for structured audit log entries."""

import json
import logging

from propvalet.audit_logger import AuditLogger


def _entries(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "propvalet.audit"]


class TestAuditLogger:

    def test_tool_execution(self, caplog):
        with caplog.at_level(logging.INFO, logger="propvalet.audit"):
            AuditLogger().log_tool_execution("get_property", {"property_id": "p-1"}, True, 12, actor_id="owner-1")

        entry = _entries(caplog)[0]
        assert entry["event_type"] == "tool_execution"
        assert entry["actor_id"] == "owner-1"
        assert entry["duration_ms"] == 12
        assert "error" not in entry
        assert "timestamp" in entry

    def test_default_actor(self, caplog):
        with caplog.at_level(logging.INFO, logger="propvalet.audit"):
            AuditLogger(actor_id="owner-9").log_classified_error(
                "get_property", "CONTEXT_MISSING", "Verify entity exists"
            )

        entry = _entries(caplog)[0]
        assert entry["actor_id"] == "owner-9"
        assert entry["kind"] == "CONTEXT_MISSING"

    def test_email_decision(self, caplog):
        with caplog.at_level(logging.INFO, logger="propvalet.audit"):
            AuditLogger().log_email_decision("rent_reminder", False, "not permitted")

        entry = _entries(caplog)[0]
        assert entry["allowed"] is False
        assert entry["actor_id"] == ""
