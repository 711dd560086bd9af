"""Tests for the AuditLogger and related utilities."""

from __future__ import annotations

import json
import time

from healthpath.core.audit.logger import AuditEvent, _hash_input, hash_display_name


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

class TestHashInput:
    def test_hashes_dict(self):
        assert len(_hash_input({"key": "value"})) == 64

    def test_order_independent(self):
        assert _hash_input({"z": 1, "a": 2}) == _hash_input({"a": 2, "z": 1})

    def test_different_inputs_differ(self):
        assert _hash_input({"a": 1}) != _hash_input({"a": 2})

    def test_non_serializable_returns_empty(self):
        assert _hash_input(object()) == ""

    def test_display_name(self):
        assert hash_display_name(None) == ""
        assert hash_display_name("") == ""
        assert hash_display_name("Sam") == _hash_input("Sam")
        assert "Sam" not in hash_display_name("Sam")


# ---------------------------------------------------------------------------
# AuditLogger.log_event / log_tool_call
# ---------------------------------------------------------------------------

class TestLogEvent:
    def test_log_event_returns_uuid(self, audit_logger):
        eid = audit_logger.log_event(AuditEvent(action="tool_invocation", tool_name="t"))
        assert len(eid) == 36

    def test_logged_event_retrievable(self, audit_logger):
        audit_logger.log_tool_call(
            tool_name="generate_health_analysis",
            tool_input={"profile": {"demographics": {"age": 40}}},
            action="analysis_generated",
            analysis_id="hp_0001",
            duration_ms=12.5,
        )
        events = audit_logger.get_events()
        assert len(events) == 1
        event = events[0]
        assert event["tool_name"] == "generate_health_analysis"
        assert event["action"] == "analysis_generated"
        assert event["analysis_id"] == "hp_0001"
        assert event["status"] == "success"
        assert event["duration_ms"] == 12.5
        assert len(event["tool_input_hash"]) == 64

    def test_profile_values_never_stored(self, audit_logger):
        audit_logger.log_tool_call(
            "generate_health_analysis", tool_input={"profile": {"weight": 93.7}},
        )
        row = audit_logger.get_events()[0]
        assert "93.7" not in json.dumps(row)

    def test_validation_run_event(self, audit_logger):
        audit_logger.log_tool_call(
            "run_engine_validation",
            action="validation_run",
            run_id="val_20260101T000000_abcdef",
            metadata={"pass_rate": 98.5},
        )
        event = audit_logger.get_events(action="validation_run")[0]
        assert event["run_id"] == "val_20260101T000000_abcdef"
        assert json.loads(event["metadata_json"]) == {"pass_rate": 98.5}

    def test_failure_recorded(self, audit_logger):
        audit_logger.log_tool_call(
            "generate_health_analysis", status="failure", error_type="InvalidProfileError",
        )
        event = audit_logger.get_events()[0]
        assert event["status"] == "failure"
        assert event["error_type"] == "InvalidProfileError"
        assert event["tool_input_hash"] is None
        assert event["metadata_json"] is None

    def test_write_failure_returns_empty_id(self, audit_logger, analysis_db):
        analysis_db.close()
        assert audit_logger.log_tool_call("t") == ""


# ---------------------------------------------------------------------------
# AuditLogger.log_data_delete
# ---------------------------------------------------------------------------

class TestLogDataDelete:
    def test_log_delete_event(self, audit_logger):
        audit_logger.log_data_delete(
            tool_name="delete_stored_analysis", analysis_id="hp_0001", count=1,
        )
        events = audit_logger.get_events(action="data_delete")
        assert len(events) == 1
        assert events[0]["analysis_id"] == "hp_0001"
        assert json.loads(events[0]["metadata_json"])["records_deleted"] == 1

    def test_bulk_delete_keeps_metadata(self, audit_logger):
        audit_logger.log_data_delete(count=7, metadata={"confirmed": True})
        meta = json.loads(audit_logger.get_events()[0]["metadata_json"])
        assert meta == {"confirmed": True, "records_deleted": 7}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestGetEvents:
    def test_filter_by_action_and_tool(self, audit_logger):
        audit_logger.log_tool_call("alpha")
        audit_logger.log_data_delete(tool_name="beta", count=5)
        audit_logger.log_tool_call("alpha")

        assert len(audit_logger.get_events(action="tool_invocation")) == 2
        assert len(audit_logger.get_events(action="data_delete")) == 1
        assert len(audit_logger.get_events(tool_name="alpha")) == 2

    def test_limit_respected(self, audit_logger):
        for i in range(10):
            audit_logger.log_tool_call(f"tool_{i}")
        assert len(audit_logger.get_events(limit=3)) == 3

    def test_newest_first(self, audit_logger):
        audit_logger.log_tool_call("first")
        time.sleep(0.01)
        audit_logger.log_tool_call("second")
        events = audit_logger.get_events()
        assert [e["tool_name"] for e in events] == ["second", "first"]

    def test_since_in_future_excludes_everything(self, audit_logger):
        audit_logger.log_tool_call("t")
        assert audit_logger.get_events(since="2999-01-01T00:00:00+00:00") == []


class TestCounts:
    def test_count_events(self, audit_logger):
        assert audit_logger.count_events() == 0
        audit_logger.log_tool_call("a")
        audit_logger.log_tool_call("b", action="validation_run")
        assert audit_logger.count_events() == 2
        assert audit_logger.count_events(action="validation_run") == 1
        assert audit_logger.count_events(since="2999-01-01T00:00:00+00:00") == 0

    def test_count_by_action(self, audit_logger):
        audit_logger.log_tool_call("a")
        audit_logger.log_tool_call("b")
        audit_logger.log_data_delete(count=1)
        assert audit_logger.count_by_action() == {"data_delete": 1, "tool_invocation": 2}
