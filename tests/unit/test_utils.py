"""
Helper function unit tests
"""
import logging
import re
import pytest
from datetime import datetime
from mediation.utils import helpers
from mediation.utils.logger import log_execution_time


def test_generate_session_id():
    session_id = helpers.generate_session_id()
    assert session_id.startswith("sess_")
    assert helpers.validate_session_id(session_id)


def test_session_ids_are_unique():
    assert helpers.generate_session_id() != helpers.generate_session_id()


def test_generate_panelist_id():
    assert re.fullmatch(r"pnl_[0-9a-f]{16}", helpers.generate_panelist_id())


def test_generate_case_id_format():
    case_id = helpers.generate_case_id("CASE", year=2026)
    assert re.fullmatch(r"CASE-2026-\d{6}", case_id)


def test_validate_session_id_rejects_foreign_ids():
    assert not helpers.validate_session_id("")
    assert not helpers.validate_session_id("abc_1234567890")
    assert not helpers.validate_session_id("sess_1")


def test_normalize_text():
    assert helpers.normalize_text("  hello   there  ") == "hello there"


def test_mask_personal_info():
    masked = helpers.mask_personal_info("Call 555-123-4567 or mail alice@example.com")
    assert "555-***-4567" in masked
    assert "alice@" not in masked
    assert "a***@example.com" in masked


def test_utcnow_is_naive():
    assert helpers.utcnow().tzinfo is None


def test_format_datetime():
    assert helpers.format_datetime(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02T03:04:05"
    assert helpers.format_datetime(None) is None


def test_log_execution_time_reports_label(caplog):
    @log_execution_time(operation="demo pass")
    def work():
        return 42

    with caplog.at_level(logging.INFO):
        assert work() == 42
    assert "demo pass finished in" in caplog.text


def test_log_execution_time_reraises(caplog):
    @log_execution_time()
    def broken():
        raise RuntimeError("boom")

    with caplog.at_level(logging.INFO):
        with pytest.raises(RuntimeError):
            broken()
    assert "broken failed after" in caplog.text
