# -*- coding: utf-8 -*-
"""Location: ./tests/unit/sandboxgateway/services/test_security_logger.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Unit tests for security event logging.
"""

# Standard
import logging

# First-Party
from sandboxgateway.models import SecurityEvent
from sandboxgateway.services.security_logger import SecurityLogger, summarize_value


class TestSummarizeValue:
    """Tests for summarize_value."""

    def test_short_value_kept(self):
        assert summarize_value("data.csv") == "data.csv"

    def test_long_value_clipped(self):
        summary = summarize_value("a" * 1000)
        assert summary.endswith("...")
        assert len(summary) < 200

    def test_redacted_value_hides_content(self):
        summary = summarize_value("os.system('rm -rf /')", redact=True)
        assert "rm -rf" not in summary
        assert summary.startswith("<redacted len=21 sha256=")

    def test_redaction_is_stable(self):
        assert summarize_value("same", redact=True) == summarize_value("same", redact=True)

    def test_non_string_values(self):
        assert summarize_value(["numpy", "bad name"]) == "['numpy', 'bad name']"


class TestSecurityLogger:
    """Tests for SecurityLogger."""

    def test_log_event_emits_warning_with_extra(self, caplog):
        security_logger = SecurityLogger()
        with caplog.at_level(logging.WARNING, logger="sandboxgateway.security"):
            security_logger.log_event(SecurityEvent(kind="file_path_validation_failed", details={"field": "path"}))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.security_event == "file_path_validation_failed"
        assert record.details == {"field": "path"}
        assert record.event_timestamp

    def test_counts_per_kind(self):
        security_logger = SecurityLogger(target=logging.getLogger("tests.security"))
        security_logger.log_event(SecurityEvent(kind="a"))
        security_logger.log_event(SecurityEvent(kind="a"))
        security_logger.log_event(SecurityEvent(kind="b"))

        assert security_logger.event_counts == {"a": 2, "b": 1}

    def test_log_validation_failure_details(self):
        event = SecurityLogger().log_validation_failure("package_validation_failed", "packages", ["bad name"], "Invalid", language="python")

        assert event.kind == "package_validation_failed"
        assert event.details["field"] == "packages"
        assert event.details["reason"] == "Invalid"
        assert event.details["language"] == "python"
        assert event.details["input"] == "['bad name']"

    def test_log_validation_failure_redacts(self):
        event = SecurityLogger().log_validation_failure("code_validation_failed", "code", "print(secret)", "too long", redact=True)
        assert "print(secret)" not in event.details["input"]

    def test_log_suspicious_pattern(self):
        security_logger = SecurityLogger()
        event = security_logger.log_suspicious_pattern("code", "eval_call", "process", language="python")

        assert event.kind == "dangerous_code_pattern"
        assert event.details == {"field": "code", "pattern": "eval_call", "category": "process", "language": "python"}
        assert security_logger.event_counts["dangerous_code_pattern"] == 1
