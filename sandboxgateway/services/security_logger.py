# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/services/security_logger.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Security event logging.

Validation failures and suspicious detections are emitted as structured
WARNING records on the ``sandboxgateway.security`` logger. The event payload
is passed through ``extra`` so the JSON file formatter keeps it as fields.
Events are not retained; only per-kind counters are kept for diagnostics.
"""

# Standard
from collections import defaultdict
import hashlib
import logging
from typing import Any, Dict, Optional

# First-Party
from sandboxgateway.models import SecurityEvent

logger = logging.getLogger("sandboxgateway.security")

_MAX_LOGGED_VALUE = 120


def summarize_value(value: Any, redact: bool = False) -> str:
    """Render an input value for an audit record.

    Short values are logged as-is (clipped); redacted values are replaced by
    their length and a short SHA-256 digest.

    Args:
        value: Input value
        redact: Whether the raw value must not appear in logs

    Returns:
        str: Loggable summary

    Examples:
        >>> summarize_value("src/app.py")
        'src/app.py'
        >>> summarize_value("print(1)", redact=True).startswith("<redacted len=8 sha256=")
        True
        >>> len(summarize_value("x" * 500)) <= 123
        True
    """
    text = value if isinstance(value, str) else repr(value)
    if redact:
        digest = hashlib.sha256(text.encode("utf-8", errors="replace")).hexdigest()[:12]
        return f"<redacted len={len(text)} sha256={digest}>"
    if len(text) > _MAX_LOGGED_VALUE:
        return text[:_MAX_LOGGED_VALUE] + "..."
    return text


class SecurityLogger:
    """Emits security events to the logging collaborator."""

    def __init__(self, target: Optional[logging.Logger] = None):
        """Initialize the security logger.

        Args:
            target: Logger to write to (defaults to ``sandboxgateway.security``)
        """
        self._logger = target or logger
        self.event_counts: Dict[str, int] = defaultdict(int)

    def log_event(self, event: SecurityEvent) -> SecurityEvent:
        """Emit a security event.

        Args:
            event: Event to emit

        Returns:
            SecurityEvent: The emitted event
        """
        self.event_counts[event.kind] += 1
        payload = event.to_dict()
        self._logger.warning(
            "Security event: %s %s",
            event.kind,
            event.details,
            extra={"security_event": payload["event"], "details": payload["details"], "event_timestamp": payload["timestamp"]},
        )
        return event

    def log_validation_failure(self, kind: str, field: str, value: Any, reason: str, redact: bool = False, **context: Any) -> SecurityEvent:
        """Emit an event for a failed validation check.

        Args:
            kind: Event kind, e.g. ``file_path_validation_failed``
            field: Name of the offending input field
            value: Offending input (summarized, optionally redacted)
            reason: Verdict reason
            redact: Whether to hide the raw value
            **context: Additional details (language, rule name, ...)

        Returns:
            SecurityEvent: The emitted event
        """
        details: Dict[str, Any] = {"field": field, "input": summarize_value(value, redact=redact), "reason": reason}
        details.update(context)
        return self.log_event(SecurityEvent(kind=kind, details=details))

    def log_suspicious_pattern(self, field: str, rule_name: str, category: str, **context: Any) -> SecurityEvent:
        """Emit an event for a soft pattern detection.

        Args:
            field: Name of the scanned input field
            rule_name: Matching rule
            category: Rule category
            **context: Additional details

        Returns:
            SecurityEvent: The emitted event
        """
        details: Dict[str, Any] = {"field": field, "pattern": rule_name, "category": category}
        details.update(context)
        return self.log_event(SecurityEvent(kind="dangerous_code_pattern", details=details))
