# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/models.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Core data model for the sandbox gateway.

This module defines the types shared by the validation gate, the sandbox pool
and the execution gateway:
- Language: the closed set of sandbox languages
- SandboxHandle / SandboxSummary: pooled sandbox records and their snapshots
- ValidationVerdict / ValidationFailure: results of input checks
- PatternRule / RuleCategory: detection and sanitization rules
- SecurityEvent: audit records emitted on validation failures
- ToolResult: the uniform tool result envelope
"""

# Standard
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import re
from typing import Any, Dict, Optional, TYPE_CHECKING

# Third-Party
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    # First-Party
    from sandboxgateway.providers.base import RemoteSandbox


def utc_now() -> datetime:
    """Return the current UTC time.

    Returns:
        datetime: Timezone-aware current time
    """
    return datetime.now(timezone.utc)


class LogLevel(str, Enum):
    """RFC 5424 severity levels used by MCP logging."""

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"


class Language(str, Enum):
    """Languages a sandbox can be created for.

    Examples:
        >>> Language("python") is Language.PYTHON
        True
        >>> [lang.value for lang in Language]
        ['python', 'javascript']
    """

    PYTHON = "python"
    JAVASCRIPT = "javascript"


class SandboxState(str, Enum):
    """Lifecycle states of a sandbox handle."""

    CREATING = "creating"
    ACTIVE = "active"
    IDLE = "idle"
    TERMINATED = "terminated"


class SandboxHandle:
    """A live remote sandbox session owned by the sandbox pool.

    Callers get a reference for the duration of one invocation only.

    Attributes:
        sandbox_id: Local opaque identifier, unique within the pool
        language: Language the sandbox was created for (never changes)
        created_at: When the handle was registered
        last_used: Last acquisition time, never moves backwards
        remote: Provider session used for remote calls
        in_flight: Number of invocations currently holding the handle
    """

    def __init__(self, sandbox_id: str, language: Language, remote: "RemoteSandbox", now: Optional[datetime] = None):
        """Initialize a handle in the ``creating`` state.

        Args:
            sandbox_id: Local identifier
            language: Sandbox language
            remote: Provider session
            now: Creation timestamp (defaults to current UTC time)
        """
        self.sandbox_id = sandbox_id
        self._language = Language(language)
        self.remote = remote
        self.created_at = now or utc_now()
        self.last_used = self.created_at
        self.in_flight = 0
        self._state = SandboxState.CREATING

    @property
    def language(self) -> Language:
        """Language of the sandbox."""
        return self._language

    @property
    def state(self) -> SandboxState:
        """Current lifecycle state."""
        if self._state in (SandboxState.CREATING, SandboxState.TERMINATED):
            return self._state
        return SandboxState.ACTIVE if self.in_flight > 0 else SandboxState.IDLE

    @property
    def is_terminated(self) -> bool:
        """Whether the handle has been removed from the pool."""
        return self._state == SandboxState.TERMINATED

    def activate(self) -> None:
        """Move the handle from ``creating`` to ``active`` on registration."""
        if self._state == SandboxState.CREATING:
            self._state = SandboxState.ACTIVE

    def mark_terminated(self) -> None:
        """Move the handle to the final ``terminated`` state."""
        self._state = SandboxState.TERMINATED

    def touch(self, now: Optional[datetime] = None) -> None:
        """Renew liveness by bumping ``last_used``.

        Args:
            now: Acquisition time (defaults to current UTC time)
        """
        now = now or utc_now()
        if now > self.last_used:
            self.last_used = now

    @property
    def age_seconds(self) -> float:
        """Seconds since the handle was created."""
        return (utc_now() - self.created_at).total_seconds()

    @property
    def idle_seconds(self) -> float:
        """Seconds since the handle was last used."""
        return (utc_now() - self.last_used).total_seconds()

    def summary(self) -> "SandboxSummary":
        """Build an immutable snapshot of this handle.

        Returns:
            SandboxSummary: Snapshot of id, language, timestamps and state
        """
        return SandboxSummary(
            sandbox_id=self.sandbox_id,
            language=self.language,
            created_at=self.created_at,
            last_used=self.last_used,
            state=self.state,
        )

    def __repr__(self) -> str:
        return f"SandboxHandle(id={self.sandbox_id!r}, language={self.language.value!r}, state={self.state.value!r})"


@dataclass(frozen=True)
class SandboxSummary:
    """Point-in-time view of a pooled sandbox."""

    sandbox_id: str
    language: Language
    created_at: datetime
    last_used: datetime
    state: SandboxState

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "id": self.sandbox_id,
            "language": self.language.value,
            "createdAt": self.created_at.isoformat(),
            "lastUsed": self.last_used.isoformat(),
            "status": self.state.value,
        }


class ValidationFailure(str, Enum):
    """Reason codes for failing validation verdicts."""

    TOO_LARGE = "TooLarge"
    EMPTY = "Empty"
    TOO_LONG = "TooLong"
    PATH_TRAVERSAL = "PathTraversal"
    FORBIDDEN_PATH = "ForbiddenPath"
    INVALID_CHARACTER = "InvalidCharacter"
    SECRET_DETECTED = "SecretDetected"
    EMPTY_LIST = "EmptyList"
    TOO_MANY = "TooMany"
    EMPTY_NAME = "EmptyName"
    INVALID_FORMAT = "InvalidFormat"
    SUSPICIOUS_NAME = "SuspiciousName"
    DANGEROUS_PATTERN = "DangerousPattern"


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of a single validation check.

    Examples:
        >>> ValidationVerdict.ok().passed
        True
        >>> v = ValidationVerdict.fail(ValidationFailure.EMPTY, "Code cannot be empty")
        >>> bool(v), v.failure.value, v.reason
        (False, 'Empty', 'Code cannot be empty')
        >>> ValidationVerdict(passed=False)
        Traceback (most recent call last):
        ...
        ValueError: A failing verdict requires a reason
    """

    passed: bool
    reason: Optional[str] = None
    failure: Optional[ValidationFailure] = None

    def __post_init__(self) -> None:
        if not self.passed and not (self.reason and self.reason.strip()):
            raise ValueError("A failing verdict requires a reason")

    def __bool__(self) -> bool:
        return self.passed

    @classmethod
    def ok(cls) -> "ValidationVerdict":
        """Build a passing verdict."""
        return cls(passed=True)

    @classmethod
    def fail(cls, failure: ValidationFailure, reason: str) -> "ValidationVerdict":
        """Build a failing verdict.

        Args:
            failure: Reason code
            reason: Human-readable explanation

        Returns:
            ValidationVerdict: Failing verdict
        """
        return cls(passed=False, reason=reason, failure=failure)


class RuleCategory(str, Enum):
    """Categories of pattern rules."""

    NETWORK = "network"
    FILESYSTEM = "filesystem"
    PROCESS = "process"
    SECRET = "secret"
    PACKAGE = "package"


@dataclass(frozen=True)
class PatternRule:
    """A named detection pattern with an optional sanitization replacement."""

    name: str
    pattern: "re.Pattern[str]"
    category: RuleCategory
    replacement: Optional[str] = None

    def search(self, text: str) -> Optional["re.Match[str]"]:
        """Return the first match of this rule in ``text``."""
        return self.pattern.search(text)

    def apply(self, text: str) -> str:
        """Replace every match with the configured replacement.

        Args:
            text: Text to scrub

        Returns:
            str: Scrubbed text (unchanged when the rule has no replacement)
        """
        if self.replacement is None:
            return text
        return self.pattern.sub(self.replacement, text)


@dataclass
class SecurityEvent:
    """A validation failure or suspicious detection, emitted for audit."""

    kind: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            "event": self.kind,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ToolResult(BaseModel):
    """Uniform result envelope returned by every tool."""

    text: str
    is_error: bool = False
    sandbox_id: Optional[str] = None
    duration_ms: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def failure(cls, message: str, sandbox_id: Optional[str] = None, duration_ms: Optional[int] = None) -> "ToolResult":
        """Build a failure envelope.

        Args:
            message: Error text shown to the caller
            sandbox_id: Sandbox involved, if any
            duration_ms: Elapsed time, if measured

        Returns:
            ToolResult: Envelope with ``is_error`` set
        """
        return cls(text=message, is_error=True, sandbox_id=sandbox_id, duration_ms=duration_ms)
