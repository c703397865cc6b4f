# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/security/patterns.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Pattern rule set for input validation and output sanitization.

All rules are compiled once at import time and exposed as immutable tuples.
Detection rules are grouped by category (network, filesystem, process,
secret); sanitization rules pair a pattern with the placeholder that replaces
it in sandbox output. No placeholder matches any sanitization rule, so
scrubbing twice gives the same text as scrubbing once.

Examples:
    >>> [r.name for r in find_matches("import socket; eval(x)", DETECTION_RULES)]
    ['socket_import', 'eval_call']
    >>> first_match("plain text", SECRET_RULES) is None
    True
"""

# Standard
import re
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

# First-Party
from sandboxgateway.models import Language, PatternRule, RuleCategory


def _rule(name: str, regex: str, category: RuleCategory, replacement: Optional[str] = None, flags: int = re.IGNORECASE) -> PatternRule:
    return PatternRule(name=name, pattern=re.compile(regex, flags), category=category, replacement=replacement)


# ---------------------------------------------------------------------------
# Dangerous-content detection (code payloads)
# ---------------------------------------------------------------------------

DETECTION_RULES: Tuple[PatternRule, ...] = (
    # Network access
    _rule("socket_import", r"import\s+socket", RuleCategory.NETWORK),
    _rule("socket_from_import", r"from\s+socket\s+import", RuleCategory.NETWORK),
    _rule("urllib_request", r"urllib\.request", RuleCategory.NETWORK),
    _rule("requests_call", r"requests\.", RuleCategory.NETWORK),
    _rule("http_module", r"http\.", RuleCategory.NETWORK),
    _rule("fetch_call", r"fetch\(", RuleCategory.NETWORK),
    _rule("xml_http_request", r"XMLHttpRequest", RuleCategory.NETWORK),
    # Filesystem outside the sandbox workspace
    _rule("etc_path", r"/etc/", RuleCategory.FILESYSTEM),
    _rule("root_path", r"/root/", RuleCategory.FILESYSTEM),
    _rule("foreign_home_path", r"/home/(?!user)", RuleCategory.FILESYSTEM),
    _rule("usr_bin_path", r"/usr/bin", RuleCategory.FILESYSTEM),
    _rule("sys_path", r"/sys/", RuleCategory.FILESYSTEM),
    _rule("proc_path", r"/proc/", RuleCategory.FILESYSTEM),
    # Process / exec
    _rule("subprocess_call", r"subprocess\.", RuleCategory.PROCESS),
    _rule("os_system", r"os\.system", RuleCategory.PROCESS),
    _rule("exec_call", r"exec\(", RuleCategory.PROCESS),
    _rule("eval_call", r"eval\(", RuleCategory.PROCESS),
    _rule("child_process", r"child_process", RuleCategory.PROCESS),
    # Credential-shaped literals
    _rule("password_literal", r"password\s*=\s*[\"'][^\"']+[\"']", RuleCategory.SECRET),
    _rule("api_key_literal", r"api_key\s*=\s*[\"'][^\"']+[\"']", RuleCategory.SECRET),
    _rule("secret_literal", r"secret\s*=\s*[\"'][^\"']+[\"']", RuleCategory.SECRET),
    _rule("token_literal", r"token\s*=\s*[\"'][^\"']+[\"']", RuleCategory.SECRET),
)

_PYTHON_DETECTION_RULES: Tuple[PatternRule, ...] = (
    _rule("python_dunder_import", r"__import__", RuleCategory.PROCESS, flags=0),
    _rule("python_importlib", r"\bimportlib\b", RuleCategory.PROCESS, flags=0),
    _rule("python_reload", r"\breload\b", RuleCategory.PROCESS, flags=0),
)

_JAVASCRIPT_DETECTION_RULES: Tuple[PatternRule, ...] = (
    _rule("node_require_fs", r"require\(\s*[\"']fs[\"']\s*\)", RuleCategory.FILESYSTEM, flags=0),
    _rule("node_require_child_process", r"require\(\s*[\"']child_process[\"']\s*\)", RuleCategory.PROCESS, flags=0),
    _rule("node_require_os", r"require\(\s*[\"']os[\"']\s*\)", RuleCategory.PROCESS, flags=0),
    _rule("node_require_cluster", r"require\(\s*[\"']cluster[\"']\s*\)", RuleCategory.PROCESS, flags=0),
    _rule("node_process_exit", r"process\.exit", RuleCategory.PROCESS, flags=0),
    _rule("node_process_kill", r"process\.kill", RuleCategory.PROCESS, flags=0),
)

LANGUAGE_DETECTION_RULES: Mapping[Language, Tuple[PatternRule, ...]] = MappingProxyType(
    {
        Language.PYTHON: _PYTHON_DETECTION_RULES,
        Language.JAVASCRIPT: _JAVASCRIPT_DETECTION_RULES,
    }
)

# ---------------------------------------------------------------------------
# Secret detection (persisted file content, hard failure)
# ---------------------------------------------------------------------------

SECRET_RULES: Tuple[PatternRule, ...] = (
    _rule("private_key_header", r"-----BEGIN\s+(?:(?:RSA|EC|DSA|OPENSSH|ENCRYPTED)\s+)?PRIVATE\s+KEY-----", RuleCategory.SECRET),
    _rule("base64_run", r"[A-Za-z0-9+/]{32,}={0,2}", RuleCategory.SECRET, flags=0),
    _rule("openai_key", r"sk-[A-Za-z0-9]{48}", RuleCategory.SECRET, flags=0),
    _rule("github_token", r"ghp_[A-Za-z0-9]{36}", RuleCategory.SECRET, flags=0),
    _rule("aws_access_key_id", r"AKIA[0-9A-Z]{16}", RuleCategory.SECRET, flags=0),
)

# ---------------------------------------------------------------------------
# Output sanitization, applied in this order
# ---------------------------------------------------------------------------

MASK = "***HIDDEN***"

SANITIZATION_RULES: Tuple[PatternRule, ...] = (
    _rule(
        "private_key_block",
        r"-----BEGIN\s+(?:[A-Z]+\s+)*PRIVATE\s+KEY-----.*?-----END\s+(?:[A-Z]+\s+)*PRIVATE\s+KEY-----",
        RuleCategory.SECRET,
        replacement="[PRIVATE KEY REDACTED]",
        flags=re.DOTALL,
    ),
    _rule("private_key_header", r"-----BEGIN\s+(?:[A-Z]+\s+)*PRIVATE\s+KEY-----", RuleCategory.SECRET, replacement="[PRIVATE KEY REDACTED]", flags=0),
    _rule("openai_key", r"sk-[A-Za-z0-9]{48}", RuleCategory.SECRET, replacement=f"sk-{MASK}", flags=0),
    _rule("github_token", r"(gh[pousr]_)[A-Za-z0-9]{36}", RuleCategory.SECRET, replacement=rf"\g<1>{MASK}", flags=0),
    _rule("aws_access_key_id", r"AKIA[0-9A-Z]{16}", RuleCategory.SECRET, replacement=f"AKIA{MASK}", flags=0),
    _rule(
        "credential_assignment",
        r"(password|api_key|secret|token)\s*[:=]\s*[\"'][^\"'\n]+[\"']",
        RuleCategory.SECRET,
        replacement=rf"\g<1>: {MASK}",
    ),
)

# ANSI CSI and OSC sequences, two-byte escapes, and remaining C0/C1 control
# characters. Tab, newline and carriage return are kept. An unterminated OSC
# body ends at the first newline.
CONTROL_SEQUENCE_PATTERN = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b\n]*(?:\x07|\x1b\\)?"
    r"|\x1b[@-Z\\-_]"
    r"|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]"
)

# ---------------------------------------------------------------------------
# Package names
# ---------------------------------------------------------------------------

SUSPICIOUS_PACKAGE_RULES: Tuple[PatternRule, ...] = (
    _rule("malware", r"malware", RuleCategory.PACKAGE),
    _rule("backdoor", r"backdoor", RuleCategory.PACKAGE),
    _rule("virus", r"virus", RuleCategory.PACKAGE),
    _rule("trojan", r"trojan", RuleCategory.PACKAGE),
)

PACKAGE_NAME_GRAMMARS: Mapping[Language, "re.Pattern[str]"] = MappingProxyType(
    {
        # PEP 508 distribution names
        Language.PYTHON: re.compile(r"^(?:[A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9._-]*[A-Za-z0-9])$"),
        # npm names, optionally scoped
        Language.JAVASCRIPT: re.compile(r"^(?:@[A-Za-z0-9~-][A-Za-z0-9._~-]*/)?[A-Za-z0-9~-][A-Za-z0-9._~-]*$"),
    }
)


# ---------------------------------------------------------------------------
# Matching primitives
# ---------------------------------------------------------------------------


def rules_for_language(language: Language) -> Tuple[PatternRule, ...]:
    """Return the generic detection rules followed by the language-specific ones.

    Args:
        language: Target sandbox language

    Returns:
        Tuple[PatternRule, ...]: Rules to scan code with

    Examples:
        >>> len(rules_for_language(Language.PYTHON)) == len(DETECTION_RULES) + 3
        True
    """
    return DETECTION_RULES + LANGUAGE_DETECTION_RULES[Language(language)]


def find_matches(text: str, rules: Iterable[PatternRule]) -> List[PatternRule]:
    """Return every rule that matches somewhere in ``text``, in rule order.

    Args:
        text: Text to scan
        rules: Rules to try

    Returns:
        List[PatternRule]: Matching rules
    """
    return [rule for rule in rules if rule.search(text)]


def first_match(text: str, rules: Iterable[PatternRule]) -> Optional[PatternRule]:
    """Return the first rule matching ``text``, or None.

    Args:
        text: Text to scan
        rules: Rules to try, in priority order

    Returns:
        Optional[PatternRule]: First matching rule
    """
    for rule in rules:
        if rule.search(text):
            return rule
    return None
