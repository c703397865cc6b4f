# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/security/sanitizer.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Output sanitization for text returned from remote sandboxes.
"""

# Standard
from typing import Iterable, Optional, Tuple

# First-Party
from sandboxgateway.config import settings
from sandboxgateway.models import PatternRule
from sandboxgateway.security.patterns import CONTROL_SEQUENCE_PATTERN, SANITIZATION_RULES

TRUNCATION_MARKER = "\n... (output truncated)"


class OutputSanitizer:
    """Strips control sequences, masks secrets and truncates sandbox output.

    Examples:
        >>> s = OutputSanitizer(max_output_length=20)
        >>> s.sanitize("\\x1b[31mred\\x1b[0m")
        'red'
        >>> s.sanitize("password = 'hunter2'")
        'password: ***HIDDEN***'
        >>> s.process("x" * 25)
        'xxxxxxxxxxxxxxxxxxxx\\n... (output truncated)'
    """

    def __init__(self, max_output_length: Optional[int] = None, rules: Optional[Iterable[PatternRule]] = None):
        """Initialize the sanitizer.

        Args:
            max_output_length: Characters kept before truncation (defaults to settings)
            rules: Sanitization rules in application order (defaults to the built-in set)
        """
        self.max_output_length = max_output_length if max_output_length is not None else settings.max_output_length
        self.rules: Tuple[PatternRule, ...] = tuple(SANITIZATION_RULES if rules is None else rules)

    def sanitize(self, text: str) -> str:
        """Remove control sequences and mask secret-like substrings.

        Idempotent: sanitizing sanitized text returns it unchanged.

        Args:
            text: Raw sandbox output

        Returns:
            str: Sanitized text
        """
        cleaned = CONTROL_SEQUENCE_PATTERN.sub("", text)
        for rule in self.rules:
            cleaned = rule.apply(cleaned)
        return cleaned

    def truncate(self, text: str) -> str:
        """Cut text above the configured length and append a marker.

        Args:
            text: Text to bound

        Returns:
            str: Bounded text
        """
        if len(text) <= self.max_output_length:
            return text
        return text[: self.max_output_length] + TRUNCATION_MARKER

    def process(self, text: str) -> str:
        """Sanitize the full text, then truncate it.

        Args:
            text: Raw sandbox output

        Returns:
            str: Text safe to return to a caller
        """
        return self.truncate(self.sanitize(text))
