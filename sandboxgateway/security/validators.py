# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/security/validators.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Input validation gate.

Every inbound tool parameter is checked here before any remote call is made.
Size and shape violations are hard failures. Dangerous code patterns are
soft by default (logged, not blocked), since the remote sandbox is the
isolation boundary and pattern matching cannot reliably tell legitimate
language features apart from abuse. Secrets in file content are a hard
failure because written files persist in the sandbox.

Every failing verdict is paired with a security event.

Examples:
    >>> validator = InputValidator()
    >>> validator.validate_code("print('hi')", Language.PYTHON).passed
    True
    >>> validator.validate_file_path("../secrets.txt").failure.value
    'PathTraversal'
    >>> validator.validate_packages(["numpy", "pandas"], Language.PYTHON).passed
    True
"""

# Standard
import re
from typing import Iterable, Optional, Sequence

# First-Party
from sandboxgateway.config import settings
from sandboxgateway.models import Language, ValidationFailure, ValidationVerdict
from sandboxgateway.security.patterns import find_matches, first_match, PACKAGE_NAME_GRAMMARS, rules_for_language, SECRET_RULES, SUSPICIOUS_PACKAGE_RULES
from sandboxgateway.services.security_logger import SecurityLogger

_PATH_SEPARATORS = re.compile(r"[\\/]")


class InputValidator:
    """Validates code, file paths, file contents and package lists."""

    def __init__(
        self,
        security_logger: Optional[SecurityLogger] = None,
        max_code_length: Optional[int] = None,
        max_file_path_length: Optional[int] = None,
        max_file_size_bytes: Optional[int] = None,
        max_packages: Optional[int] = None,
        max_package_name_length: Optional[int] = None,
        forbidden_path_prefixes: Optional[Iterable[str]] = None,
        strict_code_validation: Optional[bool] = None,
    ):
        """Initialize the validator; unset limits fall back to settings.

        Args:
            security_logger: Destination for security events
            max_code_length: Maximum code length in characters
            max_file_path_length: Maximum file path length in characters
            max_file_size_bytes: Maximum file content size in UTF-8 bytes
            max_packages: Maximum number of packages per request
            max_package_name_length: Maximum length of one package name
            forbidden_path_prefixes: Absolute system-directory prefixes to refuse
            strict_code_validation: Hard-fail on dangerous code patterns
        """
        self.security_logger = security_logger or SecurityLogger()
        self.max_code_length = max_code_length if max_code_length is not None else settings.max_code_length
        self.max_file_path_length = max_file_path_length if max_file_path_length is not None else settings.max_file_path_length
        self.max_file_size_bytes = max_file_size_bytes if max_file_size_bytes is not None else settings.max_file_size_bytes
        self.max_packages = max_packages if max_packages is not None else settings.max_packages
        self.max_package_name_length = max_package_name_length if max_package_name_length is not None else settings.max_package_name_length
        prefixes = settings.forbidden_path_prefixes if forbidden_path_prefixes is None else forbidden_path_prefixes
        self.forbidden_path_prefixes = tuple(p.rstrip("/") or "/" for p in prefixes)
        self.strict_code_validation = settings.strict_code_validation if strict_code_validation is None else strict_code_validation

    # ---------------------------------------------------------------------------
    # Code
    # ---------------------------------------------------------------------------

    def validate_code(self, code: str, language: Language) -> ValidationVerdict:
        """Validate a code payload.

        Args:
            code: Source code to run
            language: Target sandbox language

        Returns:
            ValidationVerdict: Failing on size or emptiness; pattern matches
            only fail in strict mode

        Examples:
            >>> v = InputValidator(max_code_length=5).validate_code("print(1)", Language.PYTHON)
            >>> v.failure.value, v.reason
            ('TooLarge', 'Code exceeds maximum length of 5 characters')
            >>> InputValidator().validate_code("   ", Language.PYTHON).failure.value
            'Empty'
            >>> InputValidator().validate_code("import subprocess; subprocess.run(['ls'])", Language.PYTHON).passed
            True
        """
        language = Language(language)
        verdict = self._check_code(code, language)
        if not verdict:
            self.security_logger.log_validation_failure(
                "code_validation_failed", "code", code, verdict.reason, redact=True, language=language.value, failure=verdict.failure.value
            )
        return verdict

    def _check_code(self, code: str, language: Language) -> ValidationVerdict:
        if len(code) > self.max_code_length:
            return ValidationVerdict.fail(ValidationFailure.TOO_LARGE, f"Code exceeds maximum length of {self.max_code_length} characters")

        if not code.strip():
            return ValidationVerdict.fail(ValidationFailure.EMPTY, "Code cannot be empty")

        for rule in find_matches(code, rules_for_language(language)):
            self.security_logger.log_suspicious_pattern("code", rule.name, rule.category.value, language=language.value)
            if self.strict_code_validation:
                return ValidationVerdict.fail(ValidationFailure.DANGEROUS_PATTERN, f"Code contains a blocked pattern: {rule.name}")

        return ValidationVerdict.ok()

    # ---------------------------------------------------------------------------
    # File paths
    # ---------------------------------------------------------------------------

    def validate_file_path(self, path: str) -> ValidationVerdict:
        """Validate a sandbox file path.

        Checks run in order (length, emptiness, traversal, forbidden prefix,
        null byte); the first failing check is reported.

        Args:
            path: Path inside the sandbox

        Returns:
            ValidationVerdict: Result of the first failing check, or a pass

        Examples:
            >>> v = InputValidator()
            >>> v.validate_file_path("data/output.csv").passed
            True
            >>> v.validate_file_path("/etc/passwd").failure.value
            'ForbiddenPath'
            >>> v.validate_file_path("/etcetera/notes.txt").passed
            True
            >>> v.validate_file_path("a\\x00b").failure.value
            'InvalidCharacter'
            >>> v.validate_file_path("   ").failure.value
            'Empty'
        """
        verdict = self._check_file_path(path)
        if not verdict:
            self.security_logger.log_validation_failure("file_path_validation_failed", "path", path, verdict.reason, failure=verdict.failure.value)
        return verdict

    def _check_file_path(self, path: str) -> ValidationVerdict:
        if len(path) > self.max_file_path_length:
            return ValidationVerdict.fail(ValidationFailure.TOO_LONG, f"File path exceeds maximum length of {self.max_file_path_length} characters")

        if not path.strip():
            return ValidationVerdict.fail(ValidationFailure.EMPTY, "File path cannot be empty")

        if ".." in _PATH_SEPARATORS.split(path):
            return ValidationVerdict.fail(ValidationFailure.PATH_TRAVERSAL, "Directory traversal not allowed in file paths")

        if path.startswith("/"):
            for prefix in self.forbidden_path_prefixes:
                if path == prefix or path.startswith(prefix + "/") or prefix == "/":
                    return ValidationVerdict.fail(ValidationFailure.FORBIDDEN_PATH, f"Access to system directory {prefix} is not allowed")

        if "\x00" in path:
            return ValidationVerdict.fail(ValidationFailure.INVALID_CHARACTER, "Null bytes not allowed in file paths")

        return ValidationVerdict.ok()

    # ---------------------------------------------------------------------------
    # File content
    # ---------------------------------------------------------------------------

    def validate_file_content(self, content: str) -> ValidationVerdict:
        """Validate file content before it is written into a sandbox.

        Size is measured in UTF-8 bytes, not characters.

        Args:
            content: File content

        Returns:
            ValidationVerdict: Failing on oversize content or detected secrets

        Examples:
            >>> v = InputValidator(max_file_size_bytes=4)
            >>> v.validate_file_content("abcd").passed
            True
            >>> v.validate_file_content("ééé").failure.value
            'TooLarge'
            >>> InputValidator().validate_file_content("key = 'ghp_" + "a" * 36 + "'").failure.value
            'SecretDetected'
        """
        verdict = self._check_file_content(content)
        if not verdict:
            self.security_logger.log_validation_failure("file_content_validation_failed", "content", content, verdict.reason, redact=True, failure=verdict.failure.value)
        return verdict

    def _check_file_content(self, content: str) -> ValidationVerdict:
        size = len(content.encode("utf-8"))
        if size > self.max_file_size_bytes:
            return ValidationVerdict.fail(ValidationFailure.TOO_LARGE, f"File content exceeds maximum size of {self.max_file_size_bytes} bytes")

        rule = first_match(content, SECRET_RULES)
        if rule is not None:
            return ValidationVerdict.fail(ValidationFailure.SECRET_DETECTED, f"File content contains potential secrets ({rule.name})")

        return ValidationVerdict.ok()

    # ---------------------------------------------------------------------------
    # Packages
    # ---------------------------------------------------------------------------

    def validate_packages(self, names: Sequence[str], language: Language) -> ValidationVerdict:
        """Validate a package installation request.

        The first invalid name rejects the whole request.

        Args:
            names: Package names
            language: Ecosystem whose naming grammar applies

        Returns:
            ValidationVerdict: Failing on list shape or the first invalid name

        Examples:
            >>> v = InputValidator()
            >>> v.validate_packages([], Language.PYTHON).failure.value
            'EmptyList'
            >>> v.validate_packages(["@types/node", "lodash"], Language.JAVASCRIPT).passed
            True
            >>> v.validate_packages(["requests", "not a valid name!"], Language.PYTHON).failure.value
            'InvalidFormat'
            >>> v.validate_packages(["py-backdoor"], Language.PYTHON).failure.value
            'SuspiciousName'
        """
        language = Language(language)
        verdict = self._check_packages(names, language)
        if not verdict:
            self.security_logger.log_validation_failure(
                "package_validation_failed", "packages", list(names), verdict.reason, language=language.value, failure=verdict.failure.value
            )
        return verdict

    def _check_packages(self, names: Sequence[str], language: Language) -> ValidationVerdict:
        if len(names) == 0:
            return ValidationVerdict.fail(ValidationFailure.EMPTY_LIST, "Package list cannot be empty")

        if len(names) > self.max_packages:
            return ValidationVerdict.fail(ValidationFailure.TOO_MANY, f"Too many packages requested (maximum {self.max_packages})")

        for name in names:
            verdict = self._check_package_name(name, language)
            if not verdict:
                return verdict

        return ValidationVerdict.ok()

    def _check_package_name(self, name: str, language: Language) -> ValidationVerdict:
        if not name or not name.strip():
            return ValidationVerdict.fail(ValidationFailure.EMPTY_NAME, "Package name cannot be empty")

        if len(name) > self.max_package_name_length:
            return ValidationVerdict.fail(ValidationFailure.TOO_LONG, f"Package name too long (maximum {self.max_package_name_length} characters)")

        if not PACKAGE_NAME_GRAMMARS[language].fullmatch(name):
            label = "Python" if language == Language.PYTHON else "npm"
            return ValidationVerdict.fail(ValidationFailure.INVALID_FORMAT, f"Invalid {label} package name: {name}")

        if first_match(name, SUSPICIOUS_PACKAGE_RULES) is not None:
            return ValidationVerdict.fail(ValidationFailure.SUSPICIOUS_NAME, f"Package name appears suspicious: {name}")

        return ValidationVerdict.ok()
