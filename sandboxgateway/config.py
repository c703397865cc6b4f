# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/config.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Sandbox Gateway Configuration.

Settings are read from environment variables (case-insensitive) and an
optional ``.env`` file in the working directory.

Examples:
    >>> from sandboxgateway.config import Settings
    >>> s = Settings(e2b_api_key="e2b_test")
    >>> s.max_code_length
    50000
    >>> s.sandbox_idle_timeout_seconds
    300.0
    >>> s.forbidden_path_prefixes[:2]
    ['/etc', '/root']
"""

# Standard
from functools import lru_cache
from typing import List, Literal, Optional

# Third-Party
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gateway configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "e2b-mcp-server"
    app_version: str = "1.0.0"

    # ==========================================================================
    # Remote provider
    # ==========================================================================
    e2b_api_key: Optional[str] = Field(default=None, description="API key for the E2B sandbox service")
    sandbox_lifetime_seconds: int = Field(default=3600, description="Remote keepalive requested at sandbox creation")

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_to_file: bool = False
    log_file: Optional[str] = "sandboxgateway.log"
    log_folder: Optional[str] = None

    # ==========================================================================
    # Input validation
    # ==========================================================================
    max_code_length: int = 50_000
    max_file_path_length: int = 255
    max_file_size_bytes: int = 10 * 1024 * 1024
    max_packages: int = 50
    max_package_name_length: int = 100
    forbidden_path_prefixes: List[str] = Field(default=["/etc", "/root", "/usr", "/sys", "/proc", "/dev"])
    strict_code_validation: bool = False

    # ==========================================================================
    # Output
    # ==========================================================================
    max_output_length: int = 10_000

    # ==========================================================================
    # Sandbox pool and execution
    # ==========================================================================
    execution_timeout_seconds: float = 30.0
    install_timeout_seconds: float = 120.0
    sandbox_creation_timeout_seconds: float = 60.0
    sandbox_destroy_timeout_seconds: float = 30.0
    sandbox_idle_timeout_seconds: float = 300.0
    sandbox_sweep_interval_seconds: float = 60.0
    default_file_language: Literal["python", "javascript"] = "python"

    @field_validator(
        "max_code_length",
        "max_file_path_length",
        "max_file_size_bytes",
        "max_packages",
        "max_package_name_length",
        "max_output_length",
        "execution_timeout_seconds",
        "install_timeout_seconds",
        "sandbox_creation_timeout_seconds",
        "sandbox_destroy_timeout_seconds",
        "sandbox_idle_timeout_seconds",
        "sandbox_sweep_interval_seconds",
        "sandbox_lifetime_seconds",
    )
    @classmethod
    def _must_be_positive(cls, value):
        """Reject zero or negative limits.

        Args:
            value: Configured limit

        Returns:
            The unchanged value

        Raises:
            ValueError: If the value is not positive
        """
        if value <= 0:
            raise ValueError("must be a positive number")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        """Accept log levels in any case.

        Args:
            value: Raw log level

        Returns:
            Upper-cased log level
        """
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: The process-wide settings
    """
    return Settings()


settings = get_settings()
