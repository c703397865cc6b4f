# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Shared fixtures and in-memory fakes for the remote sandbox provider.
"""

# Standard
import asyncio
from typing import Dict, List, Optional

# Third-Party
import pytest

# First-Party
from sandboxgateway.models import Language
from sandboxgateway.providers.base import ProviderError, RemoteExecution, RemoteFileEntry, RemoteSandbox, SandboxProvider
from sandboxgateway.security.sanitizer import OutputSanitizer
from sandboxgateway.security.validators import InputValidator
from sandboxgateway.services.execution_gateway import ExecutionGateway
from sandboxgateway.services.sandbox_pool import SandboxPool
from sandboxgateway.services.security_logger import SecurityLogger


class FakeRemoteSandbox(RemoteSandbox):
    """In-memory remote sandbox recording every call."""

    def __init__(self, remote_id: str, language: Language):
        self._remote_id = remote_id
        self.language = language
        self.execution = RemoteExecution(stdout=["ok\n"])
        self.files: Dict[str, str] = {}
        self.listing: List[RemoteFileEntry] = []
        self.run_calls: List[tuple] = []
        self.run_delay = 0.0
        self.run_error: Optional[Exception] = None
        self.destroy_calls = 0
        self.destroy_delay = 0.0
        self.destroy_error: Optional[Exception] = None

    @property
    def remote_id(self) -> str:
        return self._remote_id

    async def run_code(self, code, language, timeout):
        self.run_calls.append((code, language, timeout))
        if self.run_delay:
            await asyncio.sleep(self.run_delay)
        if self.run_error is not None:
            raise self.run_error
        return self.execution

    async def write_file(self, path, content):
        self.files[path] = content

    async def read_file(self, path):
        if path not in self.files:
            raise ProviderError(f"File not found: {path}")
        return self.files[path]

    async def list_directory(self, path):
        return list(self.listing)

    async def destroy(self):
        self.destroy_calls += 1
        if self.destroy_delay:
            await asyncio.sleep(self.destroy_delay)
        if self.destroy_error is not None:
            raise self.destroy_error


class FakeSandboxProvider(SandboxProvider):
    """Provider handing out ``FakeRemoteSandbox`` instances."""

    def __init__(self):
        self.created: List[FakeRemoteSandbox] = []
        self.create_calls = 0
        self.create_delay = 0.0
        self.create_error: Optional[Exception] = None

    async def create(self, language, timeout):
        self.create_calls += 1
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.create_error is not None:
            raise self.create_error
        remote = FakeRemoteSandbox(f"remote-{len(self.created) + 1}", Language(language))
        self.created.append(remote)
        return remote


@pytest.fixture
def fake_provider():
    """Provider fake with no delays or failures configured."""
    return FakeSandboxProvider()


@pytest.fixture
def pool(fake_provider):
    """Sandbox pool over the fake provider with short remote timeouts."""
    return SandboxPool(fake_provider, idle_timeout=300, sweep_interval=60, creation_timeout=1, destroy_timeout=1)


@pytest.fixture
def security_logger():
    """Security logger with fresh counters."""
    return SecurityLogger()


@pytest.fixture
def validator(security_logger):
    """Validator with the default limits."""
    return InputValidator(security_logger=security_logger)


@pytest.fixture
def sanitizer():
    """Sanitizer with the default output limit."""
    return OutputSanitizer()


@pytest.fixture
def gateway(pool, validator, sanitizer):
    """Gateway wired to the fake-backed pool."""
    return ExecutionGateway(pool, validator=validator, sanitizer=sanitizer, execution_timeout=1, install_timeout=1)
