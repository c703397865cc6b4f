# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/providers/e2b_provider.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

E2B code-interpreter sandbox provider.

Wraps the ``e2b-code-interpreter`` async SDK behind the provider interface
used by the sandbox pool and the execution gateway.
"""

# Standard
import logging
from typing import Any, List, Optional

# Third-Party
from e2b_code_interpreter import AsyncSandbox

# First-Party
from sandboxgateway.models import Language
from sandboxgateway.providers.base import ProviderError, RemoteExecution, RemoteExecutionError, RemoteFileEntry, RemoteSandbox, SandboxProvider

logger = logging.getLogger(__name__)


def _entry_is_dir(entry: Any) -> bool:
    entry_type = getattr(entry, "type", None)
    return str(getattr(entry_type, "value", entry_type) or "").lower() == "dir"


class E2BRemoteSandbox(RemoteSandbox):
    """Remote session backed by an ``AsyncSandbox``."""

    def __init__(self, sandbox: AsyncSandbox):
        """Wrap an SDK sandbox.

        Args:
            sandbox: Connected E2B sandbox
        """
        self._sandbox = sandbox

    @property
    def remote_id(self) -> str:
        """E2B sandbox identifier."""
        return self._sandbox.sandbox_id

    async def run_code(self, code: str, language: Language, timeout: float) -> RemoteExecution:
        """Run code through the E2B code interpreter.

        Args:
            code: Source code
            language: Interpreter context
            timeout: Seconds allowed for the run

        Returns:
            RemoteExecution: Logs, result texts and error of the run
        """
        execution = await self._sandbox.run_code(code, language=Language(language).value, timeout=timeout)

        error: Optional[RemoteExecutionError] = None
        if execution.error is not None:
            error = RemoteExecutionError(
                name=execution.error.name,
                value=execution.error.value,
                traceback=execution.error.traceback or None,
            )

        return RemoteExecution(
            stdout=list(execution.logs.stdout or []),
            stderr=list(execution.logs.stderr or []),
            results=[result.text for result in execution.results if getattr(result, "text", None)],
            error=error,
        )

    async def write_file(self, path: str, content: str) -> None:
        """Write a text file into the sandbox."""
        await self._sandbox.files.write(path, content)

    async def read_file(self, path: str) -> str:
        """Read a text file from the sandbox."""
        return await self._sandbox.files.read(path)

    async def list_directory(self, path: str) -> List[RemoteFileEntry]:
        """List a sandbox directory."""
        entries = await self._sandbox.files.list(path)
        return [RemoteFileEntry(name=entry.name, is_dir=_entry_is_dir(entry), size=getattr(entry, "size", None)) for entry in entries]

    async def destroy(self) -> None:
        """Kill the E2B sandbox."""
        await self._sandbox.kill()


class E2BSandboxProvider(SandboxProvider):
    """Provisions E2B code-interpreter sandboxes."""

    def __init__(self, api_key: str, lifetime_seconds: int = 3600, template: Optional[str] = None):
        """Initialize the provider.

        Args:
            api_key: E2B API key
            lifetime_seconds: Remote keepalive requested for each sandbox
            template: Optional E2B template name

        Raises:
            ProviderError: If no API key is given
        """
        if not api_key:
            raise ProviderError("E2B API key is required")
        self._api_key = api_key
        self._lifetime_seconds = lifetime_seconds
        self._template = template

    async def create(self, language: Language, timeout: float) -> RemoteSandbox:
        """Create a new E2B sandbox.

        Args:
            language: Language the sandbox is created for
            timeout: Seconds allowed for the creation request

        Returns:
            RemoteSandbox: Wrapped sandbox session
        """
        logger.debug(f"Requesting E2B sandbox for {Language(language).value}")
        sandbox = await AsyncSandbox.create(
            template=self._template,
            timeout=self._lifetime_seconds,
            api_key=self._api_key,
            request_timeout=timeout,
        )
        return E2BRemoteSandbox(sandbox)
