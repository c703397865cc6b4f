# -*- coding: utf-8 -*-
"""Base interfaces for remote sandbox providers."""

# Standard
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

# First-Party
from sandboxgateway.models import Language


class ProviderError(RuntimeError):
    """Remote sandbox operation error."""


@dataclass
class RemoteExecutionError:
    """Structured error raised by code running inside a sandbox."""

    name: str
    value: str
    traceback: Optional[str] = None


@dataclass
class RemoteExecution:
    """Result of one remote code run."""

    stdout: List[str] = field(default_factory=list)
    stderr: List[str] = field(default_factory=list)
    results: List[str] = field(default_factory=list)
    error: Optional[RemoteExecutionError] = None


@dataclass
class RemoteFileEntry:
    """One entry of a remote directory listing."""

    name: str
    is_dir: bool = False
    size: Optional[int] = None


class RemoteSandbox(ABC):
    """An opaque remote sandbox session."""

    @property
    @abstractmethod
    def remote_id(self) -> str:
        """Provider-side identifier of the session."""

    @abstractmethod
    async def run_code(self, code: str, language: Language, timeout: float) -> RemoteExecution:
        """Run code in the sandbox.

        Args:
            code: Source code
            language: Language context to run it in
            timeout: Seconds the provider may spend on the run

        Returns:
            RemoteExecution: Captured logs, results and error
        """

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write a text file in the sandbox filesystem."""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a text file from the sandbox filesystem."""

    @abstractmethod
    async def list_directory(self, path: str) -> List[RemoteFileEntry]:
        """List a directory in the sandbox filesystem."""

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the remote session down."""


class SandboxProvider(ABC):
    """Abstract remote sandbox provisioning service."""

    @abstractmethod
    async def create(self, language: Language, timeout: float) -> RemoteSandbox:
        """Provision a new remote sandbox.

        Args:
            language: Language the sandbox will mostly run
            timeout: Seconds allowed for provisioning

        Returns:
            RemoteSandbox: The new session
        """
